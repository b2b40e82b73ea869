# backend/modules/feedback/constants.py

"""
Constants for the feedback module.

Badge colours and labels are keyed by every enumeration member, so a new
category or priority fails loudly (KeyError) instead of rendering a fallback.
"""

from modules.feedback.models.feedback_models import (
    FeedbackCategory,
    FeedbackPriority,
)

CATEGORY_HEX = {
    FeedbackCategory.ACADEMICS: "#3498DB",
    FeedbackCategory.FACILITIES: "#2ECC71",
    FeedbackCategory.INFIRMARY: "#E74C3C",
    FeedbackCategory.CAFETERIA: "#F39C12",
    FeedbackCategory.LIBRARY: "#9B59B6",
    FeedbackCategory.DORMITORY: "#1ABC9C",
    FeedbackCategory.EVENTS: "#E91E63",
    FeedbackCategory.TRANSPORTATION: "#34495E",
    FeedbackCategory.TECHNOLOGY: "#607D8B",
    FeedbackCategory.ADMINISTRATION: "#795548",
    FeedbackCategory.SAFETY: "#C0392B",
    FeedbackCategory.OTHER: "#95A5A6",
}

PRIORITY_HEX = {
    FeedbackPriority.CRITICAL: "#E74C3C",
    FeedbackPriority.HIGH: "#F39C12",
    FeedbackPriority.MEDIUM: "#FFFF15",
    FeedbackPriority.LOW: "#1AAE5C",
}

# Ranking used for priority display, independent of counts
PRIORITY_ORDER = [
    FeedbackPriority.CRITICAL,
    FeedbackPriority.HIGH,
    FeedbackPriority.MEDIUM,
    FeedbackPriority.LOW,
]

ANONYMOUS_LABEL = "Anonymous"
UNKNOWN_AUTHOR_LABEL = "Unknown"

NOTIFICATION_SUBJECT_PREFIX = "Response to your feedback: "

def enum_label(value) -> str:
    """Capitalised label for a category or priority ("facilities" -> "Facilities")"""
    text = value.value
    return text[:1].upper() + text[1:]

def author_label(item) -> str:
    """Public author label for a feedback item"""
    if item.is_anonymous:
        return ANONYMOUS_LABEL
    return item.submitter_name or UNKNOWN_AUTHOR_LABEL
