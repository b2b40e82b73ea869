# backend/modules/feedback/services/analytics_service.py

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, List, Sequence, Tuple
from datetime import date, datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from core.config import get_settings
from core.exceptions import StorageError
from modules.feedback.constants import (
    CATEGORY_HEX,
    PRIORITY_HEX,
    PRIORITY_ORDER,
    author_label,
    enum_label,
)
from modules.feedback.models.feedback_models import (
    Feedback,
    FeedbackCategory,
    FeedbackPriority,
    FeedbackStatus,
)
from modules.feedback.schemas.feedback_schemas import (
    AnalyticsSnapshot,
    CategoryShare,
    PriorityBar,
    RecentActivity,
    TrendBucket,
)

logger = logging.getLogger(__name__)


def _percent(part: int, total: int, step: str) -> Decimal:
    """Percentage rounded half up to ``step``"""
    return (Decimal(part * 100) / Decimal(total)).quantize(Decimal(step), ROUND_HALF_UP)


def _rate(part: int, total: int) -> int:
    return int(_percent(part, total, "1")) if total > 0 else 0


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_key(value: datetime) -> str:
    return f"{value.year}-{value.month:02d}"


def month_window(now: datetime, months: int) -> List[Tuple[str, str]]:
    """(key, label) pairs for ``months`` calendar months ending at ``now``'s month"""
    window = []
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        first = date(year, month, 1)
        window.append((f"{year}-{month:02d}", first.strftime("%b %y")))
    return window


def _status_breakdown(items: Sequence[Feedback]) -> Dict[str, int]:
    counts = {
        FeedbackStatus.PENDING: 0,
        FeedbackStatus.IN_PROGRESS: 0,
        FeedbackStatus.PUBLISHED: 0,
        FeedbackStatus.REJECTED: 0,
    }
    for item in items:
        counts[item.status] += 1
    return {status.value: count for status, count in counts.items()}


def _category_distribution(items: Sequence[Feedback], total: int) -> List[CategoryShare]:
    counts: Dict[FeedbackCategory, int] = {}
    for item in items:
        counts[item.category] = counts.get(item.category, 0) + 1

    shares = []
    for category in FeedbackCategory:
        value = counts.get(category)
        if not value:
            continue
        shares.append(
            CategoryShare(
                key=category,
                name=enum_label(category),
                value=value,
                percentage=float(_percent(value, total, "0.1")) if total else 0.0,
                color=CATEGORY_HEX[category],
            )
        )
    return shares


def _priority_distribution(items: Sequence[Feedback]) -> Tuple[List[PriorityBar], int]:
    counts: Dict[FeedbackPriority, int] = {}
    for item in items:
        counts[item.priority] = counts.get(item.priority, 0) + 1

    max_count = max(counts.values(), default=0)
    bars = []
    for priority in PRIORITY_ORDER:
        count = counts.get(priority)
        if not count:
            continue
        bars.append(
            PriorityBar(
                priority=priority,
                label=enum_label(priority),
                count=count,
                width_percent=(count / max_count * 100) if max_count > 0 else 0.0,
                color=PRIORITY_HEX[priority],
            )
        )
    return bars, max_count


def _monthly_trend(
    items: Sequence[Feedback], now: datetime, months: int
) -> List[TrendBucket]:
    window = month_window(now, months)
    month_counts = {key: 0 for key, _ in window}
    for item in items:
        key = month_key(item.created_at)
        if key in month_counts:
            month_counts[key] += 1
    return [
        TrendBucket(key=key, label=label, value=month_counts[key])
        for key, label in window
    ]


def _recent_activity(items: Sequence[Feedback], limit: int) -> List[RecentActivity]:
    # sorted() is stable, so equal timestamps keep collection order
    recent = sorted(items, key=lambda item: item.created_at, reverse=True)[:limit]
    return [
        RecentActivity(
            id=item.id,
            title=item.title,
            author=author_label(item),
            status=item.status,
            created_at=item.created_at,
        )
        for item in recent
    ]


def compute_analytics(
    items: Sequence[Feedback],
    now: Optional[datetime] = None,
    trend_months: int = 6,
    recent_limit: int = 5,
) -> AnalyticsSnapshot:
    """Derive the dashboard analytics from the full item collection.

    Pure: nothing is mutated and nothing is read from the store.
    """
    items = list(items)
    now = now or datetime.utcnow()
    total = len(items)

    statuses = _status_breakdown(items)
    responded = sum(1 for item in items if item.response_text)
    anonymous = sum(1 for item in items if item.is_anonymous)

    priority_data, max_priority_count = _priority_distribution(items)
    trends_data = _monthly_trend(items, now, trend_months)

    return AnalyticsSnapshot(
        total=total,
        pending=statuses[FeedbackStatus.PENDING.value],
        in_progress=statuses[FeedbackStatus.IN_PROGRESS.value],
        published=statuses[FeedbackStatus.PUBLISHED.value],
        rejected=statuses[FeedbackStatus.REJECTED.value],
        responded=responded,
        response_rate=_rate(responded, total),
        anonymous=anonymous,
        anonymous_rate=_rate(anonymous, total),
        category_data=_category_distribution(items, total),
        priority_data=priority_data,
        max_priority_count=max_priority_count,
        trends_data=trends_data,
        max_trend=max((bucket.value for bucket in trends_data), default=0),
        recent=_recent_activity(items, recent_limit),
    )


class FeedbackAnalyticsService:
    """Loads the item collection and projects it into an analytics snapshot"""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def get_snapshot(self, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        try:
            items = self.db.query(Feedback).order_by(Feedback.created_at.desc()).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Analytics fetch error: {e}")
            raise StorageError("Could not load feedback for analytics")

        return compute_analytics(
            items,
            now=now,
            trend_months=self.settings.analytics_trend_months,
            recent_limit=self.settings.analytics_recent_limit,
        )
