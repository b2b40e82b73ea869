# backend/modules/feedback/__init__.py

"""
Campus Feedback Module

This module provides:
- Feedback submission (categorised, prioritised, optionally anonymous)
- Admin moderation: status workflow and responses
- Response notifications by email
- Public feed engagement: reactions and comments
- Dashboard analytics

Key Components:
- Models: Profiles, feedback items, reactions and comments
- Services: Status workflow, response policy, reaction engine, comment
  store, analytics aggregator and the per-view engagement session
- Routers: API endpoints for feedback, engagement and profiles
"""

__version__ = "1.0.0"
