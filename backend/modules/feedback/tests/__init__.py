# backend/modules/feedback/tests/__init__.py

"""
Test suite for the feedback module.

Test Structure:
- Unit tests for the workflow, policy, reaction and analytics functions
- Service tests against an in-memory SQLite database
- Integration tests for API endpoints and the end-to-end moderation flows
"""
