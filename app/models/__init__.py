"""
Database models
"""
from app.models.user import User, UserRole
from app.models.issue import Issue, IssueCategory, IssueComment, IssueStatus, MediaKind, Priority
from app.models.event import Event, EventCategory, EventRegistration

__all__ = [
    "User",
    "UserRole",
    "Issue",
    "IssueStatus",
    "IssueCategory",
    "IssueComment",
    "Priority",
    "MediaKind",
    "Event",
    "EventCategory",
    "EventRegistration",
]
