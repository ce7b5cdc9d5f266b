"""
Services package
"""
from app.services.issue_service import IssueService
from app.services.event_service import EventService
from app.services.stats_service import StatsService
from app.services.user_service import UserService
from app.services.media_service import MediaService

__all__ = ["IssueService", "EventService", "StatsService", "UserService", "MediaService"]
