"""
API Routers package
"""
from app.routers import admin, events, issues, uploads

__all__ = ["issues", "events", "admin", "uploads"]
