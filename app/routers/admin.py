"""
Admin API Router - dashboard statistics and user administration
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies import require_roles
from app.models.user import User, UserRole
from app.schemas import (
    DashboardResponse,
    EventStatsResponse,
    IssueResponse,
    IssueStatsResponse,
    RoleUpdate,
    UserListResponse,
    UserResponse,
)
from app.services.stats_service import StatsService
from app.services.user_service import UserService

router = APIRouter()
settings = get_settings()

staff_only = require_roles(UserRole.ADMIN, UserRole.STAFF)
admin_only = require_roles(UserRole.ADMIN)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard counts, recent issues and distributions"""
    service = StatsService(db)
    data = await service.dashboard()
    data["recent_issues"] = [IssueResponse.model_validate(i) for i in data["recent_issues"]]
    return DashboardResponse(data=data)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """List users with pagination and filters"""
    service = UserService(db)
    result = await service.list_users(page, limit, role=role, search=search)
    return UserListResponse(
        **result.envelope([UserResponse.model_validate(u) for u in result.items])
    )


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: int,
    role_data: RoleUpdate,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    """Change a user's role"""
    service = UserService(db)
    user = await service.update_role(current_user, user_id, role_data.role)
    return UserResponse.model_validate(user)


@router.get("/issues/stats", response_model=IssueStatsResponse)
async def issue_stats(
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Resolution time, resolution rate and department distribution"""
    service = StatsService(db)
    return IssueStatsResponse(data=await service.issue_stats())


@router.get("/events/stats", response_model=EventStatsResponse)
async def event_stats(
    current_user: User = Depends(staff_only),
    db: AsyncSession = Depends(get_db),
):
    """Registration rate, category distribution and monthly counts"""
    service = StatsService(db)
    return EventStatsResponse(data=await service.event_stats())
