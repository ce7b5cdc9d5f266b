"""
Issues API Router
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user, require_roles
from app.models.issue import IssueCategory, IssueStatus, Priority
from app.models.user import User, UserRole
from app.schemas import (
    CommentCreate,
    CommentResponse,
    IssueCreate,
    IssueDetailResponse,
    IssueListResponse,
    IssueResponse,
    IssueUpdate,
    MessageResponse,
)
from app.services.issue_service import IssueFilters, IssueService

router = APIRouter()
settings = get_settings()


@router.post("", response_model=IssueDetailResponse, status_code=201)
async def create_issue(
    issue_data: IssueCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Report a new issue"""
    service = IssueService(db)
    issue = await service.create_issue(current_user, issue_data)
    return IssueDetailResponse.model_validate(issue)


@router.get("", response_model=IssueListResponse)
async def list_issues(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    status: Optional[IssueStatus] = None,
    category: Optional[IssueCategory] = None,
    priority: Optional[Priority] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List issues with pagination and filters; students only see their own"""
    service = IssueService(db)
    filters = IssueFilters(status=status, category=category, priority=priority, search=search)
    result = await service.list_issues(current_user, filters, page, limit)
    return IssueListResponse(
        **result.envelope([IssueResponse.model_validate(i) for i in result.items])
    )


@router.get("/{issue_id}", response_model=IssueDetailResponse)
async def get_issue(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a single issue with comments"""
    service = IssueService(db)
    issue = await service.get_issue(current_user, issue_id)
    return IssueDetailResponse.model_validate(issue)


@router.put("/{issue_id}", response_model=IssueDetailResponse)
async def update_issue(
    issue_id: int,
    issue_data: IssueUpdate,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    db: AsyncSession = Depends(get_db),
):
    """Update status, priority or assignee"""
    service = IssueService(db)
    issue = await service.update_issue(current_user, issue_id, issue_data)
    return IssueDetailResponse.model_validate(issue)


@router.post("/{issue_id}/comments", response_model=List[CommentResponse])
async def add_comment(
    issue_id: int,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a comment and return the issue's comments, newest first"""
    service = IssueService(db)
    comments = await service.add_comment(current_user, issue_id, comment_data.text)
    return [CommentResponse.model_validate(c) for c in comments]


@router.delete("/{issue_id}", response_model=MessageResponse)
async def delete_issue(
    issue_id: int,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete an issue"""
    service = IssueService(db)
    await service.delete_issue(current_user, issue_id)
    return MessageResponse(msg="Issue removed")
