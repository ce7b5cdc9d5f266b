"""
Issue Service - Business logic for issue reporting and triage
"""
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import utcnow
from app.exceptions import BadRequest, Forbidden, NotFound
from app.models.issue import Issue, IssueCategory, IssueComment, IssueStatus, Priority
from app.models.user import User, UserRole
from app.permissions import is_staff
from app.schemas import IssueCreate, IssueUpdate
from app.services.pagination import LIKE_ESCAPE, Page, paginate, substring_pattern

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION_DESCRIPTION = "Issue resolved"

# Statuses reachable from each status when strict transitions are enabled.
# Rejected and Closed are reachable from anywhere. A rejected issue can be
# reopened straight into In Progress.
ALLOWED_TRANSITIONS: Dict[IssueStatus, FrozenSet[IssueStatus]] = {
    IssueStatus.PENDING: frozenset(
        {IssueStatus.UNDER_REVIEW, IssueStatus.ASSIGNED, IssueStatus.REJECTED}
    ),
    IssueStatus.UNDER_REVIEW: frozenset({IssueStatus.IN_PROGRESS}),
    IssueStatus.ASSIGNED: frozenset({IssueStatus.IN_PROGRESS}),
    IssueStatus.IN_PROGRESS: frozenset({IssueStatus.RESOLVED, IssueStatus.CLOSED}),
    IssueStatus.RESOLVED: frozenset(),
    IssueStatus.CLOSED: frozenset(),
    IssueStatus.REJECTED: frozenset({IssueStatus.IN_PROGRESS}),
}
ALWAYS_ALLOWED: FrozenSet[IssueStatus] = frozenset({IssueStatus.REJECTED, IssueStatus.CLOSED})


def can_transition(current: IssueStatus, new: IssueStatus) -> bool:
    """Check ``current -> new`` against the allowed-from table"""
    if current == new or new in ALWAYS_ALLOWED:
        return True
    return new in ALLOWED_TRANSITIONS[current]


@dataclass
class IssueFilters:
    """Optional filters for listing issues"""
    status: Optional[IssueStatus] = None
    category: Optional[IssueCategory] = None
    priority: Optional[Priority] = None
    search: Optional[str] = None


class IssueService:
    """Service for issue operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def _get_issue(self, issue_id: int) -> Issue:
        issue = await self.db.get(Issue, issue_id)
        if not issue:
            raise NotFound("Issue")
        return issue

    async def create_issue(self, reporter: User, data: IssueCreate) -> Issue:
        """Create a new issue reported by ``reporter``"""
        issue = Issue(
            title=data.title,
            description=data.description,
            location=data.location,
            category=data.category,
            priority=data.priority or Priority.MEDIUM,
            status=IssueStatus.PENDING,
            media=[m.model_dump(mode="json") for m in data.media],
            reporter=reporter,
        )

        self.db.add(issue)
        await self.db.commit()
        await self.db.refresh(issue)

        logger.info("Issue %s created by user %s", issue.id, reporter.id)
        return issue

    async def list_issues(
        self,
        caller: User,
        filters: IssueFilters,
        page: int,
        limit: int,
    ) -> Page:
        """List issues visible to ``caller``, newest first"""
        query = select(Issue)

        # Students only ever see their own reports
        if caller.role == UserRole.STUDENT:
            query = query.where(Issue.reporter_id == caller.id)

        if filters.status:
            query = query.where(Issue.status == filters.status)
        if filters.category:
            query = query.where(Issue.category == filters.category)
        if filters.priority:
            query = query.where(Issue.priority == filters.priority)
        if filters.search:
            search_filter = substring_pattern(filters.search)
            query = query.where(
                or_(
                    Issue.title.ilike(search_filter, escape=LIKE_ESCAPE),
                    Issue.description.ilike(search_filter, escape=LIKE_ESCAPE),
                    Issue.location.ilike(search_filter, escape=LIKE_ESCAPE),
                )
            )

        query = query.order_by(Issue.created_at.desc(), Issue.id.desc())
        return await paginate(self.db, query, page, limit)

    async def get_issue(self, caller: User, issue_id: int) -> Issue:
        """Get a single issue the caller may see"""
        issue = await self._get_issue(issue_id)

        if caller.role == UserRole.STUDENT and issue.reporter_id != caller.id:
            raise Forbidden("Not authorized to view this issue")

        return issue

    async def update_issue(self, caller: User, issue_id: int, data: IssueUpdate) -> Issue:
        """Apply a staff update; entering Resolved stamps the resolution record"""
        if not is_staff(caller.role):
            raise Forbidden("Not authorized to update this issue")

        issue = await self._get_issue(issue_id)
        previous_status = issue.status

        assignee = None
        if data.assigned_to is not None:
            assignee = await self.db.get(User, data.assigned_to)
            if not assignee:
                raise NotFound("Assigned user")

        if data.status is not None:
            if self.settings.strict_status_transitions and not can_transition(
                previous_status, data.status
            ):
                logger.warning(
                    "Rejected transition %s -> %s on issue %s",
                    previous_status.value, data.status.value, issue_id,
                )
                raise BadRequest(
                    f"Cannot change status from {previous_status.value} to {data.status.value}"
                )
            issue.status = data.status

        if data.priority is not None:
            issue.priority = data.priority

        if assignee is not None:
            issue.assigned_to = assignee

        if data.status == IssueStatus.RESOLVED and previous_status != IssueStatus.RESOLVED:
            issue.resolution_description = (
                data.resolution_details or DEFAULT_RESOLUTION_DESCRIPTION
            )
            issue.resolved_at = utcnow()
            issue.resolved_by = caller

        issue.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(issue)

        logger.info(
            "Issue %s updated by user %s (status %s -> %s)",
            issue_id, caller.id, previous_status.value, issue.status.value,
        )
        return issue

    async def add_comment(self, caller: User, issue_id: int, text: str) -> List[IssueComment]:
        """Add a comment and return all comments, newest first"""
        issue = await self._get_issue(issue_id)

        if caller.role == UserRole.STUDENT and issue.reporter_id != caller.id:
            raise Forbidden("Not authorized to comment on this issue")

        comment = IssueComment(text=text, author=caller, created_at=utcnow())
        issue.comments.insert(0, comment)
        issue.updated_at = utcnow()

        await self.db.commit()
        await self.db.refresh(issue)

        logger.info("Comment added to issue %s by user %s", issue_id, caller.id)
        return list(issue.comments)

    async def delete_issue(self, caller: User, issue_id: int) -> None:
        """Permanently remove an issue"""
        if caller.role != UserRole.ADMIN:
            raise Forbidden("Not authorized to delete this issue")

        issue = await self._get_issue(issue_id)
        await self.db.delete(issue)
        await self.db.commit()

        logger.info("Issue %s deleted by user %s", issue_id, caller.id)
