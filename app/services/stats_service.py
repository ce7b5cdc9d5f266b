"""
Stats Service - Read-only rollups for the admin dashboard
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.event import Event
from app.models.issue import Issue, IssueStatus
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

TRAILING_MONTHS = 6
RECENT_ISSUES_LIMIT = 5
MS_PER_HOUR = 1000 * 60 * 60


def months_ago(now: datetime, months: int) -> datetime:
    """Same day and time ``months`` calendar months before ``now``.

    The day is clamped to the length of the target month.
    """
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    next_month = datetime(year + (month // 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return now.replace(year=year, month=month, day=min(now.day, last_day))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def average_resolution_ms(pairs: Iterable[Tuple[Optional[datetime], Optional[datetime]]]) -> float:
    """Mean of positive ``resolved_at - created_at`` deltas in milliseconds.

    Pairs with a missing timestamp or a non-positive delta are skipped.
    """
    total_ms = 0.0
    counted = 0
    for created_at, resolved_at in pairs:
        if created_at is None or resolved_at is None:
            continue
        delta_ms = (_as_utc(resolved_at) - _as_utc(created_at)).total_seconds() * 1000
        if delta_ms > 0:
            total_ms += delta_ms
            counted += 1
    return total_ms / counted if counted else 0.0


def average_registration_rate(events: Iterable[Tuple[int, int]]) -> float:
    """Mean of ``registered / capacity * 100`` over ``(registered, capacity)`` pairs"""
    rates = [
        (registered / capacity) * 100 if capacity > 0 else 0.0
        for registered, capacity in events
    ]
    return sum(rates) / len(rates) if rates else 0.0


class StatsService:
    """Service for dashboard statistics"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model, *criteria) -> int:
        query = select(func.count(model.id))
        if criteria:
            query = query.where(*criteria)
        return await self.db.scalar(query) or 0

    async def _distribution(self, column, query=None) -> List[Dict[str, Any]]:
        """Group by ``column`` and sort by count, largest first"""
        count = func.count().label("count")
        if query is None:
            query = select(column, count)
        query = query.group_by(column).order_by(count.desc())

        result = await self.db.execute(query)
        distribution = []
        for key, n in result.all():
            # Enum columns come back as members; report their display value
            distribution.append({"key": getattr(key, "value", key), "count": n})
        return distribution

    async def _monthly_counts(self, model, now: datetime) -> List[Dict[str, int]]:
        """Records created in the trailing months, grouped by (year, month)"""
        since = months_ago(now, TRAILING_MONTHS)
        year = extract("year", model.created_at).label("year")
        month = extract("month", model.created_at).label("month")
        query = (
            select(year, month, func.count().label("count"))
            .where(model.created_at >= since)
            .group_by(year, month)
            .order_by(year.asc(), month.asc())
        )
        result = await self.db.execute(query)
        return [
            {"year": int(y), "month": int(m), "count": n}
            for y, m, n in result.all()
        ]

    async def dashboard(self) -> Dict[str, Any]:
        """Headline counts, recent issues and distributions"""
        now = utcnow()

        counts = {
            "total_issues": await self._count(Issue),
            "pending_issues": await self._count(Issue, Issue.status == IssueStatus.PENDING),
            "in_progress_issues": await self._count(
                Issue, Issue.status == IssueStatus.IN_PROGRESS
            ),
            "resolved_issues": await self._count(Issue, Issue.status == IssueStatus.RESOLVED),
            "total_users": await self._count(User, User.role == UserRole.STUDENT),
            "total_events": await self._count(Event),
            "upcoming_events": await self._count(
                Event,
                Event.date >= now,
                Event.is_active == True,  # noqa: E712
            ),
        }

        recent_result = await self.db.execute(
            select(Issue)
            .order_by(Issue.created_at.desc(), Issue.id.desc())
            .limit(RECENT_ISSUES_LIMIT)
        )

        return {
            "counts": counts,
            "recent_issues": list(recent_result.scalars().all()),
            "category_distribution": await self._distribution(Issue.category),
            "status_distribution": await self._distribution(Issue.status),
            "monthly_issues": await self._monthly_counts(Issue, now),
        }

    async def issue_stats(self) -> Dict[str, Any]:
        """Resolution time, resolution rate and department distribution"""
        result = await self.db.execute(
            select(Issue.created_at, Issue.resolved_at).where(
                Issue.status == IssueStatus.RESOLVED,
                Issue.resolved_at.is_not(None),
            )
        )
        average_ms = average_resolution_ms(result.all())

        total = await self._count(Issue)
        resolved = await self._count(Issue, Issue.status == IssueStatus.RESOLVED)
        resolution_rate = (resolved / total) * 100 if total > 0 else 0.0

        # Issues whose reporter no longer exists drop out of the inner join
        department_distribution = await self._distribution(
            User.department,
            select(User.department, func.count().label("count"))
            .select_from(Issue)
            .join(User, User.id == Issue.reporter_id),
        )
        return {
            "average_resolution_time": average_ms,
            "average_resolution_time_in_hours": average_ms / MS_PER_HOUR,
            "resolution_rate": resolution_rate,
            "department_distribution": department_distribution,
        }

    async def event_stats(self) -> Dict[str, Any]:
        """Registration rate, category distribution and monthly counts"""
        result = await self.db.execute(select(Event.registered_count, Event.capacity))
        rows = result.all()

        return {
            "total_events": len(rows),
            "average_registration_rate": average_registration_rate(rows),
            "category_distribution": await self._distribution(Event.category),
            "monthly_events": await self._monthly_counts(Event, utcnow()),
        }
