"""
Offset pagination shared by list endpoints
"""
import math
from dataclasses import dataclass
from typing import Any, List

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class Page:
    """One page of results plus the numbers needed for the list envelope"""
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def envelope(self, data: List[Any]) -> dict:
        return {
            "success": True,
            "count": len(data),
            "total": self.total,
            "pagination": {"current": self.page, "limit": self.limit, "pages": self.pages},
            "data": data,
        }


async def paginate(db: AsyncSession, query: Select, page: int, limit: int) -> Page:
    """Run ``query`` for 1-indexed ``page`` and count all matching rows"""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query) or 0

    offset = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    items = list(result.scalars().all())

    return Page(items=items, total=total, page=page, limit=limit)


LIKE_ESCAPE = "\\"


def substring_pattern(term: str) -> str:
    """``%term%`` for ``ilike`` with the term's wildcards matched literally.

    Use together with ``escape=LIKE_ESCAPE``.
    """
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
