"""
User Service - Admin views over campus users
"""
import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFound
from app.models.user import User, UserRole
from app.services.pagination import LIKE_ESCAPE, Page, paginate, substring_pattern

logger = logging.getLogger(__name__)


class UserService:
    """Service for user administration"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(
        self,
        page: int,
        limit: int,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
    ) -> Page:
        """List users, newest first"""
        query = select(User)

        if role:
            query = query.where(User.role == role)
        if search:
            search_filter = substring_pattern(search)
            query = query.where(
                or_(
                    User.name.ilike(search_filter, escape=LIKE_ESCAPE),
                    User.email.ilike(search_filter, escape=LIKE_ESCAPE),
                    User.student_id.ilike(search_filter, escape=LIKE_ESCAPE),
                    User.department.ilike(search_filter, escape=LIKE_ESCAPE),
                )
            )

        query = query.order_by(User.created_at.desc(), User.id.desc())
        return await paginate(self.db, query, page, limit)

    async def update_role(self, caller: User, user_id: int, role: UserRole) -> User:
        """Change a user's role"""
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFound("User")

        old_role = user.role
        user.role = role
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "User %s role changed from %s to %s by admin %s",
            user_id, old_role.value, role.value, caller.id,
        )
        return user
