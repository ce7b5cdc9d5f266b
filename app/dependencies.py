"""
Request guards: authentication and role checks as FastAPI dependencies
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import Forbidden, NotFound, Unauthenticated
from app.models.user import User, UserRole
from app.permissions import Permission, resolve_permission
from app.security import user_id_from_token

logger = logging.getLogger(__name__)


async def get_current_user(
    request: Request,
    x_auth_token: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Verify the token in ``x-auth-token`` and load the user it names"""
    if not x_auth_token:
        raise Unauthenticated("No token, authorization denied")

    user_id = user_id_from_token(x_auth_token)
    user = await db.get(User, user_id)
    if not user:
        logger.warning("Token for missing user %s rejected", user_id)
        raise Unauthenticated()

    request.state.user_id = user.id
    return user


def require_roles(*roles: UserRole) -> Callable:
    """Build a dependency that admits only users holding one of ``roles``.

    The user is re-read on every request so role changes apply immediately.
    """
    allowed = tuple(roles)

    async def role_guard(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        user = await db.get(User, current_user.id, populate_existing=True)
        if not user:
            raise NotFound("User")

        if resolve_permission(user.role, allowed) is Permission.DENY:
            raise Forbidden(
                f"Access denied: {user.role.value} role is not authorized to access this resource"
            )
        return user

    return role_guard
