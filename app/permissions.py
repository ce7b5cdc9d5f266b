"""
Role-based permission rules
"""
import enum
from typing import Iterable

from app.models.user import UserRole


class Permission(str, enum.Enum):
    """Outcome of a permission check"""
    ALLOW = "allow"
    DENY = "deny"


STAFF_ROLES = (UserRole.STAFF, UserRole.ADMIN)
ADMIN_ROLES = (UserRole.ADMIN,)
STUDENT_ROLES = (UserRole.STUDENT,)


def resolve_permission(role: UserRole, required_roles: Iterable[UserRole]) -> Permission:
    """Allow when ``role`` is one of ``required_roles``.

    An empty ``required_roles`` denies everyone.
    """
    if role in set(required_roles):
        return Permission.ALLOW
    return Permission.DENY


def is_staff(role: UserRole) -> bool:
    return resolve_permission(role, STAFF_ROLES) is Permission.ALLOW
