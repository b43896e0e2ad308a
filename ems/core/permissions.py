"""Role-based authorization rules.

Only the role carried by a login Credential (and therefore by its token)
is ever consulted here. ``Employee.role`` is a display value.
"""
from enum import Enum

from ems.core.exceptions import AuthorizationError


class Role(str, Enum):
    EMPLOYEE = "employee"
    HR = "HR"
    ADMIN = "admin"


MANAGE_ROLES = frozenset({Role.HR.value, Role.ADMIN.value})

# Roles an admin may assign through /auth/create-user
PRIVILEGED_ROLES = frozenset({Role.HR.value, Role.ADMIN.value})


def can_manage(role: str) -> bool:
    """True when ``role`` may create, update or delete departments and employees."""
    return role in MANAGE_ROLES


def can_create_privileged_user(role: str) -> bool:
    return role == Role.ADMIN.value


def ensure_can_manage(user: dict) -> dict:
    if not can_manage(user.get("role")):
        raise AuthorizationError()
    return user


def ensure_admin(user: dict) -> dict:
    if not can_create_privileged_user(user.get("role")):
        raise AuthorizationError()
    return user
