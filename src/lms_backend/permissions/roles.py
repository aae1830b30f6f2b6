"""
Role resolution for users stored in either the legacy single-role shape
(``role``) or the multi-role shape (``roles`` plus optional ``primary_role``).

All helpers accept ORM ``User`` rows, ``Principal`` objects or plain dicts
and never raise: a user without roles simply has none.
"""

from typing import Any, FrozenSet, Iterable, Optional

ADMIN = "admin"
TEACHER = "teacher"
STUDENT = "student"
DEAN = "dean"
HOD = "hod"

# Roles allowed to change assignments and memberships
MANAGER_ROLES = (ADMIN, DEAN, HOD)

# Roles carrying dean authority for unlock escalation
DEAN_AUTHORITY_ROLES = (DEAN, ADMIN)


def _field(user: Any, name: str) -> Any:
    if user is None:
        return None
    if isinstance(user, dict):
        return user.get(name)
    return getattr(user, name, None)


def get_user_roles(user: Any) -> FrozenSet[str]:
    """Normalized role set; a non-empty ``roles`` list wins over the legacy field."""
    roles = _field(user, "roles")
    if roles:
        return frozenset(r for r in roles if r)

    legacy = _field(user, "role")
    if legacy:
        return frozenset([legacy])

    return frozenset()


def has_role(user: Any, role: str) -> bool:
    return role in get_user_roles(user)


def has_any_role(user: Any, roles: Iterable[str]) -> bool:
    if not roles:
        return False
    user_roles = get_user_roles(user)
    return any(role in user_roles for role in roles)


def has_all_roles(user: Any, roles: Iterable[str]) -> bool:
    roles = list(roles or [])
    if not roles:
        return False
    user_roles = get_user_roles(user)
    return all(role in user_roles for role in roles)


def primary_role(user: Any) -> Optional[str]:
    explicit = _field(user, "primary_role")
    if explicit:
        return explicit

    roles = _field(user, "roles")
    if roles:
        return roles[0]

    return _field(user, "role") or None


def is_admin(user: Any) -> bool:
    return has_role(user, ADMIN)

def is_teacher(user: Any) -> bool:
    return has_role(user, TEACHER)

def is_student(user: Any) -> bool:
    return has_role(user, STUDENT)

def is_dean(user: Any) -> bool:
    return has_role(user, DEAN)

def is_hod(user: Any) -> bool:
    return has_role(user, HOD)


def filter_users_with_any_role(users: Iterable[Any], roles: Iterable[str]) -> list:
    """Keep users holding any of ``roles`` in either storage shape."""
    roles = list(roles)
    return [user for user in users if has_any_role(user, roles)]
