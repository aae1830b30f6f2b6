"""
Role resolution and access decisions.
"""

from lms_backend.permissions.roles import (
    ADMIN,
    TEACHER,
    STUDENT,
    DEAN,
    HOD,
    get_user_roles,
    has_role,
    has_any_role,
    has_all_roles,
    primary_role,
)
from lms_backend.permissions.principal import Principal

__all__ = [
    "ADMIN",
    "TEACHER",
    "STUDENT",
    "DEAN",
    "HOD",
    "get_user_roles",
    "has_role",
    "has_any_role",
    "has_all_roles",
    "primary_role",
    "Principal",
]
