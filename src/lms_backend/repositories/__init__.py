"""
Repository layer for direct database access.
"""

from .base import BaseRepository
from .entities import (
    UserRepository,
    CourseRepository,
    SectionRepository,
    AssignmentRepository,
    UnlockLockRepository,
)

__all__ = [
    'BaseRepository',
    'UserRepository',
    'CourseRepository',
    'SectionRepository',
    'AssignmentRepository',
    'UnlockLockRepository',
]
