from .base import Base, metadata
from .auth import User, user_assigned_section
from .organization import School, Department
from .course import Course, course_coordinator
from .section import Section, SectionStudent, SectionCourseTeacher, section_course
from .unlock import UnlockLock, UnlockEvent, TEACHER_UNLOCK_QUOTA

# Import all models to ensure relationships are properly set up
from . import auth, organization, course, section, unlock

__all__ = [
    'Base',
    'metadata',
    # Users
    'User',
    'user_assigned_section',
    # Organization
    'School',
    'Department',
    # Courses
    'Course',
    'course_coordinator',
    # Sections
    'Section',
    'SectionStudent',
    'SectionCourseTeacher',
    'section_course',
    # Unlocks
    'UnlockLock',
    'UnlockEvent',
    'TEACHER_UNLOCK_QUOTA',
]
