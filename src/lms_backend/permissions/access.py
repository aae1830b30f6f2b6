"""
Course and section access decisions.

Every call re-reads the authoritative relations (``section_course_teacher``,
``course_coordinator`` and ``section_student``); nothing is cached between
calls and the denormalized ``user_assigned_section`` table is never read.
"""

import logging
from typing import Any, Optional, Set

from sqlalchemy.orm import Session

from lms_backend.api.exceptions import BadRequestException
from lms_backend.model.course import Course
from lms_backend.model.section import SectionCourseTeacher, section_course
from lms_backend.permissions.roles import ADMIN, STUDENT, TEACHER, has_role
from lms_backend.repositories import AssignmentRepository, CourseRepository, SectionRepository
from lms_backend.services.memberships import MembershipService

logger = logging.getLogger(__name__)


def _user_id(user: Any) -> Optional[str]:
    if user is None:
        return None
    if isinstance(user, dict):
        return user.get("user_id") or user.get("id")
    return getattr(user, "user_id", None) or getattr(user, "id", None)


class AccessResolver:

    def __init__(self, db: Session):
        self.db = db
        self.courses = CourseRepository(db)
        self.sections = SectionRepository(db)
        self.assignments = AssignmentRepository(db)
        self.memberships = MembershipService(db)

    def _require_user(self, user: Any) -> str:
        user_id = _user_id(user)
        if not user_id:
            raise BadRequestException(detail={"code": "missing_user", "message": "A user is required"})
        return user_id

    @staticmethod
    def _require_id(value: Optional[str], name: str) -> str:
        if not value:
            raise BadRequestException(detail={"code": f"missing_{name}", "message": f"{name} is required"})
        return value

    def _has_active_assignment(self, teacher_id: str, course_id: str, section_id: Optional[str] = None) -> bool:
        query = self.db.query(SectionCourseTeacher).filter(
            SectionCourseTeacher.teacher_id == teacher_id,
            SectionCourseTeacher.course_id == course_id,
            SectionCourseTeacher.is_active == True
        )
        if section_id is not None:
            query = query.filter(SectionCourseTeacher.section_id == section_id)
        return query.count() > 0

    def can_access_course(self, user: Any, course_id: str) -> bool:
        user_id = self._require_user(user)
        course_id = self._require_id(course_id, "course_id")

        if has_role(user, ADMIN):
            return True

        if has_role(user, TEACHER):
            if self._has_active_assignment(user_id, course_id):
                return True
            return self.courses.is_coordinator(course_id, user_id)

        if has_role(user, STUDENT):
            section = self.memberships.current_section(user_id)
            if section is None:
                return False
            return any(c.id == course_id for c in section.courses)

        return False

    def accessible_course_ids(self, user: Any) -> Set[str]:
        user_id = self._require_user(user)

        if has_role(user, ADMIN):
            return {row[0] for row in self.db.query(Course.id).all()}

        if has_role(user, TEACHER):
            assigned = {a.course_id for a in self.assignments.active_for_teacher(user_id)}
            coordinated = {c.id for c in self.courses.find_coordinated_by(user_id)}
            return assigned | coordinated

        if has_role(user, STUDENT):
            section = self.memberships.current_section(user_id)
            if section is None:
                return set()
            return {c.id for c in section.courses}

        return set()

    def can_access_section(self, user: Any, section_id: str) -> bool:
        user_id = self._require_user(user)
        section_id = self._require_id(section_id, "section_id")

        if has_role(user, ADMIN):
            return True

        section = self.sections.get_by_id_optional(section_id)
        if section is None:
            return False

        if has_role(user, TEACHER):
            if section.teacher_id == user_id:
                return True
            return any(a.teacher_id == user_id for a in self.assignments.active_for_section(section.id))

        if has_role(user, STUDENT):
            return self.sections.membership(section.id, user_id) is not None

        return False

    def can_teach_in_section(self, user: Any, section_id: str, course_id: str) -> bool:
        """
        Teaching authority for one course of one section: either the legacy
        section teacher (every course attached to the section) or the holder
        of the active course-specific assignment.
        """
        user_id = self._require_user(user)
        section_id = self._require_id(section_id, "section_id")
        course_id = self._require_id(course_id, "course_id")

        if has_role(user, ADMIN):
            return True

        if not has_role(user, TEACHER):
            return False

        section = self.sections.get_by_id_optional(section_id)
        if section is None:
            return False

        if section.teacher_id == user_id:
            attached = self.db.query(section_course).filter(
                section_course.c.section_id == section.id,
                section_course.c.course_id == course_id
            ).count() > 0
            if attached:
                return True

        return self._has_active_assignment(user_id, course_id, section.id)
