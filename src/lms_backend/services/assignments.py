"""
Section/course/teacher assignment service.

Keeps the SectionCourseTeacher join table consistent (one active teacher
per course per section, history kept as inactive rows) and reconciles it
with the legacy ``Section.teacher_id`` field when a teacher's full
assignment surface is requested.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms_backend.api.exceptions import (
    AssignmentConflictException,
    ConflictException,
    DepartmentMismatchException,
    NotFoundException,
    entity_not_found,
)
from lms_backend.model.auth import User
from lms_backend.model.course import Course
from lms_backend.model.section import Section, SectionCourseTeacher
from lms_backend.model.base import utcnow
from lms_backend.permissions.roles import TEACHER, filter_users_with_any_role, has_role
from lms_backend.repositories import (
    AssignmentRepository,
    CourseRepository,
    SectionRepository,
    UserRepository,
)
from lms_backend.services.notifications import NotificationSender, default_sender, send_quietly

logger = logging.getLogger(__name__)


class AssignmentStatus(str, Enum):
    CREATED = "created"
    REACTIVATED = "reactivated"
    ALREADY_ASSIGNED = "already_assigned"


class AssignmentType(str, Enum):
    DIRECT = "direct"
    COURSE_SPECIFIC = "course_specific"


class ScopeKind(str, Enum):
    SECTION_DIRECT = "section_direct"
    COURSE_SPECIFIC = "course_specific"


@dataclass
class AssignmentResult:
    status: AssignmentStatus
    assignment: SectionCourseTeacher


@dataclass
class AuthorityScope:
    """One piece of evidence that a teacher may act in a section.

    ``section_direct`` covers every course of the section (legacy field),
    ``course_specific`` covers exactly one course through an active row.
    """
    kind: ScopeKind
    section: Section
    course: Optional[Course] = None
    assignment: Optional[SectionCourseTeacher] = None


@dataclass
class TeacherSectionAssignment:
    section: Section
    assignment_type: AssignmentType
    courses: List[Course] = field(default_factory=list)
    specific_assignments: List[SectionCourseTeacher] = field(default_factory=list)
    scopes: List[AuthorityScope] = field(default_factory=list)

    @property
    def course_ids(self) -> List[str]:
        return [c.id for c in self.courses]


@dataclass
class BulkAssignmentResult:
    results: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.results) + len(self.errors),
            "successful": len([r for r in self.results if r["status"] != AssignmentStatus.ALREADY_ASSIGNED]),
            "skipped": len([r for r in self.results if r["status"] == AssignmentStatus.ALREADY_ASSIGNED]),
            "failed": len(self.errors),
        }


def _department_name(entity: Any) -> Optional[str]:
    department = getattr(entity, "department", None)
    return department.name if department is not None else None


class AssignmentService:

    def __init__(self, db: Session, notifier: Optional[NotificationSender] = None):
        self.db = db
        self.notifier = notifier if notifier is not None else default_sender()
        self.sections = SectionRepository(db)
        self.courses = CourseRepository(db)
        self.users = UserRepository(db)
        self.assignments = AssignmentRepository(db)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _load_teacher(self, teacher_id: str) -> User:
        teacher = self.users.get_by_id_optional(teacher_id)
        if teacher is None or not teacher.is_active or not has_role(teacher, TEACHER):
            raise NotFoundException(detail={
                "code": "not_found",
                "entity": "Teacher",
                "id": str(teacher_id),
                "message": "Teacher not found. Only active users with the teacher role can be assigned.",
            })
        return teacher

    def _department_mismatch(self, teacher: User, course: Course) -> Optional[Dict[str, Any]]:
        # Only constrained when both sides carry a department
        if teacher.department_id is None or course.department_id is None:
            return None
        if teacher.department_id == course.department_id:
            return None
        return {
            "course_id": course.id,
            "course_title": course.title,
            "teacher_name": teacher.name,
            "course_department": _department_name(course),
            "teacher_department": _department_name(teacher),
        }

    def _require_actor(self, actor_id: Optional[str]):
        if actor_id is not None:
            self.users.get_by_id(actor_id)

    def _require_course_in_section(self, section: Section, course: Course):
        if not any(c.id == course.id for c in section.courses):
            raise NotFoundException(detail={
                "code": "course_not_in_section",
                "section": section.name,
                "course": course.title,
                "message": f'Course "{course.title}" is not offered in section "{section.name}"',
            })

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def assign(self, section_id: str, course_id: str, teacher_id: str, assigner_id: Optional[str]) -> AssignmentResult:
        """
        Bind ``teacher_id`` to ``course_id`` within ``section_id``.

        Returns ``already_assigned`` when the same teacher already holds the
        active row. Raises AssignmentConflictException when another teacher
        holds it, including when a concurrent request wins the race to the
        partial unique index.
        """
        section = self.sections.get_by_id(section_id)
        course = self.courses.get_by_id(course_id)
        self._require_course_in_section(section, course)
        teacher = self._load_teacher(teacher_id)
        self._require_actor(assigner_id)

        mismatch = self._department_mismatch(teacher, course)
        if mismatch is not None:
            logger.warning(f"Rejected assignment of {teacher.id} to {course.id}: department mismatch")
            raise DepartmentMismatchException([mismatch])

        active = self.assignments.find_active(section.id, course.id)
        if active is not None:
            if active.teacher_id == teacher.id:
                return AssignmentResult(AssignmentStatus.ALREADY_ASSIGNED, active)
            raise AssignmentConflictException(section.name, course.title, active.teacher.name if active.teacher else None)

        history = self.assignments.history(section.id, course.id)
        previous = history[0] if history else None

        assignment = SectionCourseTeacher(
            section_id=section.id,
            course_id=course.id,
            teacher_id=teacher.id,
            assigned_by=assigner_id,
            assigned_at=utcnow(),
            is_active=True,
            academic_year=section.academic_year,
            semester=section.semester,
            previous_assignment_id=previous.id if previous is not None else None,
        )

        try:
            self.db.add(assignment)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.assignments.find_active(section.id, course.id)
            if winner is None:
                # Not the active-slot index; a foreign key or other constraint
                raise
            if winner.teacher_id == teacher.id:
                return AssignmentResult(AssignmentStatus.ALREADY_ASSIGNED, winner)
            logger.warning(f"Concurrent assignment detected for section {section.id} course {course.id}")
            raise AssignmentConflictException(section.name, course.title, winner.teacher.name if winner.teacher else None)

        self.db.refresh(assignment)

        status = AssignmentStatus.REACTIVATED if previous is not None else AssignmentStatus.CREATED
        logger.info(f"Teacher {teacher.id} assigned to course {course.id} in section {section.id} by {assigner_id} ({status.value})")

        send_quietly(self.notifier, teacher.id, f'You have been assigned to teach "{course.title}" in section "{section.name}"', {
            "type": "teacher_assigned",
            "section_id": section.id,
            "course_id": course.id,
            "assignment_id": assignment.id,
        })

        return AssignmentResult(status, assignment)

    def assign_courses(self, teacher_id: str, section_id: str, course_ids: List[str], assigner_id: Optional[str]) -> BulkAssignmentResult:
        """Assign one teacher to several courses of a section, reporting per course."""
        section = self.sections.get_by_id(section_id)
        teacher = self._load_teacher(teacher_id)
        self._require_actor(assigner_id)

        courses = [self.courses.get_by_id(course_id) for course_id in course_ids]

        mismatches = [m for m in (self._department_mismatch(teacher, c) for c in courses) if m is not None]
        if mismatches:
            raise DepartmentMismatchException(mismatches)

        outcome = BulkAssignmentResult()

        for course in courses:
            try:
                result = self.assign(section.id, course.id, teacher.id, assigner_id)
                outcome.results.append({
                    "course_id": course.id,
                    "status": result.status.value,
                    "assignment_id": result.assignment.id,
                })
            except (ConflictException, NotFoundException) as e:
                outcome.errors.append({
                    "course_id": course.id,
                    "detail": e.detail,
                })

        return outcome

    def remove(self, teacher_id: str, section_id: str, course_id: str, remover_id: Optional[str]) -> SectionCourseTeacher:
        """Soft-delete the active row matching all three keys."""
        self._require_actor(remover_id)

        assignment = self.assignments.find_one_by(
            teacher_id=teacher_id,
            section_id=section_id,
            course_id=course_id,
            is_active=True
        )

        if assignment is None:
            raise entity_not_found("Assignment", f"{section_id}/{course_id}/{teacher_id}")

        assignment.is_active = False
        assignment.removed_at = utcnow()
        assignment.removed_by = remover_id
        self.db.commit()
        self.db.refresh(assignment)

        logger.info(f"Assignment {assignment.id} removed by {remover_id}")

        send_quietly(self.notifier, teacher_id, "A teaching assignment has been removed", {
            "type": "teacher_unassigned",
            "section_id": section_id,
            "course_id": course_id,
            "assignment_id": assignment.id,
        })

        return assignment

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_active_for_teacher(self, teacher_id: str) -> List[SectionCourseTeacher]:
        return self.assignments.active_for_teacher(teacher_id)

    def list_for_section(self, section_id: str) -> List[SectionCourseTeacher]:
        self.sections.get_by_id(section_id)
        return self.assignments.active_for_section(section_id)

    def history(self, section_id: str, course_id: str) -> List[SectionCourseTeacher]:
        return self.assignments.history(section_id, course_id)

    def authority_scopes(self, teacher_id: str) -> List[AuthorityScope]:
        scopes = [
            AuthorityScope(kind=ScopeKind.SECTION_DIRECT, section=section)
            for section in self.sections.find_by_legacy_teacher(teacher_id)
        ]
        for assignment in self.assignments.active_for_teacher(teacher_id):
            if assignment.section is None or assignment.course is None:
                continue
            scopes.append(AuthorityScope(
                kind=ScopeKind.COURSE_SPECIFIC,
                section=assignment.section,
                course=assignment.course,
                assignment=assignment,
            ))
        return scopes

    def list_for_teacher(self, teacher_id: str) -> List[TeacherSectionAssignment]:
        """
        Union of legacy whole-section assignments and active course-specific
        rows, one entry per section, courses deduplicated by id.
        """
        self.users.get_by_id(teacher_id)

        by_section: Dict[str, TeacherSectionAssignment] = {}

        for scope in self.authority_scopes(teacher_id):
            entry = by_section.get(scope.section.id)

            if scope.kind == ScopeKind.SECTION_DIRECT:
                if entry is None:
                    entry = TeacherSectionAssignment(section=scope.section, assignment_type=AssignmentType.DIRECT)
                    by_section[scope.section.id] = entry
                entry.assignment_type = AssignmentType.DIRECT
                entry.scopes.append(scope)
                self._merge_courses(entry, scope.section.courses)
                continue

            if entry is None:
                entry = TeacherSectionAssignment(section=scope.section, assignment_type=AssignmentType.COURSE_SPECIFIC)
                by_section[scope.section.id] = entry
            entry.scopes.append(scope)
            entry.specific_assignments.append(scope.assignment)
            self._merge_courses(entry, [scope.course])

        return sorted(by_section.values(), key=lambda e: e.section.name)

    @staticmethod
    def _merge_courses(entry: TeacherSectionAssignment, courses: List[Course]):
        known = set(entry.course_ids)
        for course in courses:
            if course.id not in known:
                entry.courses.append(course)
                known.add(course.id)

    def unassigned_courses(self, section_id: str) -> List[Course]:
        section = self.sections.get_by_id(section_id)
        assigned = {a.course_id for a in self.assignments.active_for_section(section.id)}
        return [c for c in section.courses if c.id not in assigned]

    def available_teachers(self, course_id: str, section_id: Optional[str] = None) -> List[User]:
        """Active teachers of the course's department, minus the current holder."""
        course = self.courses.get_by_id(course_id)
        teachers = filter_users_with_any_role(
            self.users.find_active_in_department(course.department_id),
            [TEACHER]
        )

        if section_id is not None:
            active = self.assignments.find_active(section_id, course.id)
            if active is not None:
                teachers = [t for t in teachers if t.id != active.teacher_id]

        return teachers

    def validate(self) -> Dict[str, Any]:
        """Audit active rows for department mismatches and dangling references."""
        issues = []
        active = self.assignments.all_active()

        for assignment in active:
            if assignment.section is None or assignment.course is None or assignment.teacher is None:
                issues.append({
                    "type": "orphaned_assignment",
                    "assignment_id": assignment.id,
                    "issue": "Missing section, course, or teacher reference",
                })
                continue

            mismatch = self._department_mismatch(assignment.teacher, assignment.course)
            if mismatch is not None:
                issues.append({
                    "type": "department_mismatch",
                    "assignment_id": assignment.id,
                    "section_name": assignment.section.name,
                    **mismatch,
                })

            if not any(c.id == assignment.course_id for c in assignment.section.courses):
                issues.append({
                    "type": "course_not_in_section",
                    "assignment_id": assignment.id,
                    "section_name": assignment.section.name,
                    "course_title": assignment.course.title,
                })

        return {
            "total_assignments": len(active),
            "issues": issues,
            "department_mismatches": len([i for i in issues if i["type"] == "department_mismatch"]),
            "orphaned_assignments": len([i for i in issues if i["type"] == "orphaned_assignment"]),
            "detached_courses": len([i for i in issues if i["type"] == "course_not_in_section"]),
        }
