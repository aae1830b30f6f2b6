"""
Student membership of sections.

``section_student`` is authoritative; ``user_assigned_section`` is the
denormalized back-reference kept for display. Both are written in the same
commit so they cannot diverge through this service.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms_backend.api.exceptions import (
    AlreadyAssignedException,
    CapacityExceededException,
    CrossSectionConflictException,
    NotFoundException,
    NotMemberException,
)
from lms_backend.model.auth import User, user_assigned_section
from lms_backend.model.section import Section, SectionStudent
from lms_backend.permissions.roles import STUDENT, has_role
from lms_backend.repositories import SectionRepository, UserRepository

logger = logging.getLogger(__name__)


class MembershipService:

    def __init__(self, db: Session):
        self.db = db
        self.sections = SectionRepository(db)
        self.users = UserRepository(db)

    def _load_student(self, student_id: str) -> User:
        student = self.users.get_by_id_optional(student_id)
        if student is None or not student.is_active or not has_role(student, STUDENT):
            raise NotFoundException(detail={
                "code": "not_found",
                "entity": "Student",
                "id": str(student_id),
                "message": "Student not found or user is not a student",
            })
        return student

    def _link_back_reference(self, student: User, section: Section):
        if not any(s.id == section.id for s in student.assigned_sections):
            student.assigned_sections.append(section)

    def _conflict_after_race(self, students: List[User], section: Section) -> Optional[Exception]:
        """Name the student whose membership the unique index rejected, if any."""
        for student in students:
            other = self.sections.find_other_section_of_student(student.id, section.id)
            if other is not None:
                return CrossSectionConflictException(student.name, other.name)
            if self.sections.membership(section.id, student.id) is not None:
                return AlreadyAssignedException(student.name, section.name)
        return None

    def assign_student(self, section_id: str, student_id: str) -> SectionStudent:
        section = self.sections.get_for_update(section_id)
        student = self._load_student(student_id)

        if self.sections.membership(section.id, student.id) is not None:
            raise AlreadyAssignedException(student.name, section.name)

        current = self.sections.member_count(section.id)
        if current + 1 > section.capacity:
            logger.warning(f"Section {section.id} is full ({current}/{section.capacity})")
            raise CapacityExceededException(section.name, section.capacity, 1)

        other = self.sections.find_other_section_of_student(student.id, section.id)
        if other is not None:
            logger.warning(f"Student {student.id} already belongs to section {other.id}")
            raise CrossSectionConflictException(student.name, other.name)

        membership = SectionStudent(section_id=section.id, student_id=student.id)

        try:
            self.db.add(membership)
            self._link_back_reference(student, section)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            conflict = self._conflict_after_race([student], section)
            if conflict is None:
                raise
            raise conflict

        logger.info(f"Student {student.id} assigned to section {section.id}")
        return membership

    def assign_students(self, section_id: str, student_ids: List[str]) -> Dict[str, List[str]]:
        """
        Add several students in one commit.

        Students already in the section are skipped. A student found in any
        other section aborts the whole batch before anything is written, and
        capacity is checked once against the number of students to add.
        """
        section = self.sections.get_for_update(section_id)

        unique_ids = list(dict.fromkeys(student_ids))
        students = [self._load_student(student_id) for student_id in unique_ids]

        skipped = [s for s in students if self.sections.membership(section.id, s.id) is not None]
        skipped_ids = {s.id for s in skipped}
        to_add = [s for s in students if s.id not in skipped_ids]

        for student in to_add:
            other = self.sections.find_other_section_of_student(student.id, section.id)
            if other is not None:
                logger.warning(f"Bulk assignment to section {section.id} aborted: student {student.id} is in section {other.id}")
                raise CrossSectionConflictException(student.name, other.name)

        current = self.sections.member_count(section.id)
        if current + len(to_add) > section.capacity:
            raise CapacityExceededException(section.name, section.capacity, len(to_add))

        if to_add:
            try:
                for student in to_add:
                    self.db.add(SectionStudent(section_id=section.id, student_id=student.id))
                    self._link_back_reference(student, section)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                conflict = self._conflict_after_race(to_add, section)
                if conflict is None:
                    raise
                raise conflict

        logger.info(f"Assigned {len(to_add)} student(s) to section {section.id}, skipped {len(skipped)}")

        return {
            "assigned": [s.id for s in to_add],
            "skipped": [s.id for s in skipped],
        }

    def remove_student(self, section_id: str, student_id: str):
        section = self.sections.get_by_id(section_id)
        student = self.users.get_by_id(student_id)

        membership = self.sections.membership(section.id, student.id)
        if membership is None:
            raise NotMemberException(student.name, section.name)

        self.db.delete(membership)
        student.assigned_sections = [s for s in student.assigned_sections if s.id != section.id]
        self.db.commit()

        logger.info(f"Student {student.id} removed from section {section.id}")

    def current_section(self, student_id: str) -> Optional[Section]:
        """
        The section a student belongs to, read from the authoritative relation.

        Rows written before the unique index existed may leave a student in
        several sections; the most recently joined one wins and the
        condition is logged for repair.
        """
        memberships = self.sections.memberships_of_student(student_id)
        if not memberships:
            return None

        if len(memberships) > 1:
            logger.warning(
                f"Student {student_id} belongs to {len(memberships)} sections "
                f"({', '.join(m.section_id for m in memberships)}); using {memberships[0].section_id}"
            )

        return memberships[0].section

    def _membership_pairs(self) -> set:
        rows = self.db.execute(select(SectionStudent.student_id, SectionStudent.section_id)).all()
        return {(r[0], r[1]) for r in rows}

    def _back_reference_pairs(self) -> set:
        rows = self.db.execute(select(user_assigned_section.c.user_id, user_assigned_section.c.section_id)).all()
        return {(r[0], r[1]) for r in rows}

    def check_consistency(self) -> Dict[str, Any]:
        forward = self._membership_pairs()
        backward = self._back_reference_pairs()

        sections_per_student: Dict[str, List[str]] = {}
        for student_id, section_id in forward:
            sections_per_student.setdefault(student_id, []).append(section_id)

        report = {
            "missing_back_references": [
                {"student_id": student_id, "section_id": section_id}
                for student_id, section_id in sorted(forward - backward)
            ],
            "stale_back_references": [
                {"student_id": student_id, "section_id": section_id}
                for student_id, section_id in sorted(backward - forward)
            ],
            "students_in_multiple_sections": [
                {"student_id": student_id, "section_ids": sorted(section_ids)}
                for student_id, section_ids in sorted(sections_per_student.items())
                if len(section_ids) > 1
            ],
        }

        if report["missing_back_references"] or report["stale_back_references"]:
            logger.warning(
                f"Membership back-references disagree: {len(report['missing_back_references'])} missing, "
                f"{len(report['stale_back_references'])} stale"
            )

        return report

    def sync_back_references(self) -> int:
        """Rewrite the back-reference table from ``section_student``; returns rows changed."""
        forward = self._membership_pairs()
        backward = self._back_reference_pairs()

        missing = forward - backward
        stale = backward - forward

        for student_id, section_id in missing:
            self.db.execute(user_assigned_section.insert().values(user_id=student_id, section_id=section_id))

        for student_id, section_id in stale:
            self.db.execute(user_assigned_section.delete().where(
                user_assigned_section.c.user_id == student_id,
                user_assigned_section.c.section_id == section_id
            ))

        self.db.commit()

        fixed = len(missing) + len(stale)
        if fixed:
            logger.info(f"Synchronized {fixed} membership back-reference(s)")
        return fixed
