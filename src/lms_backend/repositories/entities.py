"""
Repositories for the entity store.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..api.exceptions import entity_not_found
from ..model.auth import User
from ..model.course import Course
from ..model.section import Section, SectionCourseTeacher, SectionStudent
from ..model.unlock import UnlockLock


class UserRepository(BaseRepository[User]):

    def __init__(self, db: Session):
        super().__init__(db, User)

    def find_active_in_department(self, department_id: Optional[str]) -> List[User]:
        query = self.db.query(User).filter(User.is_active == True)
        if department_id is not None:
            query = query.filter(User.department_id == department_id)
        return query.order_by(User.name).all()


class CourseRepository(BaseRepository[Course]):

    def __init__(self, db: Session):
        super().__init__(db, Course)

    def is_coordinator(self, course_id: str, user_id: str) -> bool:
        course = self.get_by_id_optional(course_id)
        if course is None:
            return False
        return any(u.id == user_id for u in course.coordinators)

    def find_coordinated_by(self, user_id: str) -> List[Course]:
        return self.db.query(Course).filter(
            Course.coordinators.any(User.id == user_id)
        ).all()


class SectionRepository(BaseRepository[Section]):

    def __init__(self, db: Session):
        super().__init__(db, Section)

    def get_for_update(self, section_id: str) -> Section:
        """Load and row-lock a section so capacity checks serialize (no-op on SQLite)."""
        section = self.db.query(Section).filter(
            Section.id == section_id
        ).with_for_update().first()
        if section is None:
            raise entity_not_found(self.name, section_id)
        return section

    def find_by_legacy_teacher(self, teacher_id: str) -> List[Section]:
        return self.db.query(Section).filter(
            Section.teacher_id == teacher_id
        ).order_by(Section.name).all()

    def memberships_of_student(self, student_id: str) -> List[SectionStudent]:
        """All membership rows for a student, most recently joined first."""
        return self.db.query(SectionStudent).filter(
            SectionStudent.student_id == student_id
        ).order_by(SectionStudent.joined_at.desc()).all()

    def find_other_section_of_student(self, student_id: str, section_id: str) -> Optional[Section]:
        return self.db.query(Section).join(
            SectionStudent, SectionStudent.section_id == Section.id
        ).filter(
            SectionStudent.student_id == student_id,
            Section.id != section_id
        ).first()

    def member_count(self, section_id: str) -> int:
        return self.db.query(SectionStudent).filter(
            SectionStudent.section_id == section_id
        ).count()

    def membership(self, section_id: str, student_id: str) -> Optional[SectionStudent]:
        return self.db.query(SectionStudent).filter(
            SectionStudent.section_id == section_id,
            SectionStudent.student_id == student_id
        ).first()


class AssignmentRepository(BaseRepository[SectionCourseTeacher]):

    entity_name = "Assignment"

    def __init__(self, db: Session):
        super().__init__(db, SectionCourseTeacher)

    def find_active(self, section_id: str, course_id: str) -> Optional[SectionCourseTeacher]:
        return self.db.query(SectionCourseTeacher).filter(
            SectionCourseTeacher.section_id == section_id,
            SectionCourseTeacher.course_id == course_id,
            SectionCourseTeacher.is_active == True
        ).first()

    def history(self, section_id: str, course_id: str) -> List[SectionCourseTeacher]:
        return self.db.query(SectionCourseTeacher).filter(
            SectionCourseTeacher.section_id == section_id,
            SectionCourseTeacher.course_id == course_id
        ).order_by(SectionCourseTeacher.assigned_at.desc()).all()

    def active_for_teacher(self, teacher_id: str) -> List[SectionCourseTeacher]:
        return self.db.query(SectionCourseTeacher).filter(
            SectionCourseTeacher.teacher_id == teacher_id,
            SectionCourseTeacher.is_active == True
        ).order_by(SectionCourseTeacher.assigned_at.desc()).all()

    def active_for_section(self, section_id: str) -> List[SectionCourseTeacher]:
        return self.db.query(SectionCourseTeacher).filter(
            SectionCourseTeacher.section_id == section_id,
            SectionCourseTeacher.is_active == True
        ).order_by(SectionCourseTeacher.assigned_at.desc()).all()

    def all_active(self) -> List[SectionCourseTeacher]:
        return self.db.query(SectionCourseTeacher).filter(
            SectionCourseTeacher.is_active == True
        ).all()


class UnlockLockRepository(BaseRepository[UnlockLock]):

    entity_name = "Lock"

    def __init__(self, db: Session):
        super().__init__(db, UnlockLock)

    def find_for_target(self, student_id: str, target_type: str, target_id: str) -> Optional[UnlockLock]:
        return self.find_one_by(student_id=student_id, target_type=target_type, target_id=target_id)
