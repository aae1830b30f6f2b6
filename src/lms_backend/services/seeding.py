"""
Load organization fixtures (schools, departments, users, courses and
sections) from a SeedDocument.

Loading is idempotent: entities are matched by school code, department
code, user email, course code and section name, and updated in place.
Student memberships go through MembershipService so the seed obeys the
same capacity and one-section rules as the API.
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from lms_backend.api.exceptions import NotFoundException
from lms_backend.interface.seed import SeedDocument
from lms_backend.model import Course, Department, School, Section, User
from lms_backend.services.memberships import MembershipService
from lms_backend.settings import settings

logger = logging.getLogger(__name__)


def _missing(entity: str, key: str) -> NotFoundException:
    return NotFoundException(detail={
        "code": "not_found",
        "entity": entity,
        "id": key,
        "message": f"{entity} '{key}' referenced by the seed does not exist",
    })


class Seeder:

    def __init__(self, db: Session):
        self.db = db
        self.schools: Dict[str, School] = {}
        self.departments: Dict[tuple, Department] = {}
        self.users: Dict[str, User] = {}
        self.courses: Dict[tuple, Course] = {}

    def _school(self, code: str) -> School:
        school = self.schools.get(code) or self.db.query(School).filter(School.code == code).first()
        if school is None:
            raise _missing("School", code)
        self.schools[code] = school
        return school

    def _department(self, school: School, code: Optional[str]) -> Optional[Department]:
        if code is None:
            return None
        key = (school.id, code)
        department = self.departments.get(key) or self.db.query(Department).filter(
            Department.school_id == school.id,
            Department.code == code
        ).first()
        if department is None:
            raise _missing("Department", f"{school.code}/{code}")
        self.departments[key] = department
        return department

    def _user(self, email: str) -> User:
        user = self.users.get(email) or self.db.query(User).filter(User.email == email).first()
        if user is None:
            raise _missing("User", email)
        self.users[email] = user
        return user

    def _course(self, school: School, code: str) -> Course:
        key = (school.id, code)
        course = self.courses.get(key) or self.db.query(Course).filter(
            Course.school_id == school.id,
            Course.code == code
        ).first()
        if course is None:
            raise _missing("Course", f"{school.code}/{code}")
        self.courses[key] = course
        return course

    def load(self, document: SeedDocument) -> Dict[str, int]:
        counts = {"schools": 0, "departments": 0, "users": 0, "courses": 0, "sections": 0, "students": 0}

        for entry in document.schools:
            school = self.db.query(School).filter(School.code == entry.code).first()
            if school is None:
                school = School(code=entry.code, name=entry.name)
                self.db.add(school)
            else:
                school.name = entry.name
            self.schools[entry.code] = school
            counts["schools"] += 1
        self.db.flush()

        for entry in document.departments:
            school = self._school(entry.school)
            department = self.db.query(Department).filter(
                Department.school_id == school.id,
                Department.code == entry.code
            ).first()
            if department is None:
                department = Department(school_id=school.id, code=entry.code, name=entry.name)
                self.db.add(department)
            else:
                department.name = entry.name
            self.departments[(school.id, entry.code)] = department
            counts["departments"] += 1
        self.db.flush()

        for entry in document.users:
            school = self._school(entry.school) if entry.school else None
            department = self._department(school, entry.department) if school is not None else None
            user = self.db.query(User).filter(User.email == entry.email).first()
            if user is None:
                user = User(email=entry.email)
                self.db.add(user)
            user.name = entry.name
            user.role = entry.role
            user.roles = entry.roles
            user.primary_role = entry.primary_role
            user.is_active = entry.is_active
            user.school_id = school.id if school is not None else None
            user.department_id = department.id if department is not None else None
            self.users[entry.email] = user
            counts["users"] += 1
        self.db.flush()

        for entry in document.courses:
            school = self._school(entry.school)
            department = self._department(school, entry.department)
            course = self.db.query(Course).filter(
                Course.school_id == school.id,
                Course.code == entry.code
            ).first()
            if course is None:
                course = Course(school_id=school.id, code=entry.code)
                self.db.add(course)
            course.title = entry.title
            course.department_id = department.id
            course.coordinators = [self._user(email) for email in entry.coordinators]
            self.courses[(school.id, entry.code)] = course
            counts["courses"] += 1
        self.db.flush()

        pending_students = []

        for entry in document.sections:
            school = self._school(entry.school)
            department = self._department(school, entry.department)
            section = self.db.query(Section).filter(
                Section.school_id == school.id,
                Section.name == entry.name
            ).first()
            if section is None:
                section = Section(school_id=school.id, name=entry.name)
                self.db.add(section)
            section.department_id = department.id if department is not None else None
            section.capacity = entry.capacity if entry.capacity is not None else settings.DEFAULT_SECTION_CAPACITY
            section.teacher_id = self._user(entry.teacher).id if entry.teacher else None
            section.academic_year = entry.academic_year
            section.semester = entry.semester
            section.courses = [self._course(school, code) for code in entry.courses]
            if entry.students:
                pending_students.append((section, [self._user(email).id for email in entry.students]))
            counts["sections"] += 1

        self.db.commit()

        memberships = MembershipService(self.db)
        for section, student_ids in pending_students:
            outcome = memberships.assign_students(section.id, student_ids)
            counts["students"] += len(outcome["assigned"])

        logger.info(f"Seed loaded: {counts}")
        return counts
