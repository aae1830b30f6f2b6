"""
Test fixtures for the test suite.

Every test gets a fresh in-memory SQLite database with the full schema,
including the partial unique indexes, so store-level invariants are
exercised the same way they are in production.
"""

import pytest
from dataclasses import dataclass
from typing import Any, Dict, Generator, List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lms_backend.model import Base, Course, Department, School, Section, SectionStudent, User
from lms_backend.permissions.principal import Principal
from lms_backend.services.notifications import NotificationSender


# Test database setup
@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


class RecordingNotificationSender(NotificationSender):
    """Keeps every notification for assertions."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def notify(self, recipient_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.sent.append({"recipient_id": recipient_id, "message": message, "data": data or {}})


class FailingNotificationSender(NotificationSender):

    def notify(self, recipient_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        raise RuntimeError("notification backend down")


@pytest.fixture
def notifier() -> RecordingNotificationSender:
    return RecordingNotificationSender()


class Factory:
    """Small builders for entity rows; every builder commits."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, entity):
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def school(self, name: str = "School of Science", code: str = "SOS") -> School:
        return self._save(School(name=name, code=code))

    def department(self, school: School, name: str, code: str) -> Department:
        return self._save(Department(school_id=school.id, name=name, code=code))

    def user(self, name: str, role: Optional[str] = None, roles: Optional[List[str]] = None,
             department: Optional[Department] = None, school: Optional[School] = None,
             is_active: bool = True) -> User:
        return self._save(User(
            name=name,
            email=f"{name.lower()}@example.edu",
            role=role,
            roles=roles,
            is_active=is_active,
            department_id=department.id if department is not None else None,
            school_id=school.id if school is not None else None,
        ))

    def course(self, title: str, school: School, department: Department, coordinators: List[User] = None) -> Course:
        course = Course(title=title, code=title.upper(), school_id=school.id, department_id=department.id)
        course.coordinators = coordinators or []
        return self._save(course)

    def section(self, name: str, school: School, courses: List[Course] = None, capacity: int = 80,
                teacher: Optional[User] = None, department: Optional[Department] = None) -> Section:
        section = Section(
            name=name,
            school_id=school.id,
            capacity=capacity,
            teacher_id=teacher.id if teacher is not None else None,
            department_id=department.id if department is not None else None,
            academic_year="2025-2026",
            semester="fall",
        )
        section.courses = courses or []
        return self._save(section)

    def enroll(self, section: Section, student: User) -> SectionStudent:
        """Raw membership row, bypassing the membership service."""
        return self._save(SectionStudent(section_id=section.id, student_id=student.id))


@pytest.fixture
def factory(test_db) -> Factory:
    return Factory(test_db)


@dataclass
class Campus:
    school: School
    chemistry: Department
    physics: Department
    admin: User
    dean: User
    hod: User
    megha: User
    other: User
    physicist: User
    sam: User
    astrochem: Course
    labchem: Course
    unrelated: Course
    quantum: Course
    as001: Section
    as002: Section


@pytest.fixture
def campus(factory) -> Campus:
    """Section As001 offering AstroChem and LabChem, plus the people around it."""
    school = factory.school()
    chemistry = factory.department(school, "Chemistry", "CHEM")
    physics = factory.department(school, "Physics", "PHYS")

    admin = factory.user("AdminX", role="admin")
    dean = factory.user("DeanD", roles=["dean", "teacher"], department=chemistry)
    hod = factory.user("HodH", role="hod", department=chemistry)
    megha = factory.user("TeacherMegha", role="teacher", department=chemistry)
    other = factory.user("TeacherOther", roles=["teacher"], department=chemistry)
    physicist = factory.user("TeacherPhys", role="teacher", department=physics)
    sam = factory.user("Sam", role="student", school=school)

    astrochem = factory.course("AstroChem", school, chemistry)
    labchem = factory.course("LabChem", school, chemistry)
    unrelated = factory.course("UnrelatedCourse", school, chemistry)
    quantum = factory.course("Quantum", school, physics)

    as001 = factory.section("As001", school, courses=[astrochem, labchem, quantum], capacity=80, department=chemistry)
    as002 = factory.section("As002", school, courses=[unrelated], capacity=80, department=chemistry)

    return Campus(
        school=school, chemistry=chemistry, physics=physics,
        admin=admin, dean=dean, hod=hod, megha=megha, other=other, physicist=physicist, sam=sam,
        astrochem=astrochem, labchem=labchem, unrelated=unrelated, quantum=quantum,
        as001=as001, as002=as002,
    )


def principal_for(user: User) -> Principal:
    """Principal as the session provider would issue it for ``user``."""
    roles = list(user.roles) if user.roles else ([user.role] if user.role else [])
    return Principal(user_id=user.id, roles=roles)
