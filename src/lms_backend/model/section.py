"""
SQLAlchemy models for sections, their memberships and course-teacher assignments.

Two "at most one active owner of a key" invariants live here and are both
enforced by unique indexes rather than by application checks:

- one student belongs to at most one section (``section_student_student_key``)
- one active teacher per course per section (``section_course_teacher_active_key``)
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey,
    Index, Integer, String, Table, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base, generate_id, utcnow


section_course = Table(
    'section_course',
    Base.metadata,
    Column('section_id', ForeignKey('section.id', ondelete='CASCADE'), primary_key=True),
    Column('course_id', ForeignKey('course.id', ondelete='CASCADE'), primary_key=True, index=True),
)


class Section(Base):
    __tablename__ = 'section'
    __table_args__ = (
        CheckConstraint('capacity >= 0', name='check_section_capacity'),
        Index('section_name_key', 'school_id', 'name', unique=True),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    school_id = Column(ForeignKey('school.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False, index=True)
    department_id = Column(ForeignKey('department.id', ondelete='SET NULL'), index=True)
    capacity = Column(Integer, nullable=False, default=80, server_default=text("80"))
    # Legacy single teacher, grants authority over every course of the section
    teacher_id = Column(ForeignKey('user.id', ondelete='SET NULL'), index=True)
    academic_year = Column(String(32))
    semester = Column(String(32))

    # Relationships
    school = relationship('School', back_populates='sections')
    department = relationship('Department')
    teacher = relationship('User', foreign_keys=[teacher_id])
    courses = relationship('Course', secondary=section_course, back_populates='sections', uselist=True, lazy='select')
    memberships = relationship('SectionStudent', back_populates='section', uselist=True, lazy='select', cascade='all, delete-orphan')
    students = relationship('User', secondary='section_student', viewonly=True, uselist=True, lazy='select')
    course_teachers = relationship('SectionCourseTeacher', back_populates='section', uselist=True, lazy='select')

    def __repr__(self):
        return f"<Section {self.id} {self.name}>"


class SectionStudent(Base):
    """Authoritative section membership of a student."""

    __tablename__ = 'section_student'
    __table_args__ = (
        # One student, one section
        Index('section_student_student_key', 'student_id', unique=True),
    )

    section_id = Column(ForeignKey('section.id', ondelete='CASCADE'), primary_key=True)
    student_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True)
    joined_at = Column(DateTime(True), nullable=False, default=utcnow)

    section = relationship('Section', back_populates='memberships')
    student = relationship('User')


class SectionCourseTeacher(Base):
    """
    Binds one teacher to one course within one section.

    Rows are never deleted. Removal flips ``is_active`` and stamps the removal
    metadata; a later assignment of the same (section, course) key appends a
    new row linked to its predecessor, so every key keeps its full history.
    """

    __tablename__ = 'section_course_teacher'
    __table_args__ = (
        # Only one active teacher per course per section
        Index(
            'section_course_teacher_active_key',
            'section_id',
            'course_id',
            unique=True,
            postgresql_where=text('is_active'),
            sqlite_where=text('is_active'),
        ),
        Index('section_course_teacher_teacher_idx', 'teacher_id', 'is_active'),
        CheckConstraint(
            "is_active OR removed_at IS NOT NULL",
            name='check_removal_consistency'
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    section_id = Column(ForeignKey('section.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False, index=True)
    teacher_id = Column(ForeignKey('user.id', ondelete='RESTRICT', onupdate='RESTRICT'), nullable=False)
    assigned_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    assigned_at = Column(DateTime(True), nullable=False, default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    academic_year = Column(String(32))
    semester = Column(String(32))
    removed_at = Column(DateTime(True))
    removed_by = Column(ForeignKey('user.id', ondelete='SET NULL'))
    previous_assignment_id = Column(ForeignKey('section_course_teacher.id', ondelete='SET NULL'))

    # Relationships
    section = relationship('Section', back_populates='course_teachers')
    course = relationship('Course')
    teacher = relationship('User', foreign_keys=[teacher_id])
    assigned_by_user = relationship('User', foreign_keys=[assigned_by])
    removed_by_user = relationship('User', foreign_keys=[removed_by])
    previous_assignment = relationship('SectionCourseTeacher', remote_side=[id], uselist=False)

    def __repr__(self):
        return f"<SectionCourseTeacher section={self.section_id} course={self.course_id} teacher={self.teacher_id} active={self.is_active}>"
