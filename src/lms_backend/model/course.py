from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base, generate_id


course_coordinator = Table(
    'course_coordinator',
    Base.metadata,
    Column('course_id', ForeignKey('course.id', ondelete='CASCADE'), primary_key=True),
    Column('user_id', ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, index=True),
)


class Course(Base):
    __tablename__ = 'course'
    __table_args__ = (
        Index('course_code_key', 'school_id', 'code', unique=True),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    title = Column(String(255), nullable=False)
    code = Column(String(64))
    school_id = Column(ForeignKey('school.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False, index=True)
    department_id = Column(ForeignKey('department.id', ondelete='RESTRICT', onupdate='RESTRICT'), nullable=False, index=True)

    # Relationships
    school = relationship('School', back_populates='courses')
    department = relationship('Department', back_populates='courses')
    coordinators = relationship('User', secondary=course_coordinator, back_populates='coordinated_courses', uselist=True, lazy='select')
    sections = relationship('Section', secondary='section_course', back_populates='courses', uselist=True, lazy='select')

    def __repr__(self):
        return f"<Course {self.id} {self.title}>"
