from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Table, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base, generate_id


# Denormalized back-reference of Section membership. Written only by the
# membership service; authorization never reads it.
user_assigned_section = Table(
    'user_assigned_section',
    Base.metadata,
    Column('user_id', ForeignKey('user.id', ondelete='CASCADE'), primary_key=True),
    Column('section_id', ForeignKey('section.id', ondelete='CASCADE'), primary_key=True),
)


class User(Base):
    __tablename__ = 'user'

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True)
    # Legacy single role; `roles` takes precedence whenever it is present
    role = Column(String(32))
    roles = Column(JSON)
    primary_role = Column(String(32))
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    school_id = Column(ForeignKey('school.id', ondelete='SET NULL'), index=True)
    department_id = Column(ForeignKey('department.id', ondelete='SET NULL'), index=True)

    school = relationship('School', foreign_keys=[school_id])
    department = relationship('Department', foreign_keys=[department_id])
    assigned_sections = relationship('Section', secondary=user_assigned_section, uselist=True, lazy='select')
    coordinated_courses = relationship('Course', secondary='course_coordinator', back_populates='coordinators', uselist=True, lazy='select')

    def __repr__(self):
        return f"<User {self.id} {self.name}>"
