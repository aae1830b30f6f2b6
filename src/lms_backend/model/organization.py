from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base, generate_id


class School(Base):
    __tablename__ = 'school'
    __table_args__ = (
        Index('school_code_key', 'code', unique=True),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    code = Column(String(64))

    # Relationships
    departments = relationship('Department', back_populates='school', uselist=True, lazy='select')
    courses = relationship('Course', back_populates='school', uselist=True, lazy='select')
    sections = relationship('Section', back_populates='school', uselist=True, lazy='select')


class Department(Base):
    __tablename__ = 'department'
    __table_args__ = (
        Index('department_code_key', 'school_id', 'code', unique=True),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    name = Column(String(255), nullable=False)
    code = Column(String(64))
    school_id = Column(ForeignKey('school.id', ondelete='CASCADE', onupdate='RESTRICT'), nullable=False, index=True)

    # Relationships
    school = relationship('School', back_populates='departments')
    courses = relationship('Course', back_populates='department', uselist=True, lazy='select')
