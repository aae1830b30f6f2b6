"""
Lock records for quizzes and videos and the unlock events applied to them.

A lock never leaves a terminal "unlocked" state; unlocking is an event on
the record and a later failure re-locks the same record.
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey,
    Index, Integer, String, Text, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base, generate_id, utcnow

TEACHER_UNLOCK_QUOTA = 3

LOCK_TARGET_TYPES = ("quiz", "video")
LOCK_REASONS = ("BELOW_PASSING_SCORE", "SECURITY_VIOLATION", "TIME_EXCEEDED", "MANUAL_LOCK")


class UnlockLock(Base):
    __tablename__ = 'unlock_lock'
    __table_args__ = (
        Index('unlock_lock_target_key', 'student_id', 'target_type', 'target_id', unique=True),
        Index('unlock_lock_course_idx', 'course_id', 'is_locked'),
        CheckConstraint(
            f"teacher_unlock_count >= 0 AND teacher_unlock_count <= {TEACHER_UNLOCK_QUOTA}",
            name='check_teacher_unlock_quota'
        ),
        CheckConstraint("dean_unlock_count >= 0", name='check_dean_unlock_count'),
        CheckConstraint("target_type IN ('quiz', 'video')", name='check_lock_target_type'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    student_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    # Quiz and video content live in external stores and are referenced by id only
    target_type = Column(String(16), nullable=False)
    target_id = Column(String(64), nullable=False)
    course_id = Column(ForeignKey('course.id', ondelete='SET NULL'))
    is_locked = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    lock_reason = Column(String(64), nullable=False)
    locked_at = Column(DateTime(True), nullable=False, default=utcnow)
    teacher_unlock_count = Column(Integer, nullable=False, default=0, server_default=text("0"))
    dean_unlock_count = Column(Integer, nullable=False, default=0, server_default=text("0"))
    last_teacher_unlock_at = Column(DateTime(True))
    last_dean_unlock_at = Column(DateTime(True))

    # Relationships
    student = relationship('User', foreign_keys=[student_id])
    course = relationship('Course')
    events = relationship('UnlockEvent', back_populates='lock', uselist=True, lazy='select', order_by='UnlockEvent.unlocked_at')

    @property
    def remaining_teacher_unlocks(self) -> int:
        return max(0, TEACHER_UNLOCK_QUOTA - (self.teacher_unlock_count or 0))

    @property
    def authorization_level(self) -> str:
        if (self.teacher_unlock_count or 0) < TEACHER_UNLOCK_QUOTA:
            return "TEACHER"
        return "DEAN"


class UnlockEvent(Base):
    __tablename__ = 'unlock_event'
    __table_args__ = (
        CheckConstraint("actor_level IN ('TEACHER', 'DEAN')", name='check_unlock_actor_level'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    lock_id = Column(ForeignKey('unlock_lock.id', ondelete='CASCADE'), nullable=False, index=True)
    actor_id = Column(ForeignKey('user.id', ondelete='SET NULL'))
    actor_level = Column(String(16), nullable=False)
    reason = Column(String(1024), nullable=False)
    notes = Column(Text)
    unlocked_at = Column(DateTime(True), nullable=False, default=utcnow)

    lock = relationship('UnlockLock', back_populates='events')
    actor = relationship('User')
