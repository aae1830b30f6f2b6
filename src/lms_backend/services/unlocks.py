"""
Unlock escalation for quiz and video locks.

Teachers may unlock a given lock at most TEACHER_UNLOCK_QUOTA times; after
that only an actor with dean authority can unlock it. The quota is enforced
by a conditional UPDATE so concurrent teacher unlocks cannot overshoot it.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms_backend.api.exceptions import (
    BadRequestException,
    EscalationRequiredException,
    ForbiddenException,
)
from lms_backend.model.base import utcnow
from lms_backend.model.unlock import (
    LOCK_REASONS,
    LOCK_TARGET_TYPES,
    TEACHER_UNLOCK_QUOTA,
    UnlockEvent,
    UnlockLock,
)
from lms_backend.model.auth import User
from lms_backend.permissions.access import AccessResolver
from lms_backend.permissions.roles import ADMIN, DEAN_AUTHORITY_ROLES, TEACHER, has_any_role, has_role
from lms_backend.repositories import CourseRepository, UnlockLockRepository, UserRepository
from lms_backend.services.memberships import MembershipService
from lms_backend.services.notifications import NotificationSender, default_sender, send_quietly

logger = logging.getLogger(__name__)

TEACHER_LEVEL = "TEACHER"
DEAN_LEVEL = "DEAN"


class UnlockService:

    def __init__(self, db: Session, notifier: Optional[NotificationSender] = None):
        self.db = db
        self.notifier = notifier if notifier is not None else default_sender()
        self.locks = UnlockLockRepository(db)
        self.users = UserRepository(db)
        self.courses = CourseRepository(db)

    def get(self, lock_id: str) -> UnlockLock:
        return self.locks.get_by_id(lock_id)

    def lock(self, student_id: str, target_type: str, target_id: str, reason: str, course_id: Optional[str] = None) -> UnlockLock:
        """Lock a target for a student, re-locking the existing record if there is one."""
        if target_type not in LOCK_TARGET_TYPES:
            raise BadRequestException(detail={
                "code": "invalid_target_type",
                "message": f"target_type must be one of {', '.join(LOCK_TARGET_TYPES)}",
            })
        if reason not in LOCK_REASONS:
            raise BadRequestException(detail={
                "code": "invalid_lock_reason",
                "message": f"reason must be one of {', '.join(LOCK_REASONS)}",
            })

        student = self.users.get_by_id(student_id)
        if course_id is not None:
            self.courses.get_by_id(course_id)

        lock = self.locks.find_for_target(student.id, target_type, target_id)

        if lock is None:
            lock = UnlockLock(
                student_id=student.id,
                target_type=target_type,
                target_id=target_id,
                course_id=course_id,
                lock_reason=reason,
                locked_at=utcnow(),
                is_locked=True,
            )
            try:
                self.db.add(lock)
                self.db.commit()
            except IntegrityError:
                # Created concurrently; fall through to re-lock it
                self.db.rollback()
                lock = self.locks.find_for_target(student.id, target_type, target_id)
                if lock is None:
                    raise
            else:
                self.db.refresh(lock)
                logger.info(f"Locked {target_type} {target_id} for student {student.id} ({reason})")
                return lock

        lock.is_locked = True
        lock.lock_reason = reason
        lock.locked_at = utcnow()
        if course_id is not None:
            lock.course_id = course_id
        self.db.commit()
        self.db.refresh(lock)

        logger.info(f"Re-locked {target_type} {target_id} for student {student.id} ({reason})")
        return lock

    def _record_event(self, lock: UnlockLock, actor_id: str, level: str, reason: str, notes: Optional[str]):
        self.db.add(UnlockEvent(
            lock_id=lock.id,
            actor_id=actor_id,
            actor_level=level,
            reason=reason,
            notes=notes,
            unlocked_at=utcnow(),
        ))

    def _notify_student(self, lock: UnlockLock, level: str):
        send_quietly(self.notifier, lock.student_id, f"Your {lock.target_type} has been unlocked", {
            "type": "unlocked",
            "lock_id": lock.id,
            "target_type": lock.target_type,
            "target_id": lock.target_id,
            "level": level,
        })

    def _teaches_student(self, teacher: User, lock: UnlockLock) -> bool:
        """
        A teacher may unlock when they can access the locked course, or when
        they teach the student's current section.
        """
        if has_role(teacher, ADMIN):
            return True

        access = AccessResolver(self.db)
        if lock.course_id is not None and access.can_access_course(teacher, lock.course_id):
            return True

        section = MembershipService(self.db).current_section(lock.student_id)
        if section is None:
            return False
        if lock.course_id is not None:
            return access.can_teach_in_section(teacher, section.id, lock.course_id)
        return access.can_access_section(teacher, section.id)

    def teacher_unlock(self, lock_id: str, teacher_id: str, reason: str, notes: Optional[str] = None) -> UnlockLock:
        lock = self.locks.get_by_id(lock_id)
        teacher = self.users.get_by_id(teacher_id)

        if not has_any_role(teacher, (TEACHER, ADMIN)):
            raise ForbiddenException(detail={"code": "forbidden", "message": "Teacher role required to unlock"})

        if not self._teaches_student(teacher, lock):
            logger.warning(f"Teacher {teacher.id} refused on lock {lock.id}: does not teach student {lock.student_id}")
            raise ForbiddenException(detail={
                "code": "forbidden",
                "message": "Only a teacher of the student's course or section may unlock",
            })

        now = utcnow()
        updated = self.db.query(UnlockLock).filter(
            UnlockLock.id == lock.id,
            UnlockLock.teacher_unlock_count < TEACHER_UNLOCK_QUOTA
        ).update({
            UnlockLock.teacher_unlock_count: UnlockLock.teacher_unlock_count + 1,
            UnlockLock.is_locked: False,
            UnlockLock.last_teacher_unlock_at: now,
        }, synchronize_session=False)

        if updated == 0:
            self.db.rollback()
            self.db.refresh(lock)
            logger.warning(f"Teacher {teacher.id} refused on lock {lock.id}: quota of {TEACHER_UNLOCK_QUOTA} exhausted")
            raise EscalationRequiredException(lock.id, lock.teacher_unlock_count)

        self._record_event(lock, teacher.id, TEACHER_LEVEL, reason, notes)
        self.db.commit()
        self.db.refresh(lock)

        logger.info(f"Teacher {teacher.id} unlocked lock {lock.id} ({lock.teacher_unlock_count}/{TEACHER_UNLOCK_QUOTA})")
        self._notify_student(lock, TEACHER_LEVEL)

        return lock

    def dean_unlock(self, lock_id: str, dean_id: str, reason: str, notes: Optional[str] = None) -> UnlockLock:
        lock = self.locks.get_by_id(lock_id)
        dean = self.users.get_by_id(dean_id)

        if not has_any_role(dean, DEAN_AUTHORITY_ROLES):
            raise ForbiddenException(detail={"code": "forbidden", "message": "Dean authority required to unlock"})

        self.db.query(UnlockLock).filter(UnlockLock.id == lock.id).update({
            UnlockLock.dean_unlock_count: UnlockLock.dean_unlock_count + 1,
            UnlockLock.is_locked: False,
            UnlockLock.last_dean_unlock_at: utcnow(),
        }, synchronize_session=False)

        self._record_event(lock, dean.id, DEAN_LEVEL, reason, notes)
        self.db.commit()
        self.db.refresh(lock)

        logger.info(f"Dean {dean.id} unlocked lock {lock.id} (dean unlocks: {lock.dean_unlock_count})")
        self._notify_student(lock, DEAN_LEVEL)

        return lock
