"""
Tests for the teacher/dean unlock escalation.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from lms_backend.api.exceptions import (
    BadRequestException,
    EscalationRequiredException,
    ForbiddenException,
    NotFoundException,
)
from lms_backend.model import UnlockLock
from lms_backend.services.unlocks import UnlockService


@pytest.fixture
def service(test_db, notifier):
    return UnlockService(test_db, notifier=notifier)


@pytest.fixture
def lock(test_db, service, campus):
    campus.astrochem.coordinators.append(campus.megha)
    test_db.commit()
    return service.lock(campus.sam.id, "quiz", "quiz-42", "BELOW_PASSING_SCORE", campus.astrochem.id)


class TestLock:

    def test_fresh_lock(self, lock, campus):
        assert lock.is_locked
        assert lock.teacher_unlock_count == 0
        assert lock.dean_unlock_count == 0
        assert lock.authorization_level == "TEACHER"
        assert lock.remaining_teacher_unlocks == 3
        assert lock.course_id == campus.astrochem.id

    def test_relock_keeps_counters(self, service, lock, campus):
        service.teacher_unlock(lock.id, campus.megha.id, "retake")
        relocked = service.lock(campus.sam.id, "quiz", "quiz-42", "TIME_EXCEEDED")

        assert relocked.id == lock.id
        assert relocked.is_locked
        assert relocked.lock_reason == "TIME_EXCEEDED"
        assert relocked.teacher_unlock_count == 1

    def test_separate_targets_get_separate_locks(self, service, lock, campus):
        video = service.lock(campus.sam.id, "video", "quiz-42", "MANUAL_LOCK")
        assert video.id != lock.id

    @pytest.mark.parametrize("target_type,reason", [("essay", "MANUAL_LOCK"), ("quiz", "BORED")])
    def test_rejects_unknown_values(self, service, campus, target_type, reason):
        with pytest.raises(BadRequestException):
            service.lock(campus.sam.id, target_type, "t1", reason)

    def test_unknown_student(self, service):
        with pytest.raises(NotFoundException):
            service.lock("missing", "quiz", "t1", "MANUAL_LOCK")

    def test_store_rejects_duplicate_target(self, test_db, lock, campus):
        test_db.add(UnlockLock(student_id=campus.sam.id, target_type="quiz", target_id="quiz-42", lock_reason="MANUAL_LOCK"))
        with pytest.raises(IntegrityError):
            test_db.commit()
        test_db.rollback()


class TestEscalation:

    def test_escalation_boundary(self, service, lock, campus):
        for expected in (1, 2, 3):
            unlocked = service.teacher_unlock(lock.id, campus.megha.id, "second chance")
            assert unlocked.teacher_unlock_count == expected
            assert not unlocked.is_locked

        assert unlocked.authorization_level == "DEAN"
        assert unlocked.remaining_teacher_unlocks == 0

        with pytest.raises(EscalationRequiredException) as exc:
            service.teacher_unlock(lock.id, campus.megha.id, "one more")
        assert exc.value.status_code == 409
        assert exc.value.detail["teacher_unlock_count"] == 3

        after_dean = service.dean_unlock(lock.id, campus.dean.id, "approved")
        assert after_dean.dean_unlock_count == 1
        assert after_dean.teacher_unlock_count == 3
        assert after_dean.last_dean_unlock_at is not None

    def test_refused_unlock_changes_nothing(self, service, lock, campus, notifier):
        for _ in range(3):
            service.teacher_unlock(lock.id, campus.megha.id, "retry")
        service.lock(campus.sam.id, "quiz", "quiz-42", "BELOW_PASSING_SCORE")
        sent = len(notifier.sent)

        with pytest.raises(EscalationRequiredException):
            service.teacher_unlock(lock.id, campus.megha.id, "retry")

        current = service.get(lock.id)
        assert current.is_locked
        assert current.teacher_unlock_count == 3
        assert len(current.events) == 3
        assert len(notifier.sent) == sent

    def test_dean_unlock_does_not_need_exhausted_quota(self, service, lock, campus):
        unlocked = service.dean_unlock(lock.id, campus.admin.id, "override")
        assert unlocked.dean_unlock_count == 1
        assert unlocked.teacher_unlock_count == 0

    def test_events_record_actor_and_level(self, service, lock, campus):
        service.teacher_unlock(lock.id, campus.megha.id, "retake", notes="missed a question")
        service.dean_unlock(lock.id, campus.dean.id, "approved")

        events = service.get(lock.id).events
        assert [(e.actor_id, e.actor_level) for e in events] == [
            (campus.megha.id, "TEACHER"),
            (campus.dean.id, "DEAN"),
        ]
        assert events[0].notes == "missed a question"

    def test_student_notified_on_every_unlock(self, service, lock, campus, notifier):
        service.teacher_unlock(lock.id, campus.megha.id, "retake")
        service.dean_unlock(lock.id, campus.dean.id, "approved")

        assert [n["recipient_id"] for n in notifier.sent] == [campus.sam.id, campus.sam.id]
        assert [n["data"]["level"] for n in notifier.sent] == ["TEACHER", "DEAN"]


class TestActorRoles:

    def test_student_cannot_teacher_unlock(self, service, lock, campus):
        with pytest.raises(ForbiddenException):
            service.teacher_unlock(lock.id, campus.sam.id, "please")

    def test_teacher_cannot_dean_unlock(self, service, lock, campus):
        with pytest.raises(ForbiddenException):
            service.dean_unlock(lock.id, campus.megha.id, "please")

    def test_admin_may_act_as_teacher(self, service, lock, campus):
        assert service.teacher_unlock(lock.id, campus.admin.id, "fix").teacher_unlock_count == 1

    def test_unrelated_teacher_refused(self, service, factory, lock, campus, notifier):
        factory.enroll(campus.as001, campus.sam)

        with pytest.raises(ForbiddenException):
            service.teacher_unlock(lock.id, campus.physicist.id, "because")

        current = service.get(lock.id)
        assert current.is_locked
        assert current.teacher_unlock_count == 0
        assert current.events == []
        assert notifier.sent == []

    def test_section_teacher_unlocks_course_lock(self, test_db, service, factory, lock, campus):
        factory.enroll(campus.as001, campus.sam)
        campus.as001.teacher_id = campus.other.id
        test_db.commit()

        assert service.teacher_unlock(lock.id, campus.other.id, "retake").teacher_unlock_count == 1

    def test_courseless_lock_follows_student_section(self, test_db, service, factory, campus):
        video = service.lock(campus.sam.id, "video", "video-7", "MANUAL_LOCK")

        with pytest.raises(ForbiddenException):
            service.teacher_unlock(video.id, campus.other.id, "watch again")

        factory.enroll(campus.as001, campus.sam)
        campus.as001.teacher_id = campus.other.id
        test_db.commit()

        assert service.teacher_unlock(video.id, campus.other.id, "watch again").teacher_unlock_count == 1
        with pytest.raises(ForbiddenException):
            service.teacher_unlock(video.id, campus.physicist.id, "watch again")

    def test_unknown_lock(self, service, campus):
        with pytest.raises(NotFoundException) as exc:
            service.teacher_unlock("missing", campus.megha.id, "x")
        assert exc.value.detail["entity"] == "Lock"
