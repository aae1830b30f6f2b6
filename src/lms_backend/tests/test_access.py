"""
Tests for course and section access decisions.
"""

import pytest

from lms_backend.api.exceptions import BadRequestException
from lms_backend.model import SectionCourseTeacher
from lms_backend.model.base import utcnow
from lms_backend.permissions.access import AccessResolver
from lms_backend.permissions.principal import Principal
from lms_backend.services.assignments import AssignmentService
from lms_backend.services.memberships import MembershipService
from lms_backend.services.notifications import NullNotificationSender
from lms_backend.tests.fixtures import principal_for


@pytest.fixture
def resolver(test_db):
    return AccessResolver(test_db)


@pytest.fixture
def assignments(test_db):
    return AssignmentService(test_db, notifier=NullNotificationSender())


class TestCanAccessCourse:

    def test_student_scenario(self, test_db, resolver, campus):
        MembershipService(test_db).assign_student(campus.as001.id, campus.sam.id)

        assert resolver.can_access_course(campus.sam, campus.astrochem.id)
        assert not resolver.can_access_course(campus.sam, campus.unrelated.id)

    def test_student_without_section(self, resolver, campus):
        assert not resolver.can_access_course(campus.sam, campus.astrochem.id)

    def test_teacher_scenario(self, resolver, assignments, campus):
        megha = principal_for(campus.megha)
        assert not resolver.can_access_course(megha, campus.astrochem.id)

        assignments.assign(campus.as001.id, campus.astrochem.id, campus.megha.id, campus.admin.id)
        assert resolver.can_access_course(megha, campus.astrochem.id)
        assert not resolver.can_access_course(megha, campus.labchem.id)

        assignments.remove(campus.megha.id, campus.as001.id, campus.astrochem.id, campus.admin.id)
        assert not resolver.can_access_course(megha, campus.astrochem.id)

    def test_coordinator(self, test_db, resolver, campus):
        campus.unrelated.coordinators.append(campus.other)
        test_db.commit()

        assert resolver.can_access_course(principal_for(campus.other), campus.unrelated.id)
        assert not resolver.can_access_course(principal_for(campus.megha), campus.unrelated.id)

    def test_legacy_section_teacher_does_not_grant_course_access(self, factory, resolver, campus):
        factory.section("Ls100", campus.school, courses=[campus.labchem], teacher=campus.megha)
        assert not resolver.can_access_course(principal_for(campus.megha), campus.labchem.id)

    def test_admin(self, resolver, campus):
        assert resolver.can_access_course(principal_for(campus.admin), campus.quantum.id)
        assert resolver.can_access_course(Principal(user_id="anyone", roles=["admin"]), "whatever")

    def test_unknown_role(self, resolver, campus):
        assert not resolver.can_access_course(principal_for(campus.hod), campus.astrochem.id)

    def test_teacher_branch_wins_over_student_branch(self, test_db, factory, resolver, campus):
        hybrid = factory.user("Hybrid", roles=["teacher", "student"], department=campus.chemistry)
        MembershipService(test_db).assign_student(campus.as001.id, hybrid.id)
        assert not resolver.can_access_course(principal_for(hybrid), campus.astrochem.id)

    def test_reads_membership_not_back_reference(self, test_db, resolver, campus):
        # Stale back-reference only
        campus.sam.assigned_sections.append(campus.as001)
        test_db.commit()
        assert not resolver.can_access_course(campus.sam, campus.astrochem.id)

    def test_malformed_input(self, resolver, campus):
        with pytest.raises(BadRequestException):
            resolver.can_access_course(None, campus.astrochem.id)
        with pytest.raises(BadRequestException):
            resolver.can_access_course(principal_for(campus.sam), None)
        with pytest.raises(BadRequestException):
            resolver.can_access_course(Principal(roles=["admin"]), campus.astrochem.id)


class TestAccessibleCourseIds:

    def test_admin_gets_everything(self, resolver, campus):
        ids = resolver.accessible_course_ids(principal_for(campus.admin))
        assert ids == {campus.astrochem.id, campus.labchem.id, campus.unrelated.id, campus.quantum.id}

    def test_teacher_union(self, test_db, resolver, assignments, campus):
        assignments.assign(campus.as001.id, campus.astrochem.id, campus.megha.id, campus.admin.id)
        campus.unrelated.coordinators.append(campus.megha)
        test_db.commit()

        assert resolver.accessible_course_ids(principal_for(campus.megha)) == {campus.astrochem.id, campus.unrelated.id}

    def test_inactive_rows_ignored(self, test_db, resolver, campus):
        test_db.add(SectionCourseTeacher(
            section_id=campus.as001.id, course_id=campus.labchem.id, teacher_id=campus.megha.id,
            is_active=False, removed_at=utcnow()
        ))
        test_db.commit()
        assert resolver.accessible_course_ids(principal_for(campus.megha)) == set()

    def test_student(self, test_db, resolver, campus):
        MembershipService(test_db).assign_student(campus.as001.id, campus.sam.id)
        assert resolver.accessible_course_ids(campus.sam) == {campus.astrochem.id, campus.labchem.id, campus.quantum.id}

    def test_nobody(self, resolver, campus):
        assert resolver.accessible_course_ids(principal_for(campus.hod)) == set()
        assert resolver.accessible_course_ids(principal_for(campus.sam)) == set()


class TestSectionScopedAccess:

    def test_can_access_section(self, test_db, factory, resolver, assignments, campus):
        legacy = factory.section("Ls100", campus.school, courses=[campus.labchem], teacher=campus.megha)
        assignments.assign(campus.as001.id, campus.astrochem.id, campus.other.id, campus.admin.id)
        MembershipService(test_db).assign_student(campus.as002.id, campus.sam.id)

        assert resolver.can_access_section(principal_for(campus.megha), legacy.id)
        assert not resolver.can_access_section(principal_for(campus.megha), campus.as001.id)
        assert resolver.can_access_section(principal_for(campus.other), campus.as001.id)
        assert resolver.can_access_section(principal_for(campus.sam), campus.as002.id)
        assert not resolver.can_access_section(principal_for(campus.sam), campus.as001.id)
        assert resolver.can_access_section(principal_for(campus.admin), campus.as001.id)
        assert not resolver.can_access_section(principal_for(campus.megha), "missing")

    def test_can_teach_in_section(self, factory, resolver, assignments, campus):
        legacy = factory.section("Ls100", campus.school, courses=[campus.labchem], teacher=campus.megha)
        assignments.assign(campus.as001.id, campus.astrochem.id, campus.other.id, campus.admin.id)

        megha = principal_for(campus.megha)
        other = principal_for(campus.other)

        assert resolver.can_teach_in_section(megha, legacy.id, campus.labchem.id)
        assert not resolver.can_teach_in_section(megha, legacy.id, campus.astrochem.id)
        assert resolver.can_teach_in_section(other, campus.as001.id, campus.astrochem.id)
        assert not resolver.can_teach_in_section(other, campus.as001.id, campus.labchem.id)
        assert not resolver.can_teach_in_section(principal_for(campus.sam), campus.as001.id, campus.astrochem.id)
        assert resolver.can_teach_in_section(principal_for(campus.admin), campus.as001.id, campus.astrochem.id)
