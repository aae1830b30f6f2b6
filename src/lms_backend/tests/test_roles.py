"""
Tests for role resolution over legacy and multi-role user shapes.
"""

import pytest
from types import SimpleNamespace

from lms_backend.permissions.principal import Principal
from lms_backend.permissions.roles import (
    filter_users_with_any_role,
    get_user_roles,
    has_all_roles,
    has_any_role,
    has_role,
    is_admin,
    is_dean,
    is_hod,
    is_student,
    is_teacher,
    primary_role,
)


class TestHasRole:

    def test_legacy_role(self):
        user = {"role": "teacher"}
        assert has_role(user, "teacher")
        assert not has_role(user, "student")

    def test_roles_list_takes_precedence(self):
        user = {"role": "student", "roles": ["teacher", "hod"]}
        assert has_role(user, "teacher")
        assert has_role(user, "hod")
        assert not has_role(user, "student")

    def test_empty_roles_list_falls_back_to_legacy(self):
        assert has_role({"role": "dean", "roles": []}, "dean")

    def test_exact_match_only(self):
        assert not has_role({"roles": ["teachers"]}, "teacher")
        assert not has_role({"role": "Teacher"}, "teacher")

    @pytest.mark.parametrize("user", [None, {}, {"role": None}, {"roles": None}, SimpleNamespace()])
    def test_no_roles_never_raises(self, user):
        assert not has_role(user, "admin")
        assert get_user_roles(user) == frozenset()

    def test_attribute_objects(self):
        user = SimpleNamespace(role=None, roles=["student"])
        assert is_student(user)
        assert not is_teacher(user)

    def test_principal(self):
        principal = Principal(user_id="u1", roles=["dean", "teacher"])
        assert is_dean(principal)
        assert not is_hod(principal)
        assert is_teacher(principal)
        assert not is_admin(principal)


class TestComposition:

    def test_has_any_role(self):
        user = {"roles": ["teacher"]}
        assert has_any_role(user, ["admin", "teacher"])
        assert not has_any_role(user, ["admin", "dean"])
        assert not has_any_role(user, [])

    def test_has_all_roles(self):
        user = {"roles": ["teacher", "dean"]}
        assert has_all_roles(user, ["teacher", "dean"])
        assert not has_all_roles(user, ["teacher", "admin"])
        assert not has_all_roles(user, [])

    def test_filter_users_with_any_role(self):
        users = [
            {"name": "a", "role": "teacher"},
            {"name": "b", "roles": ["student"]},
            {"name": "c", "roles": ["dean", "teacher"]},
        ]
        assert [u["name"] for u in filter_users_with_any_role(users, ["teacher"])] == ["a", "c"]


class TestPrimaryRole:

    def test_explicit_primary_role(self):
        assert primary_role({"roles": ["teacher", "dean"], "primary_role": "dean"}) == "dean"

    def test_first_of_roles(self):
        assert primary_role({"roles": ["hod", "teacher"], "role": "student"}) == "hod"

    def test_legacy_role(self):
        assert primary_role({"role": "student"}) == "student"

    def test_none(self):
        assert primary_role({}) is None
        assert primary_role(None) is None
