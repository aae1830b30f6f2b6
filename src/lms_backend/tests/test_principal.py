"""
Tests for the bearer credential and the principal dependency.
"""

import base64
import pytest
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from lms_backend.api.exceptions import UnauthorizedException
from lms_backend.permissions.auth import get_current_principal
from lms_backend.permissions.principal import Principal


def test_roles_are_deduplicated_and_admin_derived():
    principal = Principal(user_id="u1", roles=["admin", "teacher", "admin", ""])
    assert principal.roles == ["admin", "teacher"]
    assert principal.is_admin
    assert principal.role_set == frozenset(["admin", "teacher"])


def test_encode_decode():
    principal = Principal(user_id="u1", roles=["teacher"], primary_role="teacher")
    decoded = Principal.decode(principal.encode())
    assert decoded.user_id == "u1"
    assert decoded.roles == ["teacher"]
    assert not decoded.is_admin


@pytest.mark.parametrize("token", ["not base64!!", base64.b64encode(b"not json").decode(), base64.b64encode(b'{"roles": 5}').decode()])
def test_decode_rejects_malformed(token):
    with pytest.raises(UnauthorizedException):
        Principal.decode(token)


def test_get_user_id_or_throw():
    from lms_backend.api.exceptions import NotFoundException
    with pytest.raises(NotFoundException):
        Principal().get_user_id_or_throw()
    assert Principal(user_id="x").get_user_id_or_throw() == "x"


@pytest.fixture
def client():
    app = FastAPI()

    @app.get("/me")
    def me(principal: Principal = Depends(get_current_principal)):
        return {"user_id": principal.user_id, "roles": principal.roles}

    return TestClient(app)


class TestPrincipalDependency:

    def test_valid_bearer(self, client):
        token = Principal(user_id="u1", roles=["student"]).encode().decode()
        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json() == {"user_id": "u1", "roles": ["student"]}

    def test_missing_header(self, client):
        response = client.get("/me")
        assert response.status_code == 401
        assert response.headers.get("WWW-Authenticate") == "Bearer"

    def test_wrong_scheme(self, client):
        response = client.get("/me", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_token_without_user(self, client):
        token = Principal(roles=["admin"]).encode().decode()
        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
