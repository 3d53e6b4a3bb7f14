"""Tests covering registration, login, profile and email verification flows."""

from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from models import db
from models.user import User
from services.avatar import derive_avatar


def _register(client: FlaskClient, **overrides):
    payload = {"name": "Nina Nixon", "email": "nina@example.com", "password": "Secret123"}
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_returns_user_and_token(client: FlaskClient, db_session):
    response = _register(client, email="  Nina@Example.com ")

    assert response.status_code == 201
    data = response.get_json()
    assert data["access_token"]
    assert data["user"]["email"] == "nina@example.com"
    assert data["user"]["role"] == "user"
    assert data["user"]["is_verified"] is False
    assert data["user"]["avatar"] == derive_avatar("Nina Nixon").data_url
    assert "password_hash" not in data["user"]

    user = User.query.filter_by(email="nina@example.com").one()
    assert user.verification_token


def test_register_duplicate_email_conflicts(client: FlaskClient, db_session):
    _register(client)

    response = _register(client, email="NINA@example.com")

    assert response.status_code == 409
    assert response.get_json()["error"] == "Conflict"


def test_register_reports_field_errors(client: FlaskClient, db_session):
    response = client.post(
        "/auth/register", json={"name": "N", "email": "not-an-email", "password": "123"}
    )

    assert response.status_code == 400
    fields = {error["field"] for error in response.get_json()["errors"]}
    assert fields == {"name", "email", "password"}


def test_login_returns_access_token(client: FlaskClient, make_user):
    """Users should receive a JWT when providing valid credentials."""

    make_user("Jo Login", email="jo@example.com", password="JoPass123")

    response = client.post(
        "/auth/login",
        json={"email": "jo@example.com", "password": "JoPass123"},
    )

    assert response.status_code == 200
    data = response.get_json()
    assert "access_token" in data
    assert data["user"]["email"] == "jo@example.com"


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "jo@example.com"}, 400),
        ({"password": "JoPass123"}, 400),
        ({"email": "jo@example.com", "password": "wrong"}, 401),
        ({"email": "nobody@example.com", "password": "JoPass123"}, 401),
    ],
)
def test_login_validation(client: FlaskClient, make_user, payload, status_code):
    """Login endpoint should validate request bodies and credentials."""

    make_user("Jo Login", email="jo@example.com", password="JoPass123")

    response = client.post("/auth/login", json=payload)

    assert response.status_code == status_code


def test_me_returns_current_user(client: FlaskClient, make_user, auth_headers):
    user = make_user("Me Myself")

    response = client.get("/auth/me", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == user.id


def test_profile_update_rederives_avatar(client: FlaskClient, make_user, auth_headers):
    user = make_user("Old Name")

    response = client.put(
        "/auth/profile",
        json={"name": "New Name", "country": "Portugal", "preferences": {"theme": "dark"}},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    data = response.get_json()["user"]
    assert data["name"] == "New Name"
    assert data["avatar"] == derive_avatar("New Name").data_url
    assert data["country"] == "Portugal"
    assert data["preferences"] == {"theme": "dark"}


def test_change_password(client: FlaskClient, make_user, auth_headers):
    user = make_user("Pass Changer", email="change@example.com")
    headers = auth_headers(user)

    wrong = client.post(
        "/auth/change-password",
        json={"current_password": "nope", "new_password": "Another123"},
        headers=headers,
    )
    assert wrong.status_code == 400

    response = client.post(
        "/auth/change-password",
        json={"current_password": "Secret123", "new_password": "Another123"},
        headers=headers,
    )
    assert response.status_code == 200

    login = client.post(
        "/auth/login", json={"email": "change@example.com", "password": "Another123"}
    )
    assert login.status_code == 200


def test_verify_email_consumes_token(client: FlaskClient, db_session):
    _register(client)
    token = User.query.filter_by(email="nina@example.com").one().verification_token

    response = client.get(f"/auth/verify-email?token={token}")
    assert response.status_code == 200

    user = User.query.filter_by(email="nina@example.com").one()
    assert user.is_verified is True
    assert user.verification_token is None

    again = client.get(f"/auth/verify-email?token={token}")
    assert again.status_code == 400


def test_verify_email_requires_token(client: FlaskClient, db_session):
    assert client.get("/auth/verify-email").status_code == 400


def test_resend_verification(client: FlaskClient, make_user):
    _register(client)
    old_token = User.query.filter_by(email="nina@example.com").one().verification_token

    response = client.post("/auth/resend-verification", json={"email": "nina@example.com"})

    assert response.status_code == 200
    db.session.expire_all()
    assert User.query.filter_by(email="nina@example.com").one().verification_token != old_token

    unknown = client.post("/auth/resend-verification", json={"email": "ghost@example.com"})
    assert unknown.status_code == 404

    make_user("Verified Vic", email="vic@example.com", is_verified=True)
    verified = client.post("/auth/resend-verification", json={"email": "vic@example.com"})
    assert verified.status_code == 400
