"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import User  # noqa: E402
from realtime import Publisher  # noqa: E402
from services import projects  # noqa: E402
from utils.auth import issue_token  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    STRIPE_SECRET_KEY = "sk_test"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    MAIL_SERVER = None
    FRONTEND_URL = "https://app.example.com"


class RecordingPublisher(Publisher):
    """Captures realtime events instead of emitting them."""

    def __init__(self):
        self.events: list[tuple[str, str, dict]] = []

    def publish(self, channel, event, payload):
        self.events.append((channel, event, payload))

    def named(self, event: str) -> list[tuple[str, str, dict]]:
        return [item for item in self.events if item[1] == event]


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application with a fresh in-memory database."""

    application = create_app(_BaseTestConfig)

    ctx = application.app_context()
    ctx.push()
    db.create_all()

    yield application

    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def db_session(app: Flask):
    return db.session


@pytest.fixture()
def publisher(app: Flask) -> RecordingPublisher:
    recorder = RecordingPublisher()
    app.extensions["publisher"] = recorder
    return recorder


@pytest.fixture()
def make_user(app: Flask):
    """Factory persisting users with a password of ``Secret123``."""

    counter = {"n": 0}

    def _make(
        name: str = "Test User",
        role: str = "user",
        email: str | None = None,
        password: str = "Secret123",
        **fields,
    ):
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            role=role,
            **fields,
        )
        user.set_name(name)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers(app: Flask):
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user)}"}

    return _headers


@pytest.fixture()
def project_data() -> dict:
    return {
        "title": "Neighbourhood market",
        "description": "A marketplace app for local produce sellers.",
        "category": "mobile-app",
        "priority": "high",
        "budget": {"planned": 2500},
    }


@pytest.fixture()
def make_project(app: Flask, project_data):
    """Factory creating a draft project through the lifecycle service."""

    def _make(owner: User, **overrides):
        return projects.create_project(owner, {**project_data, **overrides})

    return _make


@pytest.fixture()
def roles(make_user):
    """An owner, a developer, an admin and an unrelated user."""

    return {
        "owner": make_user("Olive Owner"),
        "developer": make_user("Dev Eloper", role="developer"),
        "admin": make_user("Ada Admin", role="admin"),
        "stranger": make_user("Sam Stranger"),
    }
