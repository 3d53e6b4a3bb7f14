"""Tests for the User and Subscription model helpers."""

from datetime import datetime, timedelta

from models import db
from models.subscription import Subscription
from models.user import User
from services.avatar import derive_avatar


def test_user_verification_helpers(app):
    """Ensure helper methods toggle verification state as expected."""

    user = User(email="helper@example.com", role="user")
    user.set_name("Helper Person")
    user.set_password("password123")
    token = user.issue_verification_token()
    db.session.add(user)
    db.session.commit()

    assert user.is_verified is False
    assert len(token) == 64
    assert User.query.filter_by(verification_token=token).one() is user

    user.mark_verified()
    db.session.commit()
    db.session.refresh(user)

    assert user.is_verified is True
    assert user.verification_token is None


def test_set_name_rederives_avatar(app):
    user = User(email="avatar@example.com")
    user.set_name("Grace Hopper")
    first = user.avatar

    assert first == derive_avatar("Grace Hopper").data_url

    user.set_name("Alan Turing")
    assert user.avatar != first
    assert user.avatar == derive_avatar("Alan Turing").data_url


def test_password_hash_checks_and_is_never_serialized(app):
    user = User(email="secret@example.com")
    user.set_name("Secret Keeper")
    user.set_password("hunter22")
    db.session.add(user)
    db.session.commit()

    assert user.check_password("hunter22")
    assert not user.check_password("hunter23")
    assert "password_hash" not in user.to_dict()
    assert user.to_dict()["role"] == "user"
    assert user.to_summary() == {
        "id": user.id,
        "name": "Secret Keeper",
        "email": "secret@example.com",
        "avatar": user.avatar,
        "role": "user",
    }


def test_subscription_activity_window(app):
    user = User(email="sub@example.com")
    user.set_name("Sub Scriber")
    user.set_password("password123")
    db.session.add(user)
    db.session.flush()

    now = datetime(2026, 1, 1)
    subscription = Subscription(
        user=user,
        plan="premium",
        status="active",
        current_period_end=now + timedelta(days=3),
    )
    db.session.add(subscription)
    db.session.commit()

    assert subscription.is_active(now)
    assert not subscription.is_active(now + timedelta(days=4))
    subscription.status = "canceled"
    assert not subscription.is_active(now)
    assert user.to_dict()["subscription"]["plan"] == "premium"
