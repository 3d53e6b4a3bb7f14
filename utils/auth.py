"""Resolve the authenticated user behind the current request."""

from __future__ import annotations

from flask_jwt_extended import create_access_token, get_jwt_identity
from werkzeug.exceptions import Forbidden, Unauthorized

from models import db
from models.user import User


def issue_token(user: User) -> str:
    """Create a bearer token carrying the user id and role."""

    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


def current_user() -> User | None:
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return None
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def require_user() -> User:
    user = current_user()
    if user is None:
        raise Unauthorized("User not found.")
    return user


def require_admin() -> User:
    user = require_user()
    if user.role != "admin":
        raise Forbidden("Admin privileges required.")
    return user
