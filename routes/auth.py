"""Authentication blueprint: accounts, profile and email verification."""

from __future__ import annotations

import smtplib
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, NotFound, Unauthorized

from models import db
from models.user import User
from services import mailer
from services.errors import UpstreamFailure
from utils.auth import issue_token, require_user
from utils.request_validation import (
    check_email,
    check_length,
    normalize_email,
    parse_json_request,
    raise_for_errors,
)

auth_bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 6


def _find_by_email(email: str) -> User | None:
    """Case-insensitive lookup."""
    return User.query.filter(func.lower(User.email) == email).first()


def _send_quietly(send, *args) -> None:
    """Send an account email without failing the enclosing request."""
    try:
        send(*args)
    except (smtplib.SMTPException, OSError):
        current_app.logger.exception("Failed to send %s", send.__name__)


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user with a name, email and password."""
    payload = parse_json_request(request)
    errors: list = []
    name = check_length(payload.get("name"), "name", 2, 50, errors)
    email = check_email(payload.get("email"), errors)
    password = payload.get("password") or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(
            {"field": "password", "message": "Password must be at least 6 characters"}
        )
    raise_for_errors(errors)

    if _find_by_email(email) is not None:
        raise Conflict("A user with that email already exists.")

    user = User(email=email, role="user", is_verified=False)
    user.set_name(name)
    user.set_password(password)
    token = user.issue_verification_token()

    db.session.add(user)
    db.session.commit()

    _send_quietly(mailer.send_verification_email, user, token)

    return (
        jsonify(
            {
                "message": "User registered successfully. Please verify your email to complete setup.",
                "user": user.to_dict(),
                "access_token": issue_token(user),
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = normalize_email(payload.get("email"))
    password = payload.get("password") or ""

    if not email or not password:
        raise BadRequest("Email and password are required.")

    user = _find_by_email(email)
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid email or password.")

    return (
        jsonify({"access_token": issue_token(user), "user": user.to_dict()}),
        HTTPStatus.OK,
    )


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    """Return the authenticated user."""
    return jsonify({"user": require_user().to_dict()})


@auth_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    """Update name, phone, country and preferences."""
    user = require_user()
    payload = parse_json_request(request)
    errors: list = []

    name = None
    if payload.get("name") is not None:
        name = check_length(payload.get("name"), "name", 2, 50, errors)
    phone = payload.get("phone")
    if phone is not None and not (
        isinstance(phone, str) and 7 <= len(phone.strip()) <= 32
    ):
        errors.append({"field": "phone", "message": "phone must be 7-32 characters"})
    country = None
    if payload.get("country") is not None:
        country = check_length(payload.get("country"), "country", 2, 50, errors)
    preferences = payload.get("preferences")
    if preferences is not None and not isinstance(preferences, dict):
        errors.append({"field": "preferences", "message": "preferences must be an object"})
    raise_for_errors(errors)

    if name:
        user.set_name(name)
    if phone:
        user.phone = phone.strip()
    if country:
        user.country = country
    if preferences is not None:
        user.preferences = preferences
    db.session.commit()

    return jsonify({"message": "Profile updated successfully.", "user": user.to_dict()})


@auth_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password():
    """Replace the password after checking the current one."""
    user = require_user()
    payload = parse_json_request(request)
    current_password = payload.get("current_password") or ""
    new_password = payload.get("new_password") or ""

    errors: list = []
    if not current_password:
        errors.append({"field": "current_password", "message": "Current password is required"})
    if len(new_password) < MIN_PASSWORD_LENGTH:
        errors.append(
            {"field": "new_password", "message": "New password must be at least 6 characters"}
        )
    raise_for_errors(errors)

    if not user.check_password(current_password):
        raise BadRequest("Current password is incorrect.")

    user.set_password(new_password)
    db.session.commit()
    return jsonify({"message": "Password changed successfully."})


@auth_bp.route("/verify-email", methods=["GET"])
def verify_email():
    """Consume a one-time verification token."""
    token = (request.args.get("token") or "").strip()
    if not token:
        raise BadRequest("Verification token is required.")

    user = User.query.filter_by(verification_token=token).first()
    if user is None:
        raise BadRequest("Invalid or expired verification token.")

    user.mark_verified()
    db.session.commit()

    _send_quietly(mailer.send_welcome_email, user)
    return jsonify({"message": "Email verified successfully."})


@auth_bp.route("/resend-verification", methods=["POST"])
def resend_verification():
    """Issue a fresh verification token and email it."""
    payload = parse_json_request(request)
    errors: list = []
    email = check_email(payload.get("email"), errors)
    raise_for_errors(errors)

    user = _find_by_email(email)
    if user is None:
        raise NotFound("User not found.")
    if user.is_verified:
        raise BadRequest("Email is already verified.")

    token = user.issue_verification_token()
    db.session.commit()

    try:
        mailer.send_verification_email(user, token)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.exception("Failed to resend verification email")
        raise UpstreamFailure("Failed to send verification email. Please try again later.") from exc

    return jsonify({"message": "Verification email has been sent."})
