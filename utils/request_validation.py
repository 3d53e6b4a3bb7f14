"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from typing import Iterable, Mapping

from email_validator import EmailNotValidError, validate_email
from flask import Request
from werkzeug.exceptions import BadRequest

from services.errors import ValidationError


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=False)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise ValidationError(
                [{"field": key, "message": f"{key} is required"} for key in sorted(missing)],
                description="Missing required fields: {}.".format(", ".join(sorted(missing))),
            )

    return data


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""

    return (raw_email or "").strip().lower()


def check_email(raw_email: str | None, errors: list, field: str = "email") -> str:
    """Validate email syntax, appending a field error on failure."""

    email = normalize_email(raw_email)
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        errors.append({"field": field, "message": "Please provide a valid email"})
    return email


def check_length(
    value, field: str, minimum: int, maximum: int | None, errors: list
) -> str:
    """Trim a string field and append an error if its length is out of range."""

    text = value.strip() if isinstance(value, str) else ""
    too_long = maximum is not None and len(text) > maximum
    if len(text) < minimum or too_long:
        if maximum is None:
            message = f"{field} must be at least {minimum} characters"
        else:
            message = f"{field} must be {minimum}-{maximum} characters"
        errors.append({"field": field, "message": message})
    return text


def query_int(
    args: Mapping[str, str],
    name: str,
    default: int,
    *,
    minimum: int = 1,
    maximum: int | None = None,
) -> int:
    """Parse a positive integer query parameter."""

    raw = args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError.for_field(name, f"{name} must be an integer")
    if value < minimum or (maximum is not None and value > maximum):
        bound = f"{minimum}-{maximum}" if maximum is not None else f"at least {minimum}"
        raise ValidationError.for_field(name, f"{name} must be {bound}")
    return value


def raise_for_errors(errors: list) -> None:
    if errors:
        raise ValidationError(errors)
