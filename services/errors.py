"""Error taxonomy shared by the engine and the route layer.

Every error is a werkzeug ``HTTPException`` so the application's JSON error
handler renders it without any per-route translation.
"""

from __future__ import annotations

from werkzeug.exceptions import BadGateway, BadRequest, Conflict, InternalServerError, NotFound

__all__ = [
    "AccessDenied",
    "ConfigurationAbsent",
    "Conflict",
    "NotFound",
    "UpstreamFailure",
    "ValidationError",
]


class ValidationError(BadRequest):
    """Malformed or out-of-range input, reported with per-field detail."""

    def __init__(self, errors: list[dict[str, str]], description: str = "Validation failed."):
        super().__init__(description)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], description=message)


class AccessDenied(NotFound):
    """The actor lacks the required relationship to the resource.

    Rendered exactly like a missing resource so existence is not leaked.
    """

    def __init__(self, resource: str = "Project"):
        super().__init__(f"{resource} not found.")


class UpstreamFailure(BadGateway):
    """A collaborator (Stripe, SMTP) failed while serving the request."""


class ConfigurationAbsent(InternalServerError):
    """A collaborator required for this operation is not configured."""
