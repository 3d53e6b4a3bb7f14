"""Project lifecycle: creation, owner edits, status transitions and assignment.

Status moves follow ``ALLOWED_TRANSITIONS``. Every move writes the new status
with a guarded UPDATE (``WHERE status = <previous>``) and stages a
``status-update`` thread entry in the same transaction, so a request either
applies both or neither.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import update

from models import db
from models.project import (
    PROJECT_CATEGORIES,
    PROJECT_PRIORITIES,
    PROJECT_STATUSES,
    Project,
)
from models.user import User
from utils.clock import utcnow

from .access import (
    can_assign_developer,
    can_change_status,
    can_mutate_owner_fields,
    require,
)
from .communication import add_entry, validate_entry
from .errors import Conflict, ValidationError
from .features import normalize_features, suggest_features, suggestion_confidence

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"prototype", "in-development", "cancelled"}),
    "prototype": frozenset({"in-development", "cancelled"}),
    "in-development": frozenset({"testing", "cancelled"}),
    "testing": frozenset({"in-development", "deployed", "cancelled"}),
    "deployed": frozenset(),
    "cancelled": frozenset(),
}

# States an assignment pulls forward into development.
PRE_DEVELOPMENT_STATUSES = frozenset({"draft", "prototype"})

OWNER_FIELDS = (
    "title",
    "description",
    "category",
    "priority",
    "platform",
    "features",
    "design",
    "technical",
    "timeline",
    "budget",
)
TIMELINE_FIELDS = ("planned_start", "planned_end", "actual_start", "actual_end")


def _text(data: dict, field: str, minimum: int, maximum: int, errors: list) -> str | None:
    value = data.get(field)
    text = value.strip() if isinstance(value, str) else ""
    if not minimum <= len(text) <= maximum:
        errors.append(
            {"field": field, "message": f"{field} must be {minimum}-{maximum} characters"}
        )
        return None
    return text


def _choice(data: dict, field: str, choices: tuple[str, ...], errors: list) -> str | None:
    value = data.get(field)
    if value not in choices:
        errors.append({"field": field, "message": f"{field} must be one of {', '.join(choices)}"})
        return None
    return value


def _amount(value: Any, field: str, errors: list) -> Decimal | None:
    if value in (None, ""):
        return None
    try:
        if isinstance(value, bool):
            raise TypeError(field)
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError):
        errors.append({"field": field, "message": f"{field} must be numeric"})
        return None
    if amount < 0:
        errors.append({"field": field, "message": f"{field} must not be negative"})
        return None
    return amount


def _timestamp(value: Any, field: str, errors: list) -> datetime | None:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        errors.append({"field": field, "message": f"{field} must be ISO 8601 format"})
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        errors.append({"field": field, "message": f"{field} must be ISO 8601 format"})
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def _document(data: dict, field: str, errors: list) -> Any:
    value = data.get(field)
    if value is not None and not isinstance(value, (dict, list)):
        errors.append({"field": field, "message": f"{field} must be an object or list"})
        return None
    return value


def validate_project_fields(data: dict, partial: bool = False) -> dict:
    """Validate owner-editable fields and map them onto column values.

    With ``partial`` only the keys present in ``data`` are checked; fields
    outside ``OWNER_FIELDS`` (status, owner, assignment) are ignored.
    """

    errors: list[dict[str, str]] = []
    values: dict[str, Any] = {}

    def present(field: str) -> bool:
        return not partial or field in data

    if present("title"):
        values["title"] = _text(data, "title", 3, 100, errors)
    if present("description"):
        values["description"] = _text(data, "description", 10, 1000, errors)
    if present("category"):
        values["category"] = _choice(data, "category", PROJECT_CATEGORIES, errors)
    if "priority" in data:
        values["priority"] = _choice(data, "priority", PROJECT_PRIORITIES, errors)

    for field in ("platform", "design", "technical"):
        if field in data:
            values[field] = _document(data, field, errors)

    if "features" in data:
        try:
            values["features"] = normalize_features(data["features"])
        except ValidationError as exc:
            errors.extend(exc.errors)

    budget = data.get("budget")
    if "budget" in data:
        if not isinstance(budget, dict):
            errors.append({"field": "budget", "message": "budget must be an object"})
        else:
            if "planned" in budget:
                values["budget_planned"] = _amount(budget.get("planned"), "budget.planned", errors)
            if "actual" in budget:
                values["budget_actual"] = _amount(
                    budget.get("actual"), "budget.actual", errors
                ) or Decimal("0")

    timeline = data.get("timeline")
    if "timeline" in data:
        if not isinstance(timeline, dict):
            errors.append({"field": "timeline", "message": "timeline must be an object"})
        else:
            for field in TIMELINE_FIELDS:
                if field in timeline:
                    values[field] = _timestamp(timeline.get(field), f"timeline.{field}", errors)

    if errors:
        raise ValidationError(errors)
    return values


def _compare_and_set(project: Project, expected_status: str, values: dict) -> None:
    """Apply ``values`` only if the stored status is still ``expected_status``."""

    result = db.session.execute(
        update(Project)
        .where(Project.id == project.id, Project.status == expected_status)
        .values(updated_at=utcnow(), **values)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise Conflict("Project status changed concurrently; reload and retry.")


def _status_message(status: str, notes: str | None = None) -> str:
    message = f"Status updated to {status}"
    if notes:
        message = f"{message}: {notes}"
    return message


def create_project(owner: User, data: dict) -> Project:
    """Create a draft project owned by ``owner`` and open its thread."""

    values = validate_project_fields(data)
    project = Project(owner_id=owner.id, status="draft", **values)
    db.session.add(project)
    db.session.flush()
    add_entry(project, "status-update", "Project created successfully", owner)
    db.session.commit()
    return project


def update_project_fields(project: Project, actor: User, data: dict) -> Project:
    """Apply owner-level edits; status and assignment are not touched here."""

    require(can_mutate_owner_fields(actor, project))
    values = validate_project_fields(data, partial=True)
    for field, value in values.items():
        setattr(project, field, value)
    db.session.commit()
    return project


def delete_project(project: Project, actor: User) -> None:
    require(can_mutate_owner_fields(actor, project))
    db.session.delete(project)
    db.session.commit()


def transition_status(
    project: Project, actor: User, new_status: str, notes: str | None = None
) -> Project:
    """Move the project to ``new_status`` on behalf of an admin or its developer."""

    if new_status not in PROJECT_STATUSES:
        raise ValidationError.for_field(
            "status", f"status must be one of {', '.join(PROJECT_STATUSES)}"
        )
    require(can_change_status(actor, project))

    current = project.status
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise Conflict(f"Cannot move a project from {current} to {new_status}.")

    message = _status_message(new_status, notes)
    validate_entry("status-update", message, None)

    values: dict[str, Any] = {"status": new_status}
    if new_status == "deployed":
        values["actual_end"] = utcnow()

    _compare_and_set(project, current, values)
    add_entry(project, "status-update", message, actor)
    db.session.commit()
    return project


def assign_developer(project: Project, actor: User, developer: User | None) -> Project:
    """Assign (or reassign) a developer; early projects move into development."""

    require(can_assign_developer(actor))
    if developer is None or developer.role != "developer":
        raise ValidationError.for_field("developer_id", "Developer not found.")
    if project.is_terminal():
        raise Conflict(f"Cannot assign a developer to a {project.status} project.")

    current = project.status
    values: dict[str, Any] = {"assigned_developer_id": developer.id}
    message = f"Project assigned to {developer.name}"
    if current in PRE_DEVELOPMENT_STATUSES:
        values["status"] = "in-development"
        message = f"{message}. {_status_message('in-development')}"

    _compare_and_set(project, current, values)
    add_entry(project, "status-update", message, actor)
    db.session.commit()
    return project


def record_payment(project: Project, actor: User, amount: Decimal) -> Project:
    """Store a processor-confirmed payment; a draft project moves to prototype.

    Recording the same amount again on a non-draft project changes nothing.
    """

    require(can_mutate_owner_fields(actor, project))
    current = project.status
    if current != "draft" and project.budget_actual == amount:
        return project

    values: dict[str, Any] = {"budget_actual": amount}
    message = f"Payment of ${amount:,.2f} confirmed."
    if current == "draft":
        values["status"] = "prototype"
        message = f"{message} Project moved to prototype phase."

    _compare_and_set(project, current, values)
    add_entry(project, "status-update", message, actor)
    db.session.commit()
    return project


def apply_feature_suggestions(project: Project, actor: User, prompt: str) -> list[dict]:
    """Replace the feature list with suggestions for ``prompt``."""

    require(can_mutate_owner_fields(actor, project))
    features = suggest_features(prompt, project.category)
    project.features = features
    project.ai_generated = True
    project.ai_prompt = prompt
    project.ai_generated_at = utcnow()
    project.ai_confidence = suggestion_confidence(prompt)
    db.session.commit()
    return features
