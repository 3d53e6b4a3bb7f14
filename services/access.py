"""Authorization rules for projects and their communication threads.

Every route and engine operation decides access through these functions; no
handler builds its own ownership filter.
"""

from __future__ import annotations

from sqlalchemy import or_, true

from models import db
from models.project import Project
from models.user import User

from .errors import AccessDenied, NotFound


def _is_admin(actor: User | None) -> bool:
    return actor is not None and actor.role == "admin"


def _is_owner(actor: User | None, project: Project) -> bool:
    return actor is not None and project.owner_id == actor.id


def _is_assigned_developer(actor: User | None, project: Project) -> bool:
    return (
        actor is not None
        and project.assigned_developer_id is not None
        and project.assigned_developer_id == actor.id
    )


def can_view(actor: User | None, project: Project) -> bool:
    return (
        _is_owner(actor, project)
        or _is_assigned_developer(actor, project)
        or _is_admin(actor)
    )


def can_mutate_owner_fields(actor: User | None, project: Project) -> bool:
    return _is_owner(actor, project)


def can_change_status(actor: User | None, project: Project) -> bool:
    return _is_admin(actor) or _is_assigned_developer(actor, project)


def can_assign_developer(actor: User | None) -> bool:
    return _is_admin(actor)


def can_access_thread(actor: User | None, project: Project) -> bool:
    """Owner and assigned developer only; admins get no implicit thread access."""

    return _is_owner(actor, project) or _is_assigned_developer(actor, project)


def viewable_projects_clause(actor: User):
    """SQL counterpart of :func:`can_view`."""

    if _is_admin(actor):
        return true()
    return or_(Project.owner_id == actor.id, Project.assigned_developer_id == actor.id)


def thread_participant_clause(actor: User):
    """SQL counterpart of :func:`can_access_thread`."""

    return or_(Project.owner_id == actor.id, Project.assigned_developer_id == actor.id)


def owned_projects_clause(actor: User):
    """SQL counterpart of :func:`can_mutate_owner_fields`."""

    return Project.owner_id == actor.id


def load_project(project_id: int, actor: User | None, predicate=can_view) -> Project:
    """Fetch a project and check ``predicate``.

    Missing and forbidden projects both raise a 404-shaped error.
    """

    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found.")
    if not predicate(actor, project):
        raise AccessDenied()
    return project


def require(allowed: bool) -> None:
    if not allowed:
        raise AccessDenied()
