"""Projects blueprint: CRUD, thread entries and feature suggestions."""

from __future__ import annotations

from http import HTTPStatus
from math import ceil

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from models.project import PROJECT_CATEGORIES, PROJECT_STATUSES, Project
from realtime import get_publisher, project_channel
from services import communication, projects
from services.access import (
    can_access_thread,
    can_mutate_owner_fields,
    load_project,
    viewable_projects_clause,
)
from services.errors import ValidationError
from utils.auth import require_user
from utils.request_validation import check_length, parse_json_request, query_int, raise_for_errors

projects_bp = Blueprint("projects", __name__)


@projects_bp.route("", methods=["GET"])
@jwt_required()
def list_projects():
    """Return the projects the caller can see, newest first."""

    user = require_user()
    page = query_int(request.args, "page", 1)
    limit = query_int(request.args, "limit", 10, maximum=100)

    query = Project.query.filter(viewable_projects_clause(user))

    status = request.args.get("status")
    if status:
        if status not in PROJECT_STATUSES:
            raise ValidationError.for_field("status", "Invalid status.")
        query = query.filter(Project.status == status)

    category = request.args.get("category")
    if category:
        if category not in PROJECT_CATEGORIES:
            raise ValidationError.for_field("category", "Invalid category.")
        query = query.filter(Project.category == category)

    total = query.count()
    results = (
        query.order_by(Project.created_at.desc(), Project.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify(
        {
            "projects": [project.to_dict() for project in results],
            "pagination": {"current": page, "pages": ceil(total / limit), "total": total},
        }
    )


@projects_bp.route("/<int:project_id>", methods=["GET"])
@jwt_required()
def get_project(project_id: int):
    user = require_user()
    project = load_project(project_id, user)
    return jsonify(
        {"project": project.to_dict(include_communication=can_access_thread(user, project))}
    )


@projects_bp.route("", methods=["POST"])
@jwt_required()
def create_project():
    """Create a draft project owned by the caller."""

    user = require_user()
    data = parse_json_request(request)
    project = projects.create_project(user, data)
    return jsonify({"project": project.to_dict()}), HTTPStatus.CREATED


@projects_bp.route("/<int:project_id>", methods=["PUT", "PATCH"])
@jwt_required()
def update_project(project_id: int):
    user = require_user()
    project = load_project(project_id, user, can_mutate_owner_fields)
    data = parse_json_request(request)
    projects.update_project_fields(project, user, data)
    return jsonify({"project": project.to_dict()})


@projects_bp.route("/<int:project_id>", methods=["DELETE"])
@jwt_required()
def delete_project(project_id: int):
    user = require_user()
    project = load_project(project_id, user, can_mutate_owner_fields)
    projects.delete_project(project, user)
    return jsonify({"message": "Project deleted successfully."})


@projects_bp.route("/<int:project_id>/communication", methods=["POST"])
@jwt_required()
def add_communication(project_id: int):
    """Append a message, file, milestone or status note to the thread."""

    user = require_user()
    project = load_project(project_id, user, can_access_thread)
    data = parse_json_request(request)
    entry = communication.append_communication(
        project,
        data.get("type"),
        data.get("content"),
        user,
        data.get("attachments"),
    )
    get_publisher().publish(project_channel(project.id), "new-message", entry.to_dict())
    return jsonify({"entry": entry.to_dict()}), HTTPStatus.CREATED


@projects_bp.route("/<int:project_id>/ai-generate", methods=["POST"])
@jwt_required()
def generate_features(project_id: int):
    """Replace the feature list with rule-based suggestions for a brief."""

    user = require_user()
    project = load_project(project_id, user, can_mutate_owner_fields)
    data = parse_json_request(request)
    errors: list = []
    prompt = check_length(data.get("prompt"), "prompt", 10, 500, errors)
    raise_for_errors(errors)

    features = projects.apply_feature_suggestions(project, user, prompt)
    return jsonify(
        {
            "features": features,
            "ai_generated": project.to_dict()["ai_generated"],
        }
    )
