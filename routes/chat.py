"""Chat blueprint: project messages, read receipts and typing indicators."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from models.project import ACTIVE_STATUSES, Project
from realtime import get_publisher, project_channel
from services import communication
from services.access import can_access_thread, load_project, thread_participant_clause
from utils.auth import require_user
from utils.request_validation import parse_json_request, query_int

chat_bp = Blueprint("chat", __name__)


@chat_bp.route("/projects/<int:project_id>/messages", methods=["GET"])
@jwt_required()
def list_messages(project_id: int):
    """Return one page of chat messages, walking back from the most recent."""

    user = require_user()
    project = load_project(project_id, user, can_access_thread)
    page = communication.list_messages(
        project,
        user,
        page=query_int(request.args, "page", 1),
        limit=query_int(request.args, "limit", 50, maximum=communication.MAX_PAGE_SIZE),
    )
    return jsonify(
        {
            "messages": [entry.to_dict() for entry in page.messages],
            "pagination": {
                "current": page.page,
                "limit": page.limit,
                "total": page.total,
                "has_more": page.has_more,
            },
        }
    )


@chat_bp.route("/projects/<int:project_id>/messages", methods=["POST"])
@jwt_required()
def send_message(project_id: int):
    user = require_user()
    project = load_project(project_id, user, can_access_thread)
    data = parse_json_request(request)
    entry = communication.append_communication(
        project, "message", data.get("content"), user, data.get("attachments")
    )
    get_publisher().publish(project_channel(project.id), "new-message", entry.to_dict())
    return jsonify({"message": entry.to_dict()}), HTTPStatus.CREATED


@chat_bp.route("/projects/<int:project_id>/messages/<int:entry_id>/read", methods=["PUT"])
@jwt_required()
def mark_message_read(project_id: int, entry_id: int):
    user = require_user()
    project = load_project(project_id, user, can_access_thread)
    entry = communication.mark_read(project, entry_id, user)
    return jsonify({"message": entry.to_dict()})


@chat_bp.route("/projects/<int:project_id>/unread", methods=["GET"])
@jwt_required()
def unread(project_id: int):
    user = require_user()
    project = load_project(project_id, user, can_access_thread)
    return jsonify(
        {"project_id": project.id, "unread_count": communication.unread_count(project, user)}
    )


@chat_bp.route("/conversations", methods=["GET"])
@jwt_required()
def conversations():
    """Active projects the caller participates in, with last message and unread count."""

    user = require_user()
    active = (
        Project.query.filter(thread_participant_clause(user))
        .filter(Project.status.in_(ACTIVE_STATUSES))
        .order_by(Project.updated_at.desc())
        .all()
    )

    payload = []
    for project in active:
        last = communication.last_message(project)
        payload.append(
            {
                "project_id": project.id,
                "title": project.title,
                "status": project.status,
                "owner": project.owner.to_summary(),
                "assigned_developer": project.assigned_developer.to_summary()
                if project.assigned_developer
                else None,
                "last_message": {
                    "content": last.content,
                    "author": last.author.to_summary(),
                    "timestamp": last.timestamp.isoformat(),
                }
                if last
                else None,
                "unread_count": communication.unread_count(project, user),
            }
        )
    return jsonify({"conversations": payload})


@chat_bp.route("/projects/<int:project_id>/typing", methods=["POST"])
@jwt_required()
def typing(project_id: int):
    user = require_user()
    project = load_project(project_id, user, can_access_thread)
    data = parse_json_request(request, allow_empty=True)
    get_publisher().publish(
        project_channel(project.id),
        "typing",
        {"user_id": user.id, "user_name": user.name, "is_typing": bool(data.get("is_typing"))},
    )
    return jsonify({"message": "Typing indicator sent."})
