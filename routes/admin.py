"""Admin blueprint: dashboards, assignment, status changes and developer accounts."""

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from http import HTTPStatus
from math import ceil

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from werkzeug.exceptions import Conflict, NotFound

from models import db
from models.project import ACTIVE_STATUSES, PROJECT_STATUSES, Project
from models.user import User
from realtime import get_publisher, project_channel
from services import projects
from services.access import can_change_status, load_project
from services.errors import ValidationError
from utils.auth import require_admin, require_user
from utils.clock import utcnow
from utils.request_validation import (
    check_email,
    check_length,
    parse_json_request,
    query_int,
    raise_for_errors,
)

admin_bp = Blueprint("admin", __name__)

WORKLOAD_STATUSES = ("in-development", "testing")


def _parse_bool(value):
    if value is None:
        return None
    lowered = str(value).strip().lower()
    if lowered in {"1", "true", "yes", "y"}:
        return True
    if lowered in {"0", "false", "no", "n"}:
        return False
    return None


def _day(value) -> str:
    return value if isinstance(value, str) else value.isoformat()


@admin_bp.route("/dashboard", methods=["GET"])
@jwt_required()
def dashboard():
    """Headline counts, recent projects and this month's revenue."""

    require_admin()
    now = utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    status_rows = (
        db.session.query(Project.status, func.count(Project.id)).group_by(Project.status).all()
    )
    monthly_revenue = (
        db.session.query(func.coalesce(func.sum(Project.budget_actual), 0))
        .filter(Project.created_at >= month_start)
        .scalar()
    )
    recent = Project.query.order_by(Project.created_at.desc(), Project.id.desc()).limit(10).all()

    return jsonify(
        {
            "stats": {
                "total_projects": Project.query.count(),
                "active_projects": Project.query.filter(
                    Project.status.in_(ACTIVE_STATUSES)
                ).count(),
                "completed_projects": Project.query.filter_by(status="deployed").count(),
                "total_users": User.query.filter_by(role="user").count(),
                "total_developers": User.query.filter_by(role="developer").count(),
                "monthly_revenue": float(monthly_revenue or 0),
            },
            "recent_projects": [project.to_dict() for project in recent],
            "project_status_stats": {status: count for status, count in status_rows},
        }
    )


@admin_bp.route("/projects", methods=["GET"])
@jwt_required()
def list_all_projects():
    require_admin()
    page = query_int(request.args, "page", 1)
    limit = query_int(request.args, "limit", 20, maximum=100)

    query = Project.query
    status = request.args.get("status")
    if status:
        if status not in PROJECT_STATUSES:
            raise ValidationError.for_field("status", "Invalid status.")
        query = query.filter(Project.status == status)

    assigned = _parse_bool(request.args.get("assigned"))
    if assigned is True:
        query = query.filter(Project.assigned_developer_id.isnot(None))
    elif assigned is False:
        query = query.filter(Project.assigned_developer_id.is_(None))

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


@admin_bp.route("/projects/<int:project_id>/assign", methods=["PUT"])
@jwt_required()
def assign_developer(project_id: int):
    """Assign a developer; draft and prototype projects enter development."""

    admin = require_admin()
    data = parse_json_request(request)
    try:
        developer_id = int(data.get("developer_id"))
    except (TypeError, ValueError):
        raise ValidationError.for_field("developer_id", "Valid developer ID required.")

    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found.")

    developer = db.session.get(User, developer_id)
    projects.assign_developer(project, admin, developer)

    get_publisher().publish(
        project_channel(project.id),
        "project-assigned",
        {
            "developer": developer.to_summary(),
            "status": project.status,
            "assigned_at": utcnow().isoformat(),
        },
    )
    return jsonify({"project": project.to_dict()})


@admin_bp.route("/projects/<int:project_id>/status", methods=["PUT"])
@jwt_required()
def update_status(project_id: int):
    """Move a project through its lifecycle (admin or assigned developer)."""

    user = require_user()
    project = load_project(project_id, user, can_change_status)
    data = parse_json_request(request)

    notes = data.get("notes")
    if notes is not None:
        if not isinstance(notes, str):
            raise ValidationError.for_field("notes", "notes must be a string")
        errors: list = []
        notes = check_length(notes, "notes", 0, 500, errors) or None
        raise_for_errors(errors)

    projects.transition_status(project, user, data.get("status"), notes)

    get_publisher().publish(
        project_channel(project.id),
        "status-update",
        {
            "status": project.status,
            "updated_by": user.name,
            "updated_at": utcnow().isoformat(),
        },
    )
    return jsonify({"project": project.to_dict()})


@admin_bp.route("/developers", methods=["GET"])
@jwt_required()
def list_developers():
    require_admin()
    developers = User.query.filter_by(role="developer").order_by(User.created_at.desc()).all()
    workload = dict(
        db.session.query(Project.assigned_developer_id, func.count(Project.id))
        .filter(Project.status.in_(WORKLOAD_STATUSES))
        .group_by(Project.assigned_developer_id)
        .all()
    )
    return jsonify(
        {
            "developers": [
                {**developer.to_summary(), "active_projects": workload.get(developer.id, 0)}
                for developer in developers
            ]
        }
    )


@admin_bp.route("/developers", methods=["POST"])
@jwt_required()
def create_developer():
    require_admin()
    data = parse_json_request(request)
    errors: list = []
    name = check_length(data.get("name"), "name", 2, 50, errors)
    email = check_email(data.get("email"), errors)
    password = data.get("password") or ""
    if len(password) < 6:
        errors.append({"field": "password", "message": "Password must be at least 6 characters"})
    raise_for_errors(errors)

    if User.query.filter(func.lower(User.email) == email).first() is not None:
        raise Conflict("A user with that email already exists.")

    developer = User(email=email, role="developer", is_verified=True)
    developer.set_name(name)
    developer.set_password(password)
    db.session.add(developer)
    db.session.commit()

    return jsonify({"developer": developer.to_dict()}), HTTPStatus.CREATED


@admin_bp.route("/analytics", methods=["GET"])
@jwt_required()
def analytics():
    """Daily project and revenue trends, category mix and developer throughput."""

    require_admin()
    days = query_int(request.args, "period", 30, maximum=365)
    start = utcnow() - timedelta(days=days)
    day = func.date(Project.created_at)

    project_trends = (
        db.session.query(day, func.count(Project.id))
        .filter(Project.created_at >= start)
        .group_by(day)
        .order_by(day)
        .all()
    )
    revenue_trends = (
        db.session.query(day, func.sum(Project.budget_actual))
        .filter(Project.created_at >= start, Project.budget_actual > 0)
        .group_by(day)
        .order_by(day)
        .all()
    )
    category_stats = (
        db.session.query(Project.category, func.count(Project.id))
        .group_by(Project.category)
        .all()
    )

    completed: dict[int, list] = defaultdict(list)
    deployed = Project.query.filter(
        Project.status == "deployed", Project.assigned_developer_id.isnot(None)
    ).all()
    for project in deployed:
        completed[project.assigned_developer_id].append(project)

    performance = []
    for developer_id, delivered in completed.items():
        durations = [
            (p.actual_end - p.actual_start).total_seconds() / 3600
            for p in delivered
            if p.actual_start and p.actual_end
        ]
        performance.append(
            {
                "developer_id": developer_id,
                "developer_name": delivered[0].assigned_developer.name,
                "completed_projects": len(delivered),
                "avg_completion_hours": round(sum(durations) / len(durations), 2)
                if durations
                else None,
            }
        )
    performance.sort(key=lambda item: (-item["completed_projects"], item["developer_id"]))

    return jsonify(
        {
            "period_days": days,
            "project_trends": [{"date": _day(d), "count": c} for d, c in project_trends],
            "revenue_trends": [
                {"date": _day(d), "revenue": float(r or 0)} for d, r in revenue_trends
            ],
            "category_stats": {category: count for category, count in category_stats},
            "developer_performance": performance,
        }
    )
