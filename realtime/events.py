"""Socket.IO connection and room handlers."""

from __future__ import annotations

from flask import session
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import emit, join_room, leave_room
from jwt import PyJWTError
from werkzeug.exceptions import NotFound

from models import db
from models.user import User
from services.access import can_access_thread, load_project

from . import socketio
from .publisher import project_channel


def _user_from_token(token: str | None) -> User | None:
    if not token:
        return None
    try:
        claims = decode_token(token)
    except (JWTExtendedException, PyJWTError):
        return None
    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def _session_user() -> User | None:
    user_id = session.get("socket_user_id")
    return db.session.get(User, user_id) if user_id is not None else None


def _project_id(data) -> int | None:
    raw = data.get("project_id") if isinstance(data, dict) else data
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@socketio.on("connect")
def handle_connect(auth=None):
    token = auth.get("token") if isinstance(auth, dict) else None
    user = _user_from_token(token)
    if user is None:
        raise ConnectionRefusedError("unauthorized")
    session["socket_user_id"] = user.id


@socketio.on("join-project")
def handle_join_project(data):
    user = _session_user()
    project_id = _project_id(data)
    if user is None or project_id is None:
        emit("error", {"detail": "Project not found."})
        return
    try:
        load_project(project_id, user, can_access_thread)
    except NotFound:
        emit("error", {"detail": "Project not found."})
        return
    join_room(project_channel(project_id))
    emit("joined-project", {"project_id": project_id})


@socketio.on("leave-project")
def handle_leave_project(data):
    project_id = _project_id(data)
    if project_id is not None:
        leave_room(project_channel(project_id))
