"""Real-time fan-out to project rooms."""

from flask_socketio import SocketIO

socketio = SocketIO()

from .publisher import Publisher, SocketIOPublisher, get_publisher, project_channel  # noqa: E402
from . import events  # noqa: E402,F401

__all__ = ["Publisher", "SocketIOPublisher", "get_publisher", "project_channel", "socketio"]
