"""Publisher abstraction over the Socket.IO server."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from flask import current_app
from flask_socketio import SocketIO


def project_channel(project_id: int) -> str:
    """Room name shared by everyone following a project."""

    return f"project-{project_id}"


class Publisher(ABC):
    """Interface for real-time delivery backends."""

    @abstractmethod
    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        """Deliver ``payload`` to the channel's current subscribers, fire-and-forget."""


class SocketIOPublisher(Publisher):
    """Emit events to Socket.IO rooms."""

    def __init__(self, server: SocketIO):
        self.server = server

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        try:
            self.server.emit(event, payload, to=channel)
        except Exception:  # delivery failures never fail the request
            current_app.logger.warning(
                "Realtime publish of %s to %s failed", event, channel, exc_info=True
            )


def get_publisher() -> Publisher:
    return current_app.extensions["publisher"]
