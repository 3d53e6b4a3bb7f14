"""Project communication thread: append, read receipts, paging, unread counts."""

from __future__ import annotations

from typing import Iterable, NamedTuple

from sqlalchemy.exc import IntegrityError

from models import db
from models.communication import (
    ENTRY_TYPES,
    MAX_CONTENT_LENGTH,
    CommunicationEntry,
    CommunicationRead,
)
from models.project import Project
from models.user import User
from utils.clock import utcnow

from .access import can_access_thread, require
from .errors import NotFound, ValidationError

MAX_PAGE_SIZE = 100


class MessagePage(NamedTuple):
    messages: list[CommunicationEntry]
    page: int
    limit: int
    total: int
    has_more: bool


def validate_entry(entry_type: str, content: str | None, attachments: Iterable | None) -> tuple[str, list[str]]:
    """Check an entry's type, content length and attachment list.

    Returns the trimmed content and the attachments as a list of strings.
    """

    errors = []
    if entry_type not in ENTRY_TYPES:
        errors.append(
            {"field": "type", "message": f"type must be one of {', '.join(ENTRY_TYPES)}"}
        )

    text = content.strip() if isinstance(content, str) else ""
    if not 1 <= len(text) <= MAX_CONTENT_LENGTH:
        errors.append(
            {
                "field": "content",
                "message": f"content must be 1-{MAX_CONTENT_LENGTH} characters",
            }
        )

    attachment_list: list[str] = []
    if attachments is not None:
        if isinstance(attachments, (str, bytes)) or not isinstance(attachments, (list, tuple)):
            errors.append({"field": "attachments", "message": "attachments must be a list"})
        elif not all(isinstance(item, str) and item for item in attachments):
            errors.append(
                {"field": "attachments", "message": "attachments must be non-empty strings"}
            )
        else:
            attachment_list = list(attachments)

    if errors:
        raise ValidationError(errors)
    return text, attachment_list


def add_entry(
    project: Project,
    entry_type: str,
    content: str,
    author: User,
    attachments: Iterable[str] | None = None,
) -> CommunicationEntry:
    """Stage a validated entry in the current transaction without committing.

    Lifecycle operations use this so the entry commits together with the
    state change that produced it.
    """

    text, attachment_list = validate_entry(entry_type, content, attachments)
    entry = CommunicationEntry(
        project_id=project.id,
        type=entry_type,
        content=text,
        author_id=author.id,
        timestamp=utcnow(),
        attachments=attachment_list,
    )
    db.session.add(entry)
    return entry


def append_communication(
    project: Project,
    entry_type: str,
    content: str,
    author: User,
    attachments: Iterable[str] | None = None,
) -> CommunicationEntry:
    """Append one entry to the project's thread and return the stored entry."""

    require(can_access_thread(author, project))
    entry = add_entry(project, entry_type, content, author, attachments)
    db.session.commit()
    return entry


def get_entry(project: Project, entry_id: int) -> CommunicationEntry:
    entry = CommunicationEntry.query.filter_by(id=entry_id, project_id=project.id).first()
    if entry is None:
        raise NotFound("Message not found.")
    return entry


def mark_read(project: Project, entry_id: int, user: User) -> CommunicationEntry:
    """Record that ``user`` read the entry. Repeated calls change nothing."""

    require(can_access_thread(user, project))
    entry = get_entry(project, entry_id)
    if entry.is_read_by(user.id):
        return entry

    db.session.add(CommunicationRead(entry_id=entry.id, user_id=user.id, read_at=utcnow()))
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request stored the same receipt first.
        db.session.rollback()
        entry = get_entry(project, entry_id)
    return entry


def _messages_query(project: Project):
    return CommunicationEntry.query.filter_by(project_id=project.id, type="message")


def list_messages(project: Project, viewer: User, page: int = 1, limit: int = 50) -> MessagePage:
    """Page through chat messages newest-first, oldest-first within a page."""

    require(can_access_thread(viewer, project))
    errors = []
    if page < 1:
        errors.append({"field": "page", "message": "page must be at least 1"})
    if not 1 <= limit <= MAX_PAGE_SIZE:
        errors.append({"field": "limit", "message": f"limit must be 1-{MAX_PAGE_SIZE}"})
    if errors:
        raise ValidationError(errors)

    query = _messages_query(project)
    total = query.count()
    newest_first = (
        query.order_by(CommunicationEntry.timestamp.desc(), CommunicationEntry.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    newest_first.reverse()
    return MessagePage(newest_first, page, limit, total, total > page * limit)


def last_message(project: Project) -> CommunicationEntry | None:
    return (
        _messages_query(project)
        .order_by(CommunicationEntry.timestamp.desc(), CommunicationEntry.id.desc())
        .first()
    )


def unread_count(project: Project, viewer: User) -> int:
    """Number of chat messages the viewer has no read receipt for."""

    require(can_access_thread(viewer, project))
    return (
        _messages_query(project)
        .filter(~CommunicationEntry.read_by.any(CommunicationRead.user_id == viewer.id))
        .count()
    )
