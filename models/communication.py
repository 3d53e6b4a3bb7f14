"""Communication thread entries and their read receipts."""

from utils.clock import utcnow

from . import db


ENTRY_TYPES = ("message", "file", "milestone", "status-update")
MAX_CONTENT_LENGTH = 2000


class CommunicationEntry(db.Model):
    """One entry in a project's append-only communication thread."""

    __tablename__ = "communication_entries"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.Enum(*ENTRY_TYPES, name="communication_type"), nullable=False)
    content = db.Column(db.String(MAX_CONTENT_LENGTH), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)

    project = db.relationship("Project", back_populates="communication")
    author = db.relationship("User")
    read_by = db.relationship(
        "CommunicationRead",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="CommunicationRead.read_at",
    )

    def is_read_by(self, user_id: int) -> bool:
        return any(receipt.user_id == user_id for receipt in self.read_by)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "content": self.content,
            "author": self.author.to_summary() if self.author else None,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "attachments": list(self.attachments or []),
            "read_by": [receipt.to_dict() for receipt in self.read_by],
        }


class CommunicationRead(db.Model):
    """Records that a user has read an entry; one row per (entry, user)."""

    __tablename__ = "communication_reads"
    __table_args__ = (
        db.UniqueConstraint("entry_id", "user_id", name="uq_communication_reads_entry_user"),
    )

    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(
        db.Integer,
        db.ForeignKey("communication_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    read_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    entry = db.relationship("CommunicationEntry", back_populates="read_by")

    def to_dict(self) -> dict:
        return {
            "user": self.user_id,
            "read_at": self.read_at.isoformat() if self.read_at else None,
        }
