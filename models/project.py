"""Project model and lifecycle constants."""

from datetime import datetime

from utils.clock import utcnow

from . import db


PROJECT_CATEGORIES = ("mobile-app", "web-app", "website", "automation", "ai-tool", "other")
PROJECT_PRIORITIES = ("low", "medium", "high", "urgent")
PROJECT_STATUSES = (
    "draft",
    "prototype",
    "in-development",
    "testing",
    "deployed",
    "cancelled",
)
TERMINAL_STATUSES = frozenset({"deployed", "cancelled"})
ACTIVE_STATUSES = ("prototype", "in-development", "testing")
FEATURE_COMPLEXITIES = ("simple", "medium", "complex")


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class Project(db.Model):
    """A client project moving through the delivery lifecycle."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    assigned_developer_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(
        db.Enum(*PROJECT_CATEGORIES, name="project_category"), nullable=False
    )
    status = db.Column(
        db.Enum(*PROJECT_STATUSES, name="project_status"),
        nullable=False,
        default="draft",
        server_default=db.text("'draft'"),
    )
    priority = db.Column(
        db.Enum(*PROJECT_PRIORITIES, name="project_priority"),
        nullable=False,
        default="medium",
        server_default=db.text("'medium'"),
    )
    features = db.Column(db.JSON, nullable=False, default=list)
    platform = db.Column(db.JSON, nullable=True)
    design = db.Column(db.JSON, nullable=True)
    technical = db.Column(db.JSON, nullable=True)

    ai_generated = db.Column(db.Boolean, nullable=False, default=False)
    ai_prompt = db.Column(db.Text, nullable=True)
    ai_generated_at = db.Column(db.DateTime, nullable=True)
    ai_confidence = db.Column(db.Float, nullable=True)

    budget_planned = db.Column(db.Numeric(12, 2), nullable=True)
    budget_actual = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    planned_start = db.Column(db.DateTime, nullable=True)
    planned_end = db.Column(db.DateTime, nullable=True)
    actual_start = db.Column(db.DateTime, nullable=True)
    actual_end = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", foreign_keys=[owner_id])
    assigned_developer = db.relationship("User", foreign_keys=[assigned_developer_id])
    communication = db.relationship(
        "CommunicationEntry",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="[CommunicationEntry.timestamp, CommunicationEntry.id]",
        lazy="dynamic",
    )

    @property
    def budget(self) -> dict:
        return {
            "planned": float(self.budget_planned) if self.budget_planned is not None else None,
            "actual": float(self.budget_actual or 0),
        }

    @property
    def timeline(self) -> dict:
        return {
            "planned_start": _isoformat(self.planned_start),
            "planned_end": _isoformat(self.planned_end),
            "actual_start": _isoformat(self.actual_start),
            "actual_end": _isoformat(self.actual_end),
        }

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self, include_communication: bool = False) -> dict:
        """Serialize the project with its owner and developer summaries."""

        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "status": self.status,
            "priority": self.priority,
            "owner": self.owner.to_summary() if self.owner else None,
            "assigned_developer": self.assigned_developer.to_summary()
            if self.assigned_developer
            else None,
            "features": list(self.features or []),
            "platform": self.platform,
            "design": self.design,
            "technical": self.technical,
            "ai_generated": {
                "is_ai_generated": bool(self.ai_generated),
                "prompt": self.ai_prompt,
                "generated_at": _isoformat(self.ai_generated_at),
                "confidence": self.ai_confidence,
            },
            "budget": self.budget,
            "timeline": self.timeline,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
        if include_communication:
            data["communication"] = [
                entry.to_dict() for entry in self.communication.all()
            ]
        return data

    def __repr__(self) -> str:
        return f"<Project id={self.id} status={self.status}>"
