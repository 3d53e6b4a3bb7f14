"""User model definition."""

from __future__ import annotations

import secrets

from werkzeug.security import check_password_hash, generate_password_hash

from services.avatar import derive_avatar
from utils.clock import utcnow

from . import db


ROLES = ("user", "developer", "admin")


class User(db.Model):
    """Represents a platform user."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    avatar = db.Column(db.Text, nullable=True)
    role = db.Column(
        db.Enum(*ROLES, name="user_role"),
        nullable=False,
        default="user",
        server_default=db.text("'user'"),
    )
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    verification_token = db.Column(db.String(64), nullable=True, index=True)
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(50), nullable=True)
    preferences = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    subscription = db.relationship(
        "Subscription",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def set_name(self, name: str) -> None:
        """Store the display name and re-derive the avatar from it."""

        self.name = name
        avatar = derive_avatar(name)
        self.avatar = avatar.data_url if avatar else None

    def issue_verification_token(self) -> str:
        """Generate and store a fresh one-time verification token."""

        self.verification_token = secrets.token_hex(32)
        return self.verification_token

    def mark_verified(self) -> None:
        """Mark the email as verified and burn the one-time token."""

        self.is_verified = True
        self.verification_token = None

    def to_dict(self) -> dict:
        """Serialize the user; the password hash is never included."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "role": self.role,
            "is_verified": self.is_verified,
            "phone": self.phone,
            "country": self.country,
            "preferences": self.preferences or {},
            "subscription": self.subscription.to_dict() if self.subscription else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_summary(self) -> dict:
        """Compact form embedded in project and message payloads."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "role": self.role,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
