"""Subscription model for premium plans billed through Stripe."""

from utils.clock import utcnow

from . import db


SUBSCRIPTION_PLANS = ("basic", "premium", "enterprise")


class Subscription(db.Model):
    """Stores a user's plan, Stripe subscription status and billing period."""

    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True
    )
    plan = db.Column(db.Enum(*SUBSCRIPTION_PLANS, name="subscription_plan"), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="incomplete")
    stripe_subscription_id = db.Column(db.String(255), nullable=True, unique=True)
    current_period_end = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="subscription")

    def is_active(self, now=None) -> bool:
        """Return True if the subscription is active and not past its period end."""

        if self.status not in {"active", "trialing"}:
            return False
        if self.current_period_end is None:
            return True
        now = now or utcnow()
        return self.current_period_end >= now

    def to_dict(self) -> dict:
        return {
            "plan": self.plan,
            "status": self.status,
            "current_period_end": self.current_period_end.isoformat()
            if self.current_period_end
            else None,
        }
