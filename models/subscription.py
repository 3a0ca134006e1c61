from models import db, BIGINT
from datetime import datetime


class Subscription(db.Model):
    """Membership state mirrored from the billing provider.

    One row per Stripe subscription. Rows are only ever written by the webhook
    reconciler through an upsert on ``stripe_subscription_id``.
    """

    __tablename__ = "subscription"
    __table_args__ = (
        db.Index("ix_subscription_contact_plan", "contact", "plan", "created_at"),
    )

    id = db.Column(BIGINT, primary_key=True)
    contact = db.Column(db.String(255), nullable=False)              # email or phone
    plan = db.Column(db.String(50), nullable=False, default="FREE_DELIVERY")
    stripe_customer_id = db.Column(db.String(255), nullable=False)
    stripe_subscription_id = db.Column(db.String(255), nullable=False, unique=True)
    status = db.Column(db.String(30), nullable=False, default="inactive")  # active, past_due, canceled, inactive
    current_period_end = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "contact": self.contact,
            "plan": self.plan,
            "stripe_customer_id": self.stripe_customer_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "status": self.status,
            "current_period_end": self.current_period_end.isoformat() if self.current_period_end else None,
        }
