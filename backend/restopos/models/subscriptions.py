from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from restopos.currency import money_str
from restopos.time_utils import today


PLAN_SIMPLE = "simple"
PLAN_MEDIUM = "medium"
PLAN_PREMIUM = "premium"
PLAN_CODES = (PLAN_SIMPLE, PLAN_MEDIUM, PLAN_PREMIUM)

STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"
STATUS_EXPIRED = "expired"
SUBSCRIPTION_STATUSES = (STATUS_ACTIVE, STATUS_SUSPENDED, STATUS_EXPIRED)


class Subscription(db.Model):
    """
    Restaurant subscription to a plan.

    A restaurant may accumulate several rows over time (plan changes,
    renewals). The current one is the latest row for which is_current holds.
    """
    __tablename__ = "subscriptions"
    __table_args__ = (
        db.Index("ix_subscriptions_restaurant_status", "restaurant_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=False, index=True)

    plan = db.Column(db.String(16), nullable=False, default=PLAN_SIMPLE)
    monthly_amount = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0"))

    starts_on = db.Column(db.Date, nullable=False)
    ends_on = db.Column(db.Date, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(db.String(16), nullable=False, default=STATUS_ACTIVE)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    restaurant = db.relationship("Restaurant", backref=db.backref("subscriptions", lazy=True))

    @property
    def is_current(self) -> bool:
        if not self.is_active or self.status != STATUS_ACTIVE:
            return False
        return self.ends_on is None or self.ends_on >= today()

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} restaurant_id={self.restaurant_id} plan={self.plan!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "plan": self.plan,
            "monthly_amount": money_str(self.monthly_amount),
            "starts_on": self.starts_on.isoformat() if self.starts_on else None,
            "ends_on": self.ends_on.isoformat() if self.ends_on else None,
            "is_active": self.is_active,
            "status": self.status,
            "is_current": self.is_current,
            "notes": self.notes,
        }
