# Overview: Service-layer operations for subscription plans, limits and features.

"""
Subscription plans and limit enforcement.

Each restaurant holds Subscription rows; the current one is the most recent
row whose is_current property holds (active flag, "active" status, end date
not passed).

LIMITS:
    users     -> max_users             (restaurant users, super-admins excluded)
    products  -> max_products          (non-deleted products)
    sales     -> max_sales_per_month   (sales created this calendar month)

A limit of None means unlimited. Reaching the maximum (current >= maximum)
blocks the next creation with SubscriptionLimitError, which routes map to 402.
"""

from datetime import date, timedelta
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Product, Restaurant, Sale, Subscription, User
from ..models.auth import ROLE_SUPER_ADMIN
from ..models.subscriptions import (
    PLAN_CODES,
    PLAN_MEDIUM,
    PLAN_PREMIUM,
    PLAN_SIMPLE,
    STATUS_ACTIVE,
    STATUS_SUSPENDED,
)
from restopos.time_utils import period_bounds, today


PLANS = {
    PLAN_SIMPLE: {
        "name": "Simple",
        "slug": PLAN_SIMPLE,
        "description": "Accès limité aux fonctionnalités de base",
        "monthly_amount": Decimal("50000"),
        "limitations": {
            "max_users": 2,
            "max_products": 50,
            "max_sales_per_month": 500,
            "reports": False,
            "printing": True,
            "customization": False,
            "support": "email",
        },
    },
    PLAN_MEDIUM: {
        "name": "Medium",
        "slug": PLAN_MEDIUM,
        "description": "Accès plus poussé avec fonctionnalités avancées",
        "monthly_amount": Decimal("100000"),
        "limitations": {
            "max_users": 5,
            "max_products": 200,
            "max_sales_per_month": 2000,
            "reports": True,
            "printing": True,
            "customization": True,
            "support": "email_phone",
        },
    },
    PLAN_PREMIUM: {
        "name": "Premium",
        "slug": PLAN_PREMIUM,
        "description": "Accès total à toutes les fonctionnalités",
        "monthly_amount": Decimal("200000"),
        "limitations": {
            "max_users": None,
            "max_products": None,
            "max_sales_per_month": None,
            "reports": True,
            "printing": True,
            "customization": True,
            "support": "priority",
        },
    },
}

LIMIT_KEYS = {
    "users": "max_users",
    "products": "max_products",
    "sales": "max_sales_per_month",
}

FEATURES = ("reports", "printing", "customization")


class SubscriptionLimitError(Exception):
    """Raised when a plan limit is reached or no subscription is current."""

    def __init__(self, message: str, limit: str | None = None, current: int | None = None, maximum: int | None = None):
        super().__init__(message)
        self.limit = limit
        self.current = current
        self.maximum = maximum

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "limit": self.limit,
            "current": self.current,
            "maximum": self.maximum,
        }


def get_plan(plan: str) -> dict:
    if plan not in PLANS:
        raise ValueError(f"Unknown plan: {plan}. Expected one of {', '.join(PLAN_CODES)}")
    return PLANS[plan]


def list_plans() -> list[dict]:
    return [
        {
            "slug": code,
            "name": PLANS[code]["name"],
            "description": PLANS[code]["description"],
            "monthly_amount": f"{PLANS[code]['monthly_amount']:.2f}",
            "limitations": dict(PLANS[code]["limitations"]),
        }
        for code in PLAN_CODES
    ]


def get_current_subscription(restaurant_id: int) -> Subscription | None:
    candidates = (
        db.session.query(Subscription)
        .filter(
            Subscription.restaurant_id == restaurant_id,
            Subscription.is_active.is_(True),
            Subscription.status == STATUS_ACTIVE,
        )
        .order_by(Subscription.starts_on.desc(), Subscription.id.desc())
        .all()
    )
    for subscription in candidates:
        if subscription.is_current:
            return subscription
    return None


def get_latest_subscription(restaurant_id: int) -> Subscription | None:
    return (
        db.session.query(Subscription)
        .filter(Subscription.restaurant_id == restaurant_id)
        .order_by(Subscription.id.desc())
        .first()
    )


def get_limitations(restaurant_id: int) -> dict | None:
    """Limitations of the current plan, or None without a current subscription."""
    subscription = get_current_subscription(restaurant_id)
    if subscription is None:
        return None
    return dict(get_plan(subscription.plan)["limitations"])


def current_usage(restaurant_id: int, limit: str) -> int:
    if limit == "users":
        return db.session.query(User).filter(
            User.restaurant_id == restaurant_id,
            User.role != ROLE_SUPER_ADMIN,
        ).count()
    if limit == "products":
        return db.session.query(Product).filter(
            Product.restaurant_id == restaurant_id,
            Product.deleted_at.is_(None),
        ).count()
    if limit == "sales":
        start, end = period_bounds("month")
        return db.session.query(Sale).filter(
            Sale.restaurant_id == restaurant_id,
            Sale.deleted_at.is_(None),
            Sale.created_at >= start,
            Sale.created_at < end,
        ).count()
    raise ValueError(f"Unknown limit: {limit}")


def check_limit(restaurant_id: int, limit: str, *, actor: User | None = None) -> None:
    """
    Raise SubscriptionLimitError when creating one more `limit` item would
    exceed the plan. Super-admin actors are never limited.
    """
    if limit not in LIMIT_KEYS:
        raise ValueError(f"Unknown limit: {limit}")

    if actor is not None and actor.is_super_admin:
        return

    limitations = get_limitations(restaurant_id)
    if limitations is None:
        raise SubscriptionLimitError(
            "Votre abonnement a expiré. Veuillez renouveler votre abonnement.",
            limit=limit,
        )

    maximum = limitations.get(LIMIT_KEYS[limit])
    if maximum is None:
        return

    current = current_usage(restaurant_id, limit)
    if current >= maximum:
        current_app.logger.info(
            "Subscription limit reached: restaurant=%s limit=%s current=%s maximum=%s",
            restaurant_id, limit, current, maximum,
        )
        raise SubscriptionLimitError(
            f"Limite atteinte pour votre plan d'abonnement ({current}/{maximum}).",
            limit=limit,
            current=current,
            maximum=maximum,
        )


def has_feature(restaurant_id: int, feature: str) -> bool:
    if feature not in FEATURES:
        raise ValueError(f"Unknown feature: {feature}")
    limitations = get_limitations(restaurant_id)
    return bool(limitations and limitations.get(feature))


def create_subscription(
    *,
    restaurant_id: int,
    plan: str,
    monthly_amount=None,
    starts_on: date | None = None,
    ends_on: date | None = None,
    notes: str | None = None,
    commit: bool = True,
) -> Subscription:
    plan_def = get_plan(plan)
    starts_on = starts_on or today()
    if ends_on is not None and ends_on < starts_on:
        raise ValueError("ends_on must be on or after starts_on")

    subscription = Subscription(
        restaurant_id=restaurant_id,
        plan=plan,
        monthly_amount=monthly_amount if monthly_amount is not None else plan_def["monthly_amount"],
        starts_on=starts_on,
        ends_on=ends_on,
        is_active=True,
        status=STATUS_ACTIVE,
        notes=notes,
    )
    db.session.add(subscription)
    if commit:
        db.session.commit()
    return subscription


def change_plan(
    *,
    restaurant_id: int,
    plan: str,
    monthly_amount=None,
    ends_on: date | None = None,
) -> Subscription:
    """
    Switch a restaurant to `plan`.

    The current subscription is updated in place (plan, amount, end date).
    Without a current subscription a new active one starts today.
    """
    plan_def = get_plan(plan)
    restaurant = db.session.get(Restaurant, restaurant_id)
    if restaurant is None or restaurant.is_deleted:
        raise ValueError("Restaurant not found")

    subscription = get_current_subscription(restaurant_id)
    if subscription is None:
        return create_subscription(
            restaurant_id=restaurant_id,
            plan=plan,
            monthly_amount=monthly_amount,
            ends_on=ends_on,
        )

    subscription.plan = plan
    subscription.monthly_amount = monthly_amount if monthly_amount is not None else plan_def["monthly_amount"]
    if ends_on is not None:
        subscription.ends_on = ends_on
    db.session.commit()

    current_app.logger.info("Plan changed: restaurant=%s plan=%s", restaurant_id, plan)
    return subscription


def suspend_current(restaurant_id: int, *, commit: bool = True) -> Subscription | None:
    subscription = get_current_subscription(restaurant_id)
    if subscription is None:
        return None
    subscription.status = STATUS_SUSPENDED
    subscription.is_active = False
    if commit:
        db.session.commit()
    return subscription


def reactivate_latest(restaurant_id: int, *, commit: bool = True) -> Subscription | None:
    subscription = get_latest_subscription(restaurant_id)
    if subscription is None:
        return None
    subscription.status = STATUS_ACTIVE
    subscription.is_active = True
    if commit:
        db.session.commit()
    return subscription


def subscription_notifications(restaurant_id: int | None = None, *, days_before: int = 7) -> list[dict]:
    """
    Expired and soon-expiring subscriptions that are still flagged active.

    restaurant_id=None covers every restaurant (super-admin view).
    """
    current_day = today()
    horizon = current_day + timedelta(days=days_before)

    query = db.session.query(Subscription).filter(
        Subscription.is_active.is_(True),
        Subscription.status == STATUS_ACTIVE,
        Subscription.ends_on.isnot(None),
        Subscription.ends_on <= horizon,
    )
    if restaurant_id is not None:
        query = query.filter(Subscription.restaurant_id == restaurant_id)

    notifications = []
    for subscription in query.order_by(Subscription.ends_on.asc(), Subscription.id.asc()).all():
        name = subscription.restaurant.name if subscription.restaurant else ""
        end_text = subscription.ends_on.strftime("%d/%m/%Y")
        if subscription.ends_on < current_day:
            notifications.append({
                "type": "expired",
                "restaurant_id": subscription.restaurant_id,
                "subscription_id": subscription.id,
                "message": f"L'abonnement de {name} a expiré le {end_text}.",
            })
        else:
            days_left = (subscription.ends_on - current_day).days
            notifications.append({
                "type": "expiring",
                "restaurant_id": subscription.restaurant_id,
                "subscription_id": subscription.id,
                "message": f"L'abonnement de {name} expire dans {days_left} jour(s) ({end_text}).",
                "days_until_expiration": days_left,
            })
    return notifications
