# Overview: Service-layer operations for restaurants (tenants); super-admin only.

"""
Restaurant lifecycle.

create_restaurant provisions a tenant in one transaction:
- the restaurant, with a slug unique across live and soft-deleted rows
- an active subscription on the chosen plan
- an admin user whose login is the restaurant email, with a generated
  temporary password returned once to the caller

Suspension deactivates the restaurant (its users can no longer log in) and
suspends its current subscription; activation reverses both. Deletion is a
soft delete that restore undoes.
"""

from __future__ import annotations

import secrets
import string
from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Restaurant, User
from ..models.auth import ROLE_ADMIN
from ..validation import ConflictError, ValidationError
from .auth_service import hash_password
from .session_service import revoke_all_user_sessions
from .subscription_service import (
    create_subscription,
    get_current_subscription,
    get_plan,
    reactivate_latest,
    suspend_current,
)
from .tenant_service import TenantAccessError, unique_slug
from restopos.time_utils import utcnow


def generate_temporary_password() -> str:
    """2 uppercase + 4 digits + 2 lowercase + 4 digits, e.g. 'AB1234cd5678'."""
    upper = "".join(secrets.choice(string.ascii_uppercase) for _ in range(2))
    lower = "".join(secrets.choice(string.ascii_lowercase) for _ in range(2))
    return f"{upper}{secrets.randbelow(10000):04d}{lower}{secrets.randbelow(10000):04d}"


def get_restaurant(restaurant_id: int, *, include_deleted: bool = False) -> Restaurant:
    restaurant = db.session.get(Restaurant, restaurant_id)
    if restaurant is None or (restaurant.is_deleted and not include_deleted):
        raise TenantAccessError("Restaurant not found")
    return restaurant


def list_restaurants(*, deleted: bool = False) -> list[Restaurant]:
    query = db.session.query(Restaurant)
    if deleted:
        query = query.filter(Restaurant.deleted_at.isnot(None))
    else:
        query = query.filter(Restaurant.deleted_at.is_(None))
    return query.order_by(Restaurant.created_at.desc(), Restaurant.id.desc()).all()


def restaurant_summary(restaurant: Restaurant) -> dict:
    subscription = get_current_subscription(restaurant.id)
    data = restaurant.to_dict()
    data["subscription"] = subscription.to_dict() if subscription else None
    data["customization"] = restaurant.customization.to_dict() if restaurant.customization else None
    return data


def create_restaurant(
    *,
    name: str,
    email: str,
    phone: str | None = None,
    plan: str,
    monthly_amount=None,
    starts_on: date | None = None,
    ends_on: date | None = None,
) -> dict:
    """
    Returns {"restaurant", "subscription", "admin", "admin_credentials"}.

    Raises:
        ValidationError: missing name/email or unknown plan
        ConflictError: the email is already a user login
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError("email must be a valid email address")
    try:
        get_plan(plan)
    except ValueError as e:
        raise ValidationError(str(e))

    email = email.strip().lower()
    if db.session.query(User.id).filter(db.func.lower(User.email) == email).first() is not None:
        raise ConflictError("Email already in use")

    restaurant = Restaurant(
        name=name.strip(),
        slug=unique_slug(name),
        email=email,
        phone=phone,
        is_active=True,
    )
    db.session.add(restaurant)
    db.session.flush()

    try:
        subscription = create_subscription(
            restaurant_id=restaurant.id,
            plan=plan,
            monthly_amount=monthly_amount,
            starts_on=starts_on,
            ends_on=ends_on,
            commit=False,
        )
    except ValueError as e:
        db.session.rollback()
        raise ValidationError(str(e))

    password = generate_temporary_password()
    admin = User(
        restaurant_id=restaurant.id,
        name=f"Administrateur {restaurant.name}",
        email=email,
        password_hash=hash_password(password),
        role=ROLE_ADMIN,
        is_active=True,
    )
    db.session.add(admin)
    db.session.commit()

    current_app.logger.info("Restaurant created: id=%s slug=%s plan=%s", restaurant.id, restaurant.slug, plan)

    return {
        "restaurant": restaurant.to_dict(),
        "subscription": subscription.to_dict(),
        "admin": admin.to_dict(),
        "admin_credentials": {
            "email": admin.email,
            "password": password,
            "name": admin.name,
        },
    }


def update_restaurant(*, restaurant_id: int, data: dict) -> Restaurant:
    restaurant = get_restaurant(restaurant_id)

    if "name" in data:
        if not isinstance(data["name"], str) or not data["name"].strip():
            raise ValidationError("name cannot be blank")
        restaurant.name = data["name"].strip()
    if "email" in data:
        restaurant.email = data["email"]
    if "phone" in data:
        restaurant.phone = data["phone"]

    db.session.commit()
    return restaurant


def suspend_restaurant(restaurant_id: int) -> Restaurant:
    restaurant = get_restaurant(restaurant_id)
    restaurant.is_active = False
    suspend_current(restaurant.id, commit=False)
    db.session.commit()

    for user in restaurant.users:
        revoke_all_user_sessions(user.id, reason="Restaurant suspended")

    current_app.logger.info("Restaurant suspended: id=%s", restaurant.id)
    return restaurant


def activate_restaurant(restaurant_id: int) -> Restaurant:
    restaurant = get_restaurant(restaurant_id)
    restaurant.is_active = True
    reactivate_latest(restaurant.id, commit=False)
    db.session.commit()

    current_app.logger.info("Restaurant activated: id=%s", restaurant.id)
    return restaurant


def delete_restaurant(restaurant_id: int) -> Restaurant:
    restaurant = get_restaurant(restaurant_id)
    restaurant.deleted_at = utcnow()
    db.session.commit()

    for user in restaurant.users:
        revoke_all_user_sessions(user.id, reason="Restaurant deleted")

    current_app.logger.info("Restaurant deleted: id=%s", restaurant.id)
    return restaurant


def restore_restaurant(restaurant_id: int) -> Restaurant:
    restaurant = get_restaurant(restaurant_id, include_deleted=True)
    if not restaurant.is_deleted:
        raise ValidationError("Restaurant is not deleted")
    restaurant.deleted_at = None
    db.session.commit()

    current_app.logger.info("Restaurant restored: id=%s", restaurant.id)
    return restaurant
