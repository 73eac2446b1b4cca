# Overview: Service-layer operations for users and waiters; encapsulates business logic and database work.

"""
User management.

MULTI-TENANT: restaurant admins manage the users of their own restaurant.
Super-admin accounts are never listed, shown or edited through these
operations, and no one can be promoted to super-admin here.

WAITERS (serveur): created with a 4-digit PIN, unique among the waiters of
the restaurant. They get a generated placeholder email and a random password, so
they sign in through PIN login only.
"""

from __future__ import annotations

import secrets
import uuid

from flask import current_app

from ..extensions import db
from ..models import StockMovement, User
from ..models.auth import ASSIGNABLE_ROLES, ROLE_SUPER_ADMIN, ROLE_WAITER
from ..validation import ConflictError, ValidationError, validate_pin
from .auth_service import (
    find_waiter_by_pin,
    hash_password,
    hash_pin,
    validate_password_strength,
    verify_password,
)
from .session_service import revoke_all_user_sessions
from .subscription_service import check_limit
from .tenant_service import TenantAccessError


class UserError(Exception):
    """Raised for user operations that break a business rule."""
    pass


def _normalize_email(email) -> str:
    if not isinstance(email, str) or "@" not in email.strip():
        raise ValidationError("email must be a valid email address")
    return email.strip().lower()


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(db.func.lower(User.email) == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _check_role(role) -> str:
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"role must be one of {', '.join(ASSIGNABLE_ROLES)}")
    return role


def get_managed_user(*, user_id: int, restaurant_id: int | None) -> User:
    """
    Load a user the caller may manage.

    Super-admins and users of other restaurants read as "User not found".
    """
    user = db.session.get(User, user_id)
    if user is None or user.role == ROLE_SUPER_ADMIN:
        raise TenantAccessError("User not found")
    if restaurant_id is not None and user.restaurant_id != restaurant_id:
        raise TenantAccessError("User not found")
    return user


def list_users(
    *,
    restaurant_id: int | None,
    search: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
) -> list[User]:
    """Newest first; super-admins excluded."""
    query = db.session.query(User).filter(User.role != ROLE_SUPER_ADMIN)
    if restaurant_id is not None:
        query = query.filter(User.restaurant_id == restaurant_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role and role != ROLE_SUPER_ADMIN:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(
    *,
    restaurant_id: int,
    name: str,
    email: str,
    password: str,
    role: str,
    actor: User | None = None,
) -> User:
    """
    Create a restaurant user.

    Raises:
        ValidationError: bad name/email/role
        PasswordValidationError: password shorter than 8 characters
        ConflictError: email already in use
        SubscriptionLimitError: plan's max_users reached
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    email = _normalize_email(email)
    role = _check_role(role)
    validate_password_strength(password)

    if _email_taken(email):
        raise ConflictError("Email already in use")

    check_limit(restaurant_id, "users", actor=actor)

    user = User(
        restaurant_id=restaurant_id,
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("User created: id=%s role=%s restaurant=%s", user.id, role, restaurant_id)
    return user


def update_user(*, user_id: int, restaurant_id: int | None, data: dict) -> User:
    """
    Update name, email, role or is_active.

    Passwords go through change_password. Deactivating a user revokes all of
    their sessions.
    """
    user = get_managed_user(user_id=user_id, restaurant_id=restaurant_id)

    if "name" in data:
        if not isinstance(data["name"], str) or not data["name"].strip():
            raise ValidationError("name cannot be blank")
        user.name = data["name"].strip()

    if "email" in data:
        email = _normalize_email(data["email"])
        if _email_taken(email, exclude_id=user.id):
            raise ConflictError("Email already in use")
        user.email = email

    if "role" in data:
        user.role = _check_role(data["role"])

    deactivated = False
    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            raise ValidationError("is_active must be a boolean")
        deactivated = user.is_active and not data["is_active"]
        user.is_active = data["is_active"]

    db.session.commit()

    if deactivated:
        revoke_all_user_sessions(user.id, reason="User deactivated")
        current_app.logger.info("User deactivated: id=%s", user.id)

    return user


def deactivate_user(*, user_id: int, restaurant_id: int | None) -> User:
    return update_user(user_id=user_id, restaurant_id=restaurant_id, data={"is_active": False})


def change_password(
    *,
    target: User,
    actor: User,
    new_password: str,
    current_password: str | None = None,
) -> None:
    """
    Change a password as its owner or as an admin of the same restaurant.

    Owners must confirm their current password. Existing sessions of the
    target are revoked.
    """
    is_owner = actor.id == target.id
    is_admin = actor.is_super_admin or (actor.is_admin and actor.restaurant_id == target.restaurant_id)

    if not is_owner and not is_admin:
        raise UserError("Not allowed to change this password")
    if target.is_super_admin and not is_owner:
        raise TenantAccessError("User not found")

    if is_owner and not verify_password(current_password or "", target.password_hash):
        raise ValidationError("Current password is incorrect")

    validate_password_strength(new_password)
    target.password_hash = hash_password(new_password)
    db.session.commit()

    revoke_all_user_sessions(target.id, reason="Password changed")


def delete_user(*, user_id: int, restaurant_id: int | None, actor: User) -> bool:
    """
    Remove a user. Users with recorded sales or stock movements are
    deactivated instead so their history stays attributable.
    """
    user = get_managed_user(user_id=user_id, restaurant_id=restaurant_id)
    if user.id == actor.id:
        raise UserError("You cannot delete your own account")

    if user.sales or user.security_events or _has_stock_movements(user):
        deactivate_user(user_id=user.id, restaurant_id=restaurant_id)
        return False

    revoke_all_user_sessions(user.id, reason="User deleted")
    for token in list(user.session_tokens):
        db.session.delete(token)
    db.session.delete(user)
    db.session.commit()
    return True


def _has_stock_movements(user: User) -> bool:
    return db.session.query(StockMovement.id).filter(StockMovement.user_id == user.id).first() is not None


def list_waiters(restaurant_id: int) -> list[User]:
    return (
        db.session.query(User)
        .filter(User.restaurant_id == restaurant_id, User.role == ROLE_WAITER)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def create_waiter(*, restaurant_id: int, name: str, pin: str, actor: User | None = None) -> User:
    """
    Create a waiter with a 4-digit PIN unique in the restaurant.

    Raises:
        ValidationError: blank name or malformed PIN
        ConflictError: PIN already used by another waiter of the restaurant
        SubscriptionLimitError: plan's max_users reached
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    validate_pin(pin)

    if find_waiter_by_pin(pin, restaurant_id=restaurant_id) is not None:
        raise ConflictError("PIN already used by another waiter")

    check_limit(restaurant_id, "users", actor=actor)

    waiter = User(
        restaurant_id=restaurant_id,
        name=name.strip(),
        email=f"serveur-{uuid.uuid4().hex[:13]}@restaurant.local",
        password_hash=hash_password(secrets.token_urlsafe(24)),
        pin_hash=hash_pin(pin),
        role=ROLE_WAITER,
        is_active=True,
    )
    db.session.add(waiter)
    db.session.commit()

    current_app.logger.info("Waiter created: id=%s restaurant=%s", waiter.id, restaurant_id)
    return waiter


def delete_waiter(*, waiter_id: int, restaurant_id: int | None, actor: User) -> bool:
    waiter = get_managed_user(user_id=waiter_id, restaurant_id=restaurant_id)
    if waiter.role != ROLE_WAITER:
        raise UserError("This user is not a waiter")
    return delete_user(user_id=waiter.id, restaurant_id=restaurant_id, actor=actor)
