# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

WHY: Every action must be attributable. Uses bcrypt for password and PIN
hashing.

MULTI-TENANT: Users belong to exactly one restaurant (restaurant_id), except
super-admins. A suspended or deleted restaurant blocks its users' logins.

SECURITY NOTES:
- Passwords and PINs hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters for passwords
- PINs are exactly 4 digits, unique among a restaurant's waiters
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from flask import current_app, has_app_context
from ..extensions import db
from ..models import User, Restaurant
from ..models.auth import ROLE_WAITER
from ..validation import MIN_PASSWORD_LENGTH, PIN_RE
from restopos.time_utils import utcnow


DEFAULT_BCRYPT_ROUNDS = 12


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthError(Exception):
    """Raised for authentication problems that are not bad credentials."""
    pass


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
    return DEFAULT_BCRYPT_ROUNDS


def validate_password_strength(password: str) -> None:
    """Raises PasswordValidationError for passwords under 8 characters."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """Validate then hash with bcrypt. Returned as str for the String column."""
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=_rounds()))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash is treated as a mismatch.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def hash_pin(pin: str) -> str:
    if not isinstance(pin, str) or not PIN_RE.match(pin):
        raise PasswordValidationError("PIN must be exactly 4 digits")
    return bcrypt.hashpw(pin.encode('utf-8'), bcrypt.gensalt(rounds=_rounds())).decode('utf-8')


def _restaurant_allows_login(user: User) -> bool:
    if user.is_super_admin:
        return True
    if not user.restaurant_id:
        return False
    restaurant = db.session.get(Restaurant, user.restaurant_id)
    return bool(restaurant and restaurant.is_active and not restaurant.is_deleted)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.

    Raises:
        AuthError: valid credentials on a deactivated account, or on a
            user whose restaurant is suspended or deleted. Super-admins
            have no restaurant and skip that check.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(
        db.func.lower(User.email) == email.strip().lower(),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        return None

    if not user.is_active:
        raise AuthError("Account is deactivated")

    if not _restaurant_allows_login(user):
        raise AuthError("Restaurant is suspended")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def find_waiter_by_pin(pin: str, restaurant_id: int | None = None, exclude_user_id: int | None = None) -> User | None:
    """
    PINs are bcrypt-hashed, so matching walks the candidate waiters.
    Restaurants carry a handful of waiters, which keeps this cheap.
    """
    query = db.session.query(User).filter(
        User.role == ROLE_WAITER,
        User.pin_hash.isnot(None),
    )
    if restaurant_id is not None:
        query = query.filter(User.restaurant_id == restaurant_id)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)

    for waiter in query.order_by(User.id).all():
        if verify_password(pin, waiter.pin_hash):
            return waiter
    return None


def authenticate_pin(pin: str, restaurant_id: int | None = None) -> User | None:
    """
    Waiter login by 4-digit PIN.

    Only active waiters of an active restaurant are accepted.
    """
    if not isinstance(pin, str) or not PIN_RE.match(pin):
        return None

    waiter = find_waiter_by_pin(pin, restaurant_id=restaurant_id)
    if not waiter or not waiter.is_active:
        return None

    if not _restaurant_allows_login(waiter):
        return None

    waiter.last_login_at = utcnow()
    db.session.commit()
    return waiter
