# Overview: Brute-force protection for email and PIN logins.

"""
Login throttling.

Every login attempt becomes a SecurityEvent whose `action` holds the login
identifier: the lower-cased email, or pin_identifier() for waiter PINs.
MAX_FAILED_ATTEMPTS failures inside LOCKOUT_WINDOW lock the identifier until
LOCKOUT_DURATION after the last failure. A successful login starts the count
again.
"""

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent, User
from restopos.time_utils import utcnow


MAX_FAILED_ATTEMPTS = 10
WARNING_THRESHOLD = 3
LOCKOUT_WINDOW = timedelta(minutes=15)
LOCKOUT_DURATION = timedelta(minutes=15)

LOGIN_FAILED = "LOGIN_FAILED"
LOGIN_SUCCESS = "LOGIN_SUCCESS"


def pin_identifier(restaurant_id: int | None, ip_address: str | None) -> str:
    """PINs are 4 digits, so PIN attempts are counted per restaurant and client address."""
    return f"pin:{restaurant_id or 'global'}:{ip_address or 'unknown'}"


def _log_attempt(event_type, identifier, *, user_id, restaurant_id, reason, ip_address, user_agent, resource):
    db.session.add(SecurityEvent(
        restaurant_id=restaurant_id,
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=identifier,
        success=event_type == LOGIN_SUCCESS,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow(),
    ))
    db.session.commit()


def _latest(identifier: str, event_type: str) -> SecurityEvent | None:
    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == event_type,
        SecurityEvent.action == identifier,
    ).order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).first()


def get_recent_failed_attempts(identifier: str) -> int:
    """Failures inside LOCKOUT_WINDOW that came after the last successful login."""
    cutoff = utcnow() - LOCKOUT_WINDOW
    success = _latest(identifier, LOGIN_SUCCESS)
    if success is not None and success.occurred_at > cutoff:
        cutoff = success.occurred_at

    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == LOGIN_FAILED,
        SecurityEvent.action == identifier,
        SecurityEvent.occurred_at >= cutoff,
    ).count()


def is_account_locked(identifier: str) -> tuple[bool, int | None]:
    """(True, seconds_remaining) while locked, else (False, None)."""
    if get_recent_failed_attempts(identifier) < MAX_FAILED_ATTEMPTS:
        return False, None

    last_failure = _latest(identifier, LOGIN_FAILED)
    unlock_at = last_failure.occurred_at + LOCKOUT_DURATION
    now = utcnow()
    if now >= unlock_at:
        return False, None
    return True, max(1, int((unlock_at - now).total_seconds()))


def record_failed_attempt(
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid credentials",
    resource: str = "/api/auth/login",
) -> int:
    """Store a failure and return the recent failure count for `identifier`."""
    # Email logins can be tied to the account; PIN failures have no user
    user = db.session.query(User).filter_by(email=identifier).first()
    _log_attempt(
        LOGIN_FAILED,
        identifier,
        user_id=user.id if user else None,
        restaurant_id=user.restaurant_id if user else None,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        resource=resource,
    )
    return get_recent_failed_attempts(identifier)


def record_successful_login(
    user: User,
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    resource: str = "/api/auth/login",
) -> None:
    _log_attempt(
        LOGIN_SUCCESS,
        identifier,
        user_id=user.id,
        restaurant_id=user.restaurant_id,
        reason=None,
        ip_address=ip_address,
        user_agent=user_agent,
        resource=resource,
    )


def get_lockout_status(identifier: str) -> dict:
    locked, seconds_remaining = is_account_locked(identifier)
    return {
        "locked": locked,
        "failed_attempts": get_recent_failed_attempts(identifier),
        "max_attempts": MAX_FAILED_ATTEMPTS,
        "seconds_until_unlock": seconds_remaining,
        "lockout_window_minutes": int(LOCKOUT_WINDOW.total_seconds() // 60),
        "lockout_duration_minutes": int(LOCKOUT_DURATION.total_seconds() // 60),
    }
