# Overview: Bearer session tokens bound to a restaurant.

"""
Session tokens.

A login hands the client a random 64-character hex token; only its SHA-256
digest is stored. The session row captures the restaurant the user worked
for at login time, so every authenticated request gets its tenant from the
token and not from the user row. Super-admin sessions have no restaurant.

A session stops working when:
- SESSION_ABSOLUTE_HOURS have passed since login (24 by default)
- it sat unused for SESSION_IDLE_MINUTES (120 by default)
- the user is deactivated, or the restaurant suspended or deleted
- it is revoked (logout, password change, user removal)
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app, has_app_context

from ..extensions import db
from ..models import Restaurant, SessionToken, User
from restopos.time_utils import utcnow


DEFAULT_ABSOLUTE_HOURS = 24
DEFAULT_IDLE_MINUTES = 120


@dataclass
class SessionContext:
    user: User
    session: SessionToken
    restaurant_id: int | None


def _absolute_timeout() -> timedelta:
    hours = current_app.config.get("SESSION_ABSOLUTE_HOURS", DEFAULT_ABSOLUTE_HOURS) if has_app_context() else DEFAULT_ABSOLUTE_HOURS
    return timedelta(hours=int(hours))


def _idle_timeout() -> timedelta:
    minutes = current_app.config.get("SESSION_IDLE_MINUTES", DEFAULT_IDLE_MINUTES) if has_app_context() else DEFAULT_IDLE_MINUTES
    return timedelta(minutes=int(minutes))


def hash_token(token: str) -> str:
    # Tokens carry 256 bits of entropy; a fast digest is enough
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _restaurant_open(restaurant: Restaurant | None) -> bool:
    return restaurant is not None and restaurant.is_active and not restaurant.is_deleted


def _live_session(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(token_hash=hash_token(token), is_revoked=False).first()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Open a session for `user_id`; returns (session row, plaintext token).

    Raises ValueError when the user is unknown, has no restaurant without
    being a super-admin, or works for a suspended restaurant.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    restaurant_id = None
    if not user.is_super_admin:
        if not user.restaurant_id:
            raise ValueError("User must belong to a restaurant")
        if not _restaurant_open(db.session.get(Restaurant, user.restaurant_id)):
            raise ValueError("Restaurant is not active")
        restaurant_id = user.restaurant_id

    token = secrets.token_hex(32)
    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        restaurant_id=restaurant_id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def _revoke(sessions: list[SessionToken], reason: str) -> int:
    now = utcnow()
    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
    db.session.commit()
    return len(sessions)


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext, or None.

    Idle sessions, deactivated users and closed restaurants revoke the
    session on the way out. A valid call refreshes last_used_at.
    """
    session = _live_session(token)
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke([session], "Idle timeout")
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke([session], "User account deactivated")
        return None

    if session.restaurant_id is not None and not _restaurant_open(session.restaurant):
        _revoke([session], "Restaurant deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session, restaurant_id=session.restaurant_id)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = _live_session(token)
    if not session:
        return False
    _revoke([session], reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    return _revoke(sessions, reason)


def cleanup_expired_sessions(days: int = 30) -> int:
    """Delete expired or revoked sessions created more than `days` ago."""
    now = utcnow()
    deleted = db.session.query(SessionToken).filter(
        db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
        SessionToken.created_at < now - timedelta(days=days),
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
