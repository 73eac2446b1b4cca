# Overview: Retention jobs for the security audit log and session tokens.

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SecurityEvent
from .session_service import cleanup_expired_sessions
from restopos.time_utils import utcnow


DEFAULT_SECURITY_EVENT_RETENTION_DAYS = 90


def cleanup_security_events(*, retention_days: int = DEFAULT_SECURITY_EVENT_RETENTION_DAYS) -> int:
    """
    Delete security events older than retention_days.

    Recent LOGIN_FAILED rows drive login throttling, so the retention must
    stay well above the lockout window.
    """
    if retention_days < 1:
        raise ValueError("retention_days must be >= 1")

    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()

    current_app.logger.info("Security events cleaned up: deleted=%s retention_days=%s", deleted, retention_days)
    return deleted


def cleanup_sessions(*, days: int = 30) -> int:
    deleted = cleanup_expired_sessions(days=days)
    current_app.logger.info("Expired sessions cleaned up: deleted=%s", deleted)
    return deleted
