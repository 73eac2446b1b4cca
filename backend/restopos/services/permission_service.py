# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Checking and Security Event Logging with Multi-Tenant Support

WHY: Enforce role-based access control and create audit trail.

MULTI-TENANT: Security events include restaurant_id for tenant isolation.

DESIGN PRINCIPLES:
- Fail closed: unknown roles hold no permissions
- Log denials only: permission grants are not logged
- Super-admins bypass permission checks
"""

from ..extensions import db
from ..models import User, SecurityEvent
from ..permissions import permissions_for_role
from restopos.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    restaurant_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - PERMISSION_DENIED
    - ROLE_DENIED
    - LOGIN_FAILED / LOGIN_SUCCESS
    - LOGOUT
    - USER_CREATED / USER_DEACTIVATED
    - CROSS_TENANT_ACCESS_DENIED
    """
    event = SecurityEvent(
        user_id=user_id,
        restaurant_id=restaurant_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def get_user_permissions(user: User) -> set[str]:
    """Permission codes granted by the user's role."""
    return set(permissions_for_role(user.role))


def user_has_permission(user: User, permission_code: str) -> bool:
    if user.is_super_admin:
        return True
    return permission_code in permissions_for_role(user.role)


def require_permission(
    user: User,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    restaurant_id: int | None = None,
) -> None:
    """
    Require user to have permission, raise PermissionDeniedError if not.

    Denials are written to security_events.

    Usage:
        require_permission(user, "CREATE_SALE", resource="/api/sales", restaurant_id=g.restaurant_id)
    """
    if user_has_permission(user, permission_code):
        return

    log_security_event(
        user_id=user.id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=permission_code,
        reason=f"Missing permission: {permission_code}",
        ip_address=ip_address,
        user_agent=user_agent,
        restaurant_id=restaurant_id,
    )
    raise PermissionDeniedError(f"Permission denied: {permission_code}")
