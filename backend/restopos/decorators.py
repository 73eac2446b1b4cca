# Overview: Request, role and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .locales import translate
from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'restaurant_id')


def _unauthenticated():
    return jsonify({
        "error": translate("auth.unauthenticated"),
        "message": translate("auth.unauthenticated_message"),
    }), 401


def _forbidden(**extra):
    body = {
        "error": translate("auth.unauthorized"),
        "message": translate("auth.unauthorized_message"),
    }
    body.update(extra)
    return jsonify(body), 403


def _client_context() -> dict:
    return {
        "resource": request.path,
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
        "restaurant_id": g.restaurant_id,
    }


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.restaurant_id: The restaurant ID (None for super-admins)
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated
    - Restaurant suspended or deleted
    - Session missing restaurant_id for a non super-admin
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return _unauthenticated()

        token = auth_header.split(" ", 1)[1].strip()

        context = session_service.validate_session(token)

        if not context:
            return _unauthenticated()

        if context.restaurant_id is None and not context.user.is_super_admin:
            permission_service.log_security_event(
                user_id=context.user.id,
                event_type="TENANT_CONTEXT_MISSING",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Session missing restaurant_id",
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
            )
            return _unauthenticated()

        g.current_user = context.user
        g.restaurant_id = context.restaurant_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission (from the role map).

    Super-admins bypass the check. Denials are logged.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return _unauthenticated()

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_code,
                    **_client_context(),
                )
            except PermissionDeniedError:
                return _forbidden(required_permission=permission_code)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_super_admin(f):
    """Require the authenticated user to be a super-admin."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthenticated()
        if not g.current_user.is_super_admin:
            permission_service.log_security_event(
                user_id=g.current_user.id,
                event_type="ROLE_DENIED",
                success=False,
                reason="Super-admin access required",
                action="super-admin",
                **_client_context(),
            )
            return _forbidden(required_roles=["super-admin"])
        return f(*args, **kwargs)
    return decorated_function


def require_restaurant(f):
    """Require a restaurant-scoped session (rejects super-admin sessions)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _unauthenticated()
        if g.restaurant_id is None:
            return jsonify({"error": "This endpoint requires a restaurant context"}), 400
        return f(*args, **kwargs)
    return decorated_function
