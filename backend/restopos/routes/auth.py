# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/restopos/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Login throttling to prevent brute-force attacks
- Account lockout after repeated failed attempts (429 with retry_after_seconds)
- Session management with token-based auth
- Waiter PIN login, throttled per restaurant and client address

Messages shown to the user come from the French locale table (auth.*).
"""

from flask import Blueprint, request, jsonify, current_app

from ..locales import translate
from ..services import auth_service
from ..services import session_service
from ..services import login_throttle_service
from ..services import permission_service
from ..services.auth_service import AuthError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _bearer_token():
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


def _locked_response(seconds_remaining):
    seconds = seconds_remaining or int(login_throttle_service.LOCKOUT_DURATION.total_seconds())
    return jsonify({
        "error": translate("auth.throttle", seconds=seconds),
        "locked": True,
        "retry_after_seconds": seconds,
        "retry_after_minutes": (seconds // 60) + 1,
    }), 429


def _failed_response(identifier, reason, user_agent, ip_address):
    failed_count = login_throttle_service.record_failed_attempt(
        identifier=identifier,
        ip_address=ip_address,
        user_agent=user_agent,
        reason=reason,
        resource=request.path,
    )
    remaining = login_throttle_service.MAX_FAILED_ATTEMPTS - failed_count

    if remaining <= 0:
        _, seconds_remaining = login_throttle_service.is_account_locked(identifier)
        return _locked_response(seconds_remaining)

    body = {"error": translate("auth.failed")}
    if remaining <= login_throttle_service.WARNING_THRESHOLD:
        # Warn user they're close to lockout
        body["warning"] = f"{remaining} attempts remaining before account lockout"
    return jsonify(body), 401


def _session_payload(user, user_agent, ip_address):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return {
        "user": user.to_dict(),
        "permissions": sorted(permission_service.get_user_permissions(user)),
        "token": token,
        "session": session.to_dict(),
        "restaurant_id": session.restaurant_id,
        "message": "Login successful",
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user by email and password and create a session token.

    Token must be included in Authorization header for protected routes.

    SECURITY:
    - Checks for account lockout before attempting authentication
    - Records failed attempts for throttling
    - Records successful logins for audit trail
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email") or data.get("identifier")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        email = str(email).strip().lower()
        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        is_locked, seconds_remaining = login_throttle_service.is_account_locked(email)
        if is_locked:
            return _locked_response(seconds_remaining)

        try:
            user = auth_service.authenticate(email, password)
        except AuthError as e:
            return jsonify({"error": translate("auth.unauthorized"), "message": str(e)}), 403

        if not user:
            return _failed_response(email, "Invalid credentials", user_agent, ip_address)

        login_throttle_service.record_successful_login(
            user=user,
            identifier=email,
            ip_address=ip_address,
            user_agent=user_agent,
            resource=request.path,
        )

        return jsonify(_session_payload(user, user_agent, ip_address)), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/pin-login")
def pin_login_route():
    """
    Waiter login by 4-digit PIN.

    Request body:
    {
        "pin": "1234",          // required
        "restaurant_id": 1      // optional, scope the PIN lookup
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        pin = data.get("pin")
        restaurant_id = data.get("restaurant_id")

        if not isinstance(pin, str) or not pin:
            return jsonify({"error": "PIN is required"}), 400
        if not pin.isdigit() or len(pin) != 4:
            return jsonify({"error": "PIN must be exactly 4 digits"}), 400
        if restaurant_id is not None and (isinstance(restaurant_id, bool) or not isinstance(restaurant_id, int)):
            return jsonify({"error": "restaurant_id must be an integer"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr
        lockout_identifier = login_throttle_service.pin_identifier(restaurant_id, ip_address)

        is_locked, seconds_remaining = login_throttle_service.is_account_locked(lockout_identifier)
        if is_locked:
            return _locked_response(seconds_remaining)

        user = auth_service.authenticate_pin(pin, restaurant_id=restaurant_id)
        if not user:
            return _failed_response(lockout_identifier, "Invalid PIN", user_agent, ip_address)

        login_throttle_service.record_successful_login(
            user=user,
            identifier=lockout_identifier,
            ip_address=ip_address,
            user_agent=user_agent,
            resource=request.path,
        )

        return jsonify(_session_payload(user, user_agent, ip_address)), 200

    except Exception:
        current_app.logger.exception("Failed to login waiter by PIN")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/lockout-status/<identifier>")
def lockout_status_route(identifier: str):
    """
    Check lockout status for an account.

    Public, so a locked-out user can see when they may retry.
    """
    status = login_throttle_service.get_lockout_status(identifier.strip().lower())
    return jsonify(status)


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        token = _bearer_token()
        if not token:
            return jsonify({"error": translate("auth.unauthenticated")}), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/validate")
def validate_route():
    """
    Validate session token and return the user, permissions and restaurant.

    WHY: The UI checks the token on load and filters its navigation and
    buttons from the permission list.
    """
    try:
        token = _bearer_token()
        if not token:
            return jsonify({"error": translate("auth.unauthenticated")}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({
            "user": context.user.to_dict(),
            "permissions": sorted(permission_service.get_user_permissions(context.user)),
            "restaurant_id": context.restaurant_id,
            "message": "Token valid",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to validate session")
        return jsonify({"error": "Internal server error"}), 500
