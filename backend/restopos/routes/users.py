# Overview: Flask API routes for users and waiters; parses input and returns JSON responses.

# backend/restopos/routes/users.py
"""
User management routes.

MULTI-TENANT: restaurant admins manage the users of their own restaurant.
Super-admins may act on any restaurant; they pass restaurant_id in the body
when creating a user. Super-admin accounts never appear here.

SECURITY:
- Users: MANAGE_USERS
- Waiters: MANAGE_WAITERS
- Password change: any authenticated user for their own account (current
  password required), admins for users of their restaurant
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import user_service
from ..services.auth_service import PasswordValidationError
from ..services.subscription_service import SubscriptionLimitError
from ..services.tenant_service import TenantAccessError
from ..services.user_service import UserError
from ..validation import ConflictError, ValidationError
from ..decorators import require_auth, require_permission

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _target_restaurant_id(data: dict):
    """Caller's restaurant; super-admins name it explicitly."""
    if g.restaurant_id is not None:
        return g.restaurant_id
    restaurant_id = data.get("restaurant_id")
    if isinstance(restaurant_id, bool) or not isinstance(restaurant_id, int):
        raise ValidationError("restaurant_id is required")
    return restaurant_id


def _parse_bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes")


# =============================================================================
# WAITERS
# =============================================================================

@users_bp.get("/waiters")
@require_auth
@require_permission("MANAGE_WAITERS")
def list_waiters_route():
    restaurant_id = g.restaurant_id or request.args.get("restaurant_id", type=int)
    if restaurant_id is None:
        return jsonify({"error": "restaurant_id is required"}), 400

    waiters = user_service.list_waiters(restaurant_id)
    return jsonify({"items": [w.to_dict() for w in waiters], "count": len(waiters)}), 200


@users_bp.post("/waiters")
@require_auth
@require_permission("MANAGE_WAITERS")
def create_waiter_route():
    """
    Create a waiter.

    Request body:
    {
        "name": "Serveur 1",
        "pin": "1234"        // 4 digits, unique among the restaurant's waiters
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        waiter = user_service.create_waiter(
            restaurant_id=_target_restaurant_id(data),
            name=data.get("name"),
            pin=data.get("pin"),
            actor=g.current_user,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except SubscriptionLimitError as e:
        return jsonify(e.to_dict()), 402
    except Exception:
        current_app.logger.exception("Failed to create waiter")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(waiter.to_dict()), 201


@users_bp.delete("/waiters/<int:waiter_id>")
@require_auth
@require_permission("MANAGE_WAITERS")
def delete_waiter_route(waiter_id: int):
    try:
        deleted = user_service.delete_waiter(
            waiter_id=waiter_id,
            restaurant_id=g.restaurant_id,
            actor=g.current_user,
        )
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    except UserError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"ok": True, "deleted": deleted, "deactivated": not deleted}), 200


# =============================================================================
# USERS
# =============================================================================

@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    """
    List users, newest first.

    Query params:
    - search: str (optional) - name or email substring
    - role: str (optional)
    - is_active: bool (optional)
    """
    users = user_service.list_users(
        restaurant_id=g.restaurant_id,
        search=request.args.get("search"),
        role=request.args.get("role"),
        is_active=_parse_bool_arg("is_active"),
    )
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)}), 200


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def get_user_route(user_id: int):
    try:
        user = user_service.get_managed_user(user_id=user_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """
    Create a user.

    Request body:
    {
        "name": "Caissier 2",
        "email": "caisse2@juvisy.com",
        "password": "at-least-8-chars",
        "role": "admin" | "caisse" | "stock" | "serveur"
    }

    Subject to the plan's max_users limit (402).
    """
    data = request.get_json(silent=True) or {}

    try:
        user = user_service.create_user(
            restaurant_id=_target_restaurant_id(data),
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role"),
            actor=g.current_user,
        )
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except SubscriptionLimitError as e:
        return jsonify(e.to_dict()), 402
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(user_id: int):
    """Update name, email, role or is_active. Deactivation revokes sessions."""
    data = request.get_json(silent=True) or {}
    data = {k: v for k, v in data.items() if k in ("name", "email", "role", "is_active")}

    if user_id == g.current_user.id and (data.get("is_active") is False or "role" in data):
        return jsonify({"error": "You cannot change your own role or deactivate yourself"}), 400

    try:
        user = user_service.update_user(user_id=user_id, restaurant_id=g.restaurant_id, data=data)
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(user.to_dict()), 200


@users_bp.put("/<int:user_id>/password")
@require_auth
def change_password_route(user_id: int):
    """
    Change a password.

    Request body:
    {
        "password": "new-password",
        "current_password": "..."    // required when changing your own
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        if user_id == g.current_user.id:
            target = g.current_user
        else:
            target = user_service.get_managed_user(user_id=user_id, restaurant_id=g.restaurant_id)
        user_service.change_password(
            target=target,
            actor=g.current_user,
            new_password=data.get("password"),
            current_password=data.get("current_password"),
        )
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    except UserError as e:
        return jsonify({"error": str(e)}), 403
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"message": "Password updated"}), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    """
    Delete a user.

    Users with sales, stock movements or security history are deactivated
    instead; the response says which happened.
    """
    try:
        deleted = user_service.delete_user(
            user_id=user_id,
            restaurant_id=g.restaurant_id,
            actor=g.current_user,
        )
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    except UserError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"ok": True, "deleted": deleted, "deactivated": not deleted}), 200
