# Overview: Flask API routes for restaurant administration (super-admin); parses input and returns JSON responses.

# backend/restopos/routes/restaurants.py
"""
Restaurant administration routes.

SECURITY: super-admin only. Restaurant admins never reach these endpoints;
their own restaurant is described by /api/ui/shared.

Lifecycle:
- create: restaurant + subscription + admin account (temporary password
  returned once)
- suspend / activate: blocks or restores logins, suspends or reactivates
  the subscription
- delete / restore: soft delete (deleted_at)
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import restaurant_service
from ..services.subscription_service import change_plan, list_plans
from ..services.tenant_service import TenantAccessError
from ..validation import ConflictError, ValidationError
from ..decorators import require_auth, require_super_admin
from restopos.currency import CurrencyError, to_decimal
from restopos.time_utils import parse_iso_date

restaurants_bp = Blueprint("restaurants", __name__, url_prefix="/api/restaurants")


def _optional_amount(data: dict, key: str = "monthly_amount"):
    if data.get(key) in (None, ""):
        return None
    try:
        return to_decimal(data[key], field=key)
    except CurrencyError as e:
        raise ValidationError(str(e))


def _optional_date(data: dict, key: str):
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"{key} must be an ISO date (YYYY-MM-DD)")
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO date (YYYY-MM-DD)")


def _deleted_flag() -> bool:
    return (request.args.get("deleted") or "").strip().lower() in ("1", "true", "yes")


@restaurants_bp.get("/plans")
@require_auth
@require_super_admin
def list_plans_route():
    return jsonify({"items": list_plans()}), 200


@restaurants_bp.get("")
@require_auth
@require_super_admin
def list_restaurants_route():
    """
    Restaurants with their current subscription, newest first.

    Query params:
    - deleted: bool (optional) - list soft-deleted restaurants instead
    """
    restaurants = restaurant_service.list_restaurants(deleted=_deleted_flag())
    return jsonify({
        "items": [restaurant_service.restaurant_summary(r) for r in restaurants],
        "count": len(restaurants),
    }), 200


@restaurants_bp.get("/<int:restaurant_id>")
@require_auth
@require_super_admin
def get_restaurant_route(restaurant_id: int):
    """A soft-deleted restaurant is 404 unless ?deleted=true is passed."""
    try:
        restaurant = restaurant_service.get_restaurant(restaurant_id, include_deleted=_deleted_flag())
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    return jsonify(restaurant_service.restaurant_summary(restaurant)), 200


@restaurants_bp.post("")
@require_auth
@require_super_admin
def create_restaurant_route():
    """
    Create a restaurant with its subscription and admin account.

    Request body:
    {
        "name": "Chez Mama",
        "email": "contact@chezmama.cd",      // also the admin login
        "phone": "+243...",                  // optional
        "plan": "simple" | "medium" | "premium",
        "monthly_amount": "29.99",           // optional, plan price by default
        "starts_on": "2026-01-01",           // optional, today by default
        "ends_on": "2026-12-31"              // optional
    }

    The response carries admin_credentials with the temporary password;
    it is not retrievable afterwards.
    """
    data = request.get_json(silent=True) or {}

    try:
        result = restaurant_service.create_restaurant(
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            plan=data.get("plan"),
            monthly_amount=_optional_amount(data),
            starts_on=_optional_date(data, "starts_on"),
            ends_on=_optional_date(data, "ends_on"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create restaurant")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 201


@restaurants_bp.put("/<int:restaurant_id>")
@require_auth
@require_super_admin
def update_restaurant_route(restaurant_id: int):
    data = request.get_json(silent=True) or {}
    data = {k: v for k, v in data.items() if k in ("name", "email", "phone")}

    try:
        restaurant = restaurant_service.update_restaurant(restaurant_id=restaurant_id, data=data)
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(restaurant.to_dict()), 200


@restaurants_bp.put("/<int:restaurant_id>/subscription")
@require_auth
@require_super_admin
def change_plan_route(restaurant_id: int):
    """Switch plan. Body: plan, and optionally monthly_amount, ends_on."""
    data = request.get_json(silent=True) or {}

    try:
        restaurant_service.get_restaurant(restaurant_id)
        subscription = change_plan(
            restaurant_id=restaurant_id,
            plan=data.get("plan"),
            monthly_amount=_optional_amount(data),
            ends_on=_optional_date(data, "ends_on"),
        )
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    except ValueError as e:
        # ValidationError and unknown plans alike
        return jsonify({"error": str(e)}), 400

    return jsonify(subscription.to_dict()), 200


@restaurants_bp.post("/<int:restaurant_id>/suspend")
@require_auth
@require_super_admin
def suspend_restaurant_route(restaurant_id: int):
    try:
        restaurant = restaurant_service.suspend_restaurant(restaurant_id)
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    return jsonify(restaurant_service.restaurant_summary(restaurant)), 200


@restaurants_bp.post("/<int:restaurant_id>/activate")
@require_auth
@require_super_admin
def activate_restaurant_route(restaurant_id: int):
    try:
        restaurant = restaurant_service.activate_restaurant(restaurant_id)
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    return jsonify(restaurant_service.restaurant_summary(restaurant)), 200


@restaurants_bp.delete("/<int:restaurant_id>")
@require_auth
@require_super_admin
def delete_restaurant_route(restaurant_id: int):
    try:
        restaurant_service.delete_restaurant(restaurant_id)
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    return jsonify({"ok": True}), 200


@restaurants_bp.post("/<int:restaurant_id>/restore")
@require_auth
@require_super_admin
def restore_restaurant_route(restaurant_id: int):
    try:
        restaurant = restaurant_service.restore_restaurant(restaurant_id)
    except TenantAccessError:
        return jsonify({"error": "Restaurant not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(restaurant.to_dict()), 200
