# Overview: Flask API routes for restaurant customization and typography; parses input and returns JSON responses.

# backend/restopos/routes/customization.py
"""
Restaurant customization routes.

The customization (address, colors, typography, receipt details) is read and
edited by admins with MANAGE_CUSTOMIZATION, and only on plans that include
the customization feature.

Typography is resolved for every user: the restaurant's settings, then the
browser's stored preference (mirrored in a cookie), then the defaults.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..services.customization_service import (
    get_or_create_customization,
    resolve_restaurant_typography,
    update_customization,
    update_typography_preference,
)
from ..services.subscription_service import has_feature
from ..validation import ValidationError
from ..decorators import require_auth, require_permission, require_restaurant
from restopos.typography import STORAGE_KEY

customization_bp = Blueprint("customization", __name__, url_prefix="/api/customization")


def _typography_storage() -> dict:
    return {STORAGE_KEY: request.cookies.get(current_app.config["TYPOGRAPHY_COOKIE"])}


def _feature_unavailable():
    return jsonify({
        "error": "Customization is not included in your plan",
        "limit": "customization",
        "current": None,
        "maximum": None,
    }), 402


@customization_bp.get("")
@require_auth
@require_restaurant
@require_permission("MANAGE_CUSTOMIZATION")
def get_customization_route():
    if not has_feature(g.restaurant_id, "customization"):
        return _feature_unavailable()

    customization = get_or_create_customization(g.restaurant_id)
    return jsonify(customization.to_dict()), 200


@customization_bp.put("")
@require_auth
@require_restaurant
@require_permission("MANAGE_CUSTOMIZATION")
def update_customization_route():
    """
    Update the restaurant customization.

    Blank strings clear optional text fields. font_size must be
    small | normal | large; colors are #RRGGBB.
    """
    if not has_feature(g.restaurant_id, "customization"):
        return _feature_unavailable()

    payload = request.get_json(silent=True) or {}

    try:
        customization = update_customization(restaurant_id=g.restaurant_id, payload=payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update customization")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(customization.to_dict()), 200


@customization_bp.get("/typography")
@require_auth
def get_typography_route():
    """Resolved typography with its source (server | local | default)."""
    return jsonify(resolve_restaurant_typography(g.restaurant_id, _typography_storage())), 200


@customization_bp.put("/typography/preference")
@require_auth
def update_typography_preference_route():
    """
    Store a typography preference for this browser.

    Request body: {"font_family": "...", "font_size": "small" | "normal" | "large"}
    The merged preference is returned and written to the cookie.
    """
    patch = request.get_json(silent=True) or {}

    try:
        settings, stored = update_typography_preference(_typography_storage(), patch)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    response = jsonify(settings.to_dict())
    response.set_cookie(
        current_app.config["TYPOGRAPHY_COOKIE"],
        stored,
        max_age=60 * 60 * 24 * 365,
        samesite="Lax",
    )
    return response, 200
