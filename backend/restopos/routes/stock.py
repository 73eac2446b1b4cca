# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

# backend/restopos/routes/stock.py
"""
Stock movement routes.

MULTI-TENANT: movements are listed and recorded in the caller's restaurant.

SECURITY:
- Listing requires VIEW_STOCK
- Recording requires MANAGE_STOCK
"""
from flask import Blueprint, request, g, current_app

from ..models.inventory import MOVEMENT_TYPES
from ..services.stock_service import StockError, list_movements, record_movement
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, enforce_rules_stock_movement
from ..decorators import require_auth, require_permission, require_restaurant
from restopos.currency import CurrencyError, current_rate, to_decimal

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


def record_movement_response(product_id, payload: dict):
    """Validate a movement body, record it, and build the JSON response."""
    patch = {
        "movement_type": str(payload.get("movement_type") or "").strip().upper(),
        "quantity_crates": payload.get("quantity_crates") or 0,
        "quantity_bottles": payload.get("quantity_bottles") or 0,
        "quantity_glasses": payload.get("quantity_glasses") or 0,
    }

    try:
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError("product_id must be an integer")
        for key in ("quantity_crates", "quantity_bottles", "quantity_glasses"):
            value = patch[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{key} must be an integer")
        for key in ("purchase_price_fc", "purchase_price_usd"):
            if payload.get(key) not in (None, ""):
                try:
                    patch[key] = to_decimal(payload[key], field=key)
                except CurrencyError as e:
                    raise ValidationError(str(e))
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        movement = record_movement(
            restaurant_id=g.restaurant_id,
            user_id=g.current_user.id,
            product_id=product_id,
            movement_type=patch["movement_type"],
            quantity_crates=patch["quantity_crates"],
            quantity_bottles=patch["quantity_bottles"],
            quantity_glasses=patch["quantity_glasses"],
            purchase_price_fc=patch.get("purchase_price_fc"),
            purchase_price_usd=patch.get("purchase_price_usd"),
            reason=payload.get("reason"),
            supplier_reference=payload.get("supplier_reference"),
        )
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    except StockError as e:
        body = {"error": str(e)}
        if e.details:
            # Shortage: requested vs available bottles
            body["details"] = e.details
            return body, 409
        return body, 400
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return {"error": "Internal server error"}, 500

    return {
        "movement": movement.to_dict(),
        "product": movement.product.to_dict(rate=current_rate()),
    }, 201


@stock_bp.get("/movements")
@require_auth
@require_restaurant
@require_permission("VIEW_STOCK")
def list_movements_route():
    """
    Latest stock movements, newest first.

    Query params:
    - product_id: int (optional)
    - type: IN | OUT | ADJUSTMENT (optional)
    - limit: int (optional, default 200, max 1000)
    """
    movement_type = (request.args.get("type") or "").strip().upper() or None
    if movement_type and movement_type not in MOVEMENT_TYPES:
        return {"error": f"type must be one of {', '.join(MOVEMENT_TYPES)}"}, 400

    try:
        movements = list_movements(
            restaurant_id=g.restaurant_id,
            product_id=request.args.get("product_id", type=int),
            movement_type=movement_type,
            limit=request.args.get("limit", default=200, type=int),
        )
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return {
        "items": [m.to_dict() for m in movements],
        "count": len(movements),
    }


@stock_bp.post("/movements")
@require_auth
@require_restaurant
@require_permission("MANAGE_STOCK")
def create_movement_route():
    """Record a movement; the body names the product with product_id."""
    payload = request.get_json(silent=True) or {}
    return record_movement_response(payload.get("product_id"), payload)
