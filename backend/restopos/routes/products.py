# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/restopos/routes/products.py
"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's restaurant.
The restaurant_id is derived from g.restaurant_id (set by @require_auth).

SECURITY: All routes require authentication.
- Read operations require VIEW_PRODUCTS permission
- Write operations require MANAGE_PRODUCTS permission
- Stock movements on a product require MANAGE_STOCK permission

PRICES: FC prices are stored; every response carries USD prices derived at
the configured exchange rate.
"""
from flask import Blueprint, request, g

from ..models import Product
from ..services.products_service import (
    ProductError,
    create_product,
    delete_product,
    get_product,
    list_categories,
    list_products as list_products_service,
    update_product,
)
from ..services.stock_service import list_movements
from ..services.subscription_service import SubscriptionLimitError
from ..services.tenant_service import TenantAccessError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_permission, require_restaurant
from restopos.currency import current_rate
from .stock import record_movement_response

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "code",
        "name",
        "description",
        "category",
        "image",
        "unit_of_measure",
        "bottles_per_crate",
        "quantity_crates",
        "quantity_bottles",
        "quantity_glasses",
        "stock_minimum",
        "price_crate_fc",
        "price_bottle_fc",
        "price_glass_fc",
        "is_active",
    },
    required_on_create={"name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _bool_arg(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")


@products_bp.get("")
@require_auth
@require_restaurant
@require_permission("VIEW_PRODUCTS")
def list_products():
    """
    List the restaurant's products, ordered by name.

    Query params:
    - search: str (optional) - name or code substring
    - category: str (optional)
    - low_stock: bool (optional) - only products at or under stock_minimum
    - active: bool (optional) - only active products (the POS screen)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    result = list_products_service(
        g.restaurant_id,
        search=request.args.get("search"),
        category=request.args.get("category"),
        low_stock=_bool_arg("low_stock"),
        active_only=_bool_arg("active"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    result["categories"] = list_categories(g.restaurant_id)
    return result


@products_bp.get("/<int:product_id>")
@require_auth
@require_restaurant
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    try:
        product = get_product(product_id=product_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    return product.to_dict(rate=current_rate())


@products_bp.post("")
@require_auth
@require_restaurant
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """
    Create a new product in the caller's restaurant.

    A code is generated from the name when none is supplied.
    Subject to the plan's max_products limit (402).
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = create_product(patch=patch, restaurant_id=g.restaurant_id, actor=g.current_user)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except SubscriptionLimitError as e:
        return e.to_dict(), 402
    except ProductError as e:
        return {"error": str(e)}, 400

    return created.to_dict(rate=current_rate()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_restaurant
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = update_product(product_id=product_id, patch=patch, restaurant_id=g.restaurant_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    except ProductError as e:
        return {"error": str(e)}, 400

    return updated.to_dict(rate=current_rate()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_restaurant
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    """Soft delete; sales keep referencing the product."""
    try:
        delete_product(product_id=product_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.get("/<int:product_id>/stock")
@require_auth
@require_restaurant
@require_permission("VIEW_STOCK")
def product_stock_route(product_id: int):
    """On-hand stock of one product with its latest movements."""
    try:
        product = get_product(product_id=product_id, restaurant_id=g.restaurant_id)
        movements = list_movements(
            restaurant_id=g.restaurant_id,
            product_id=product.id,
            limit=request.args.get("limit", default=50, type=int),
        )
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return {
        "product": product.to_dict(rate=current_rate()),
        "movements": [m.to_dict() for m in movements],
    }


@products_bp.post("/<int:product_id>/stock")
@require_auth
@require_restaurant
@require_permission("MANAGE_STOCK")
def product_stock_movement_route(product_id: int):
    """
    Record a stock entry (IN), exit (OUT) or count (ADJUSTMENT) for a product.

    Body: movement_type, quantity_crates, quantity_bottles, quantity_glasses,
    and optionally purchase_price_fc, purchase_price_usd, reason,
    supplier_reference.
    """
    payload = request.get_json(silent=True) or {}
    return record_movement_response(product_id, payload)
