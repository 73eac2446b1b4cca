# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/restopos/routes/sales.py
"""
Sales routes.

MULTI-TENANT: sales are created, listed and read in the caller's restaurant.
Waiters (serveur) only ever see their own sales.

SECURITY:
- Listing and reading require VIEW_SALES
- Creating requires CREATE_SALE
- Editing requires EDIT_SALE
- Receipts require PRINT_RECEIPT; printing is gated on the plan's printing feature

CURRENCY: amounts are strings with 2 decimals; exchange_rate defaults to the
configured rate and is stored on the sale.
"""
from flask import Blueprint, request, g, current_app, jsonify

from ..models import Printer
from ..services import sales_service
from ..services.customization_service import get_customization
from ..services.printer_service import get_default_printer
from ..services.receipt_service import format_receipt, print_receipt
from ..services.sales_service import SaleError
from ..services.subscription_service import SubscriptionLimitError, has_feature
from ..services.tenant_service import TenantAccessError
from ..decorators import require_auth, require_permission, require_restaurant
from ..extensions import db
from ..models.sales import PAYMENT_MIXED

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_PERIODS = ("day", "week", "month")


def _own_sales_only() -> bool:
    return g.current_user.is_waiter


def _load_visible_sale(sale_id: int):
    sale = sales_service.get_sale(sale_id=sale_id, restaurant_id=g.restaurant_id)
    if _own_sales_only() and sale.user_id != g.current_user.id:
        raise TenantAccessError("Sale not found")
    return sale


def _sale_error_response(e: SaleError):
    body = {"error": str(e)}
    if e.details:
        body["details"] = e.details
    return jsonify(body), e.status_code


@sales_bp.get("")
@require_auth
@require_restaurant
@require_permission("VIEW_SALES")
def list_sales_route():
    """
    Sales of the current period with totals.

    Query params:
    - period: day | week | month (default day)
    - user_id: int (optional; ignored for waiters, who only see their own)
    - page, per_page: pagination (default 1 / 20, max 100)
    """
    period = request.args.get("period", "day")
    if period not in SALE_PERIODS:
        return jsonify({"error": f"period must be one of {', '.join(SALE_PERIODS)}"}), 400

    user_id = request.args.get("user_id", type=int)
    if _own_sales_only():
        user_id = g.current_user.id

    result = sales_service.list_sales(
        restaurant_id=g.restaurant_id,
        period=period,
        user_id=user_id,
        page=request.args.get("page", default=1, type=int),
        per_page=request.args.get("per_page", default=20, type=int),
    )
    return jsonify(result), 200


@sales_bp.post("")
@require_auth
@require_restaurant
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Record a sale.

    Request body:
    {
        "items": [{"product_id": 1, "unit": "BOTTLE", "quantity": 2, "unit_price_fc": "2200"}],
        "payment_mode": "FC" | "USD" | "MIXED",
        "paid_fc": "5000",
        "paid_usd": "0",
        "exchange_rate": "2500",     // optional
        "notes": "...",              // optional
        "offline_payload": {...}     // optional, stored as-is
    }

    Returns 201 with the sale, 409 when stock is short (nothing is written),
    402 when the monthly sales limit is reached.
    """
    data = request.get_json(silent=True) or {}

    try:
        sale = sales_service.create_sale(
            restaurant_id=g.restaurant_id,
            user_id=g.current_user.id,
            items=data.get("items"),
            payment_mode=str(data.get("payment_mode") or PAYMENT_MIXED).upper(),
            paid_fc=data.get("paid_fc"),
            paid_usd=data.get("paid_usd"),
            exchange_rate=data.get("exchange_rate"),
            notes=data.get("notes"),
            offline_payload=data.get("offline_payload"),
            actor=g.current_user,
        )
    except SaleError as e:
        return _sale_error_response(e)
    except SubscriptionLimitError as e:
        return jsonify(e.to_dict()), 402
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(sale.to_dict()), 201


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_restaurant
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    try:
        sale = _load_visible_sale(sale_id)
    except TenantAccessError:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify(sale.to_dict()), 200


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_restaurant
@require_permission("EDIT_SALE")
def update_sale_route(sale_id: int):
    """
    Replace the lines and payment of a sale.

    Stock of the previous lines is restored before the new lines are
    applied; any failure leaves the sale and stock untouched.
    """
    data = request.get_json(silent=True) or {}

    try:
        _load_visible_sale(sale_id)
        sale = sales_service.update_sale(
            sale_id=sale_id,
            restaurant_id=g.restaurant_id,
            items=data.get("items"),
            payment_mode=str(data.get("payment_mode") or PAYMENT_MIXED).upper(),
            paid_fc=data.get("paid_fc"),
            paid_usd=data.get("paid_usd"),
            exchange_rate=data.get("exchange_rate"),
            notes=data.get("notes"),
        )
    except TenantAccessError:
        return jsonify({"error": "Sale not found"}), 404
    except SaleError as e:
        return _sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(sale.to_dict()), 200


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
@require_restaurant
@require_permission("PRINT_RECEIPT")
def receipt_preview_route(sale_id: int):
    """
    Receipt text for preview; the sale is not marked printed.

    Query params:
    - printer_id: int (optional) - render for this printer instead of the default
    """
    try:
        sale = _load_visible_sale(sale_id)
    except TenantAccessError:
        return jsonify({"error": "Sale not found"}), 404

    printer_id = request.args.get("printer_id", type=int)
    if printer_id is not None:
        printer = db.session.get(Printer, printer_id)
        if printer is None or printer.restaurant_id not in (None, sale.restaurant_id):
            return jsonify({"error": "Printer not found"}), 404
    else:
        printer = get_default_printer(sale.restaurant_id)

    customization = get_customization(sale.restaurant_id)

    return jsonify({
        "receipt": format_receipt(sale, printer, customization),
        "printer": printer.to_dict() if printer else None,
        "sale": sale.to_dict(),
    }), 200


@sales_bp.post("/<int:sale_id>/print")
@require_auth
@require_restaurant
@require_permission("PRINT_RECEIPT")
def print_sale_route(sale_id: int):
    """Render the receipt with the default printer and mark the sale printed."""
    if not has_feature(g.restaurant_id, "printing"):
        return jsonify({
            "error": "Printing is not included in your plan",
            "limit": "printing",
            "current": None,
            "maximum": None,
        }), 402

    try:
        _load_visible_sale(sale_id)
        result = print_receipt(sale_id=sale_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return jsonify({"error": "Sale not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to print sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200
