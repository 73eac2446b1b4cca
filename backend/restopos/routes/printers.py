# Overview: Flask API routes for receipt printers; parses input and returns JSON responses.

# backend/restopos/routes/printers.py
"""
Printer routes (admin only, MANAGE_PRINTERS).

MULTI-TENANT: admins manage their restaurant's printers. Super-admins see
every printer and create installation-wide ones (restaurant_id NULL).

At most one default printer per restaurant: making a printer the default
clears the flag on the others.
"""
from flask import Blueprint, request, g, current_app

from ..services import printer_service
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError
from ..decorators import require_auth, require_permission

printers_bp = Blueprint("printers", __name__, url_prefix="/api/printers")


@printers_bp.get("")
@require_auth
@require_permission("MANAGE_PRINTERS")
def list_printers_route():
    printers = printer_service.list_printers(g.restaurant_id)
    default = printer_service.get_default_printer(g.restaurant_id)
    return {
        "items": [p.to_dict() for p in printers],
        "count": len(printers),
        "default_printer_id": default.id if default else None,
    }


@printers_bp.get("/<int:printer_id>")
@require_auth
@require_permission("MANAGE_PRINTERS")
def get_printer_route(printer_id: int):
    try:
        printer = printer_service.get_printer(printer_id=printer_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return {"error": "Printer not found"}, 404
    return printer.to_dict()


@printers_bp.post("")
@require_auth
@require_permission("MANAGE_PRINTERS")
def create_printer_route():
    """
    Create a printer.

    Required: name, connection_type (usb | bluetooth | wifi).
    paper_width must be between 58 and 112 (default 80).
    """
    payload = request.get_json(silent=True) or {}
    payload.pop("restaurant_id", None)

    try:
        printer = printer_service.create_printer(payload=payload, restaurant_id=g.restaurant_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create printer")
        return {"error": "Internal server error"}, 500

    return printer.to_dict(), 201


@printers_bp.put("/<int:printer_id>")
@require_auth
@require_permission("MANAGE_PRINTERS")
def update_printer_route(printer_id: int):
    payload = request.get_json(silent=True) or {}
    payload.pop("restaurant_id", None)

    try:
        printer = printer_service.update_printer(
            printer_id=printer_id,
            payload=payload,
            restaurant_id=g.restaurant_id,
        )
    except TenantAccessError:
        return {"error": "Printer not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return printer.to_dict(), 200


@printers_bp.post("/<int:printer_id>/default")
@require_auth
@require_permission("MANAGE_PRINTERS")
def set_default_printer_route(printer_id: int):
    try:
        printer = printer_service.get_printer(printer_id=printer_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return {"error": "Printer not found"}, 404

    printer_service.set_default(printer)
    return printer.to_dict(), 200


@printers_bp.delete("/<int:printer_id>")
@require_auth
@require_permission("MANAGE_PRINTERS")
def delete_printer_route(printer_id: int):
    try:
        printer_service.delete_printer(printer_id=printer_id, restaurant_id=g.restaurant_id)
    except TenantAccessError:
        return {"error": "Printer not found"}, 404

    return {"ok": True}, 200
