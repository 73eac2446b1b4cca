# Overview: Flask API routes for page data shared by the frontend; parses input and returns JSON responses.

# backend/restopos/routes/ui.py
"""
Frontend bootstrap routes.

/shared works with or without a session: anonymous callers (the login page)
get the locale, translations and typography; authenticated callers also get
their user, restaurant and subscription notifications.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..navigation import navigation_for_role
from ..services import session_service
from ..services.page_data_service import build_shared_page_data
from ..decorators import require_auth
from restopos.typography import STORAGE_KEY

ui_bp = Blueprint("ui", __name__, url_prefix="/api/ui")


def _optional_user():
    auth_header = request.headers.get("Authorization") or ""
    if not auth_header.startswith("Bearer "):
        return None
    context = session_service.validate_session(auth_header.split(" ", 1)[1].strip())
    return context.user if context else None


@ui_bp.get("/shared")
def shared_page_data_route():
    storage = {STORAGE_KEY: request.cookies.get(current_app.config["TYPOGRAPHY_COOKIE"])}
    return jsonify(build_shared_page_data(_optional_user(), storage)), 200


@ui_bp.get("/navigation")
@require_auth
def navigation_route():
    """Sidebar, footer and settings entries visible to the caller's role."""
    return jsonify(navigation_for_role(g.current_user.role)), 200
