# Overview: Flask API routes for reports and dashboards; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from restopos.decorators import require_auth, require_permission, require_restaurant
from restopos.services import reporting_service
from restopos.services.subscription_service import has_feature


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_auth
@require_restaurant
@require_permission("VIEW_REPORTS")
def sales_report():
    if not has_feature(g.restaurant_id, "reports"):
        return jsonify({
            "error": "Reports are not included in your plan",
            "limit": "reports",
            "current": None,
            "maximum": None,
        }), 402

    period = request.args.get("period", "day")

    try:
        report = reporting_service.sales_report(restaurant_id=g.restaurant_id, period=period)
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard():
    try:
        data = reporting_service.dashboard(g.current_user)
        return jsonify(data), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/subscription-usage")
@require_auth
@require_restaurant
@require_permission("VIEW_DASHBOARD")
def subscription_usage():
    usage = reporting_service.subscription_usage(g.restaurant_id)
    if usage is None:
        return jsonify({"error": "No active subscription"}), 404
    return jsonify(usage), 200
