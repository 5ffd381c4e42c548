# Overview: Flask API routes for summary KPIs, the day book, and category sales.

from flask import Blueprint, request, jsonify, g

from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..decorators import require_session

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_session
def summary_route():
    """Query params: start, end (optional, YYYY-MM-DD)."""
    try:
        result = reporting_service.summary(g.state, request.args.get("start"), request.args.get("end"))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200


@reports_bp.get("/daybook")
@require_session
def day_book_route():
    """Query params: day (required, YYYY-MM-DD)."""
    try:
        result = reporting_service.day_book(g.state, request.args.get("day"))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200


@reports_bp.get("/categories")
@require_session
def category_sales_route():
    limit = request.args.get("limit", default=8, type=int)
    return jsonify({"items": reporting_service.category_sales(g.state, limit=limit)}), 200
