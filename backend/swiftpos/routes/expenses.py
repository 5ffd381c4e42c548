# Overview: Flask API routes for the expense ledger.

from flask import Blueprint, request, jsonify, g

from ..services import expense_service
from ..services.expense_service import ExpenseError
from ..validation import (
    EXPENSE_POLICY,
    validate_payload,
    enforce_rules_expense,
    ValidationError,
)
from ..decorators import require_session, require_secret

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_session
def list_expenses_route():
    """Query params: day (optional, YYYY-MM-DD)."""
    try:
        items = expense_service.list_expenses(g.state, day=request.args.get("day"))
    except ValueError:
        return jsonify({"error": "day must be YYYY-MM-DD"}), 400
    return jsonify({"items": items, "count": len(items)}), 200


@expenses_bp.post("")
@require_session
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
        expense = expense_service.add_expense(g.state, patch)
    except (ValidationError, ExpenseError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(expense), 201


@expenses_bp.patch("/<expense_id>")
@require_session
@require_secret
def update_expense_route(expense_id: str):
    payload = request.get_json(silent=True) or {}
    if isinstance(payload, dict):
        payload = {k: v for k, v in payload.items() if k != "secret"}
    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
        updated = expense_service.update_expense(g.state, expense_id, patch)
    except (ValidationError, ExpenseError) as e:
        return jsonify({"error": str(e)}), 400

    if updated is None:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(updated), 200


@expenses_bp.delete("/<expense_id>")
@require_session
@require_secret
def delete_expense_route(expense_id: str):
    if not expense_service.delete_expense(g.state, expense_id):
        return jsonify({"error": "Expense not found"}), 404
    return jsonify({"ok": True}), 200
