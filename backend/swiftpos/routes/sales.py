# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales API routes.

Editing or deleting a settled transaction passes the secret gate first
(@require_secret); stock and customer totals are not reversed by either.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service, customer_service
from ..services.sales_service import SaleError
from ..validation import (
    CUSTOMER_POLICY,
    TRANSACTION_POLICY,
    validate_payload,
    ValidationError,
)
from ..decorators import require_session, require_secret


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _without_secret(payload):
    if isinstance(payload, dict):
        return {k: v for k, v in payload.items() if k != "secret"}
    return payload


@sales_bp.post("")
@require_session
def process_sale_route():
    """
    Settle a cart.

    Body:
    - items: [{productId, name, price, costPrice?, quantity}]
    - customerId: str | null (null or unknown -> walk-in)
    - newCustomer: {name, phone, email?} (optional; created first and the sale attributed to it)
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    customer_id = data.get("customerId")
    try:
        # Cart and new customer are both checked before anything is written
        lines = sales_service.parse_cart(data.get("items") or [])
        new_customer = None
        if data.get("newCustomer"):
            new_customer = validate_payload(payload=data["newCustomer"], policy=CUSTOMER_POLICY, partial=False)

        with g.state.lock:
            if new_customer is not None:
                customer_id = customer_service.add_customer(g.state, new_customer)["id"]
            transaction = sales_service.process_sale(g.state, customer_id, lines)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"transaction": transaction}), 201


@sales_bp.get("")
@require_session
def list_sales_route():
    """Query params: customerId (optional)."""
    items = sales_service.list_transactions(g.state, customer_id=request.args.get("customerId"))
    return jsonify({"items": items, "count": len(items)}), 200


@sales_bp.get("/<transaction_id>")
@require_session
def get_sale_route(transaction_id: str):
    transaction = sales_service.get_transaction(g.state, transaction_id)
    if transaction is None:
        return jsonify({"error": "Transaction not found"}), 404
    return jsonify({"transaction": transaction}), 200


@sales_bp.patch("/<transaction_id>")
@require_session
@require_secret
def update_sale_route(transaction_id: str):
    payload = _without_secret(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(payload=payload, policy=TRANSACTION_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = sales_service.update_transaction(g.state, transaction_id, patch)
    if updated is None:
        return jsonify({"error": "Transaction not found"}), 404
    return jsonify({"transaction": updated}), 200


@sales_bp.delete("/<transaction_id>")
@require_session
@require_secret
def delete_sale_route(transaction_id: str):
    if not sales_service.delete_transaction(g.state, transaction_id):
        return jsonify({"error": "Transaction not found"}), 404
    return jsonify({"ok": True}), 200
