# Overview: Flask API routes for the customer ledger.

from flask import Blueprint, request, g

from ..services import customer_service, sales_service
from ..validation import (
    CUSTOMER_POLICY,
    validate_payload,
    validate_bulk,
    ValidationError,
)
from ..decorators import require_session

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_session
def list_customers():
    """Query params: q (optional) - matches name, phone or email."""
    items = customer_service.list_customers(g.state, query=request.args.get("q"))
    return {"items": items, "count": len(items)}


@customers_bp.get("/<customer_id>")
@require_session
def get_customer(customer_id: str):
    customer = customer_service.get_customer(g.state, customer_id)
    if customer is None:
        return {"error": "Customer not found"}, 404
    history = sales_service.list_transactions(g.state, customer_id=customer_id)
    return {"customer": customer, "transactions": history}, 200


@customers_bp.post("")
@require_session
def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return customer_service.add_customer(g.state, patch), 201


@customers_bp.post("/bulk")
@require_session
def bulk_create_customers_route():
    payload = request.get_json(silent=True) or {}

    try:
        rows = validate_bulk(payload=payload.get("items") if isinstance(payload, dict) else payload, policy=CUSTOMER_POLICY)
    except ValidationError as e:
        return {"error": str(e)}, 400

    created = customer_service.add_customers(g.state, rows)
    return {"items": created, "count": len(created)}, 201


@customers_bp.put("/<customer_id>")
@require_session
def update_customer_route(customer_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=CUSTOMER_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = customer_service.update_customer(g.state, customer_id, patch)
    if not updated:
        return {"error": "Customer not found"}, 404
    return updated, 200


@customers_bp.delete("/<customer_id>")
@require_session
def delete_customer_route(customer_id: str):
    if not customer_service.delete_customer(g.state, customer_id):
        return {"error": "Customer not found"}, 404
    return {"ok": True}, 200
