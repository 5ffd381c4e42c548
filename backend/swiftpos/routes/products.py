# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

SECURITY: All routes require a logged-in session.
"""
from flask import Blueprint, request, g

from ..services import catalog_service
from ..validation import (
    PRODUCT_POLICY,
    validate_payload,
    validate_bulk,
    ValidationError,
)
from ..decorators import require_session

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_session
def list_products():
    """
    List all products in catalog order.

    Query params:
    - category: str (optional) - case-insensitive category filter
    """
    items = catalog_service.list_products(g.state, category=request.args.get("category"))
    return {"items": items, "count": len(items)}


@products_bp.get("/<product_id>")
@require_session
def get_product(product_id: str):
    product = catalog_service.get_product(g.state, product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product, 200


@products_bp.post("")
@require_session
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    created = catalog_service.add_product(g.state, patch)
    return created, 201


@products_bp.post("/bulk")
@require_session
def bulk_create_products_route():
    """Bulk insert of validated import rows: {"items": [...]}"""
    payload = request.get_json(silent=True) or {}

    try:
        rows = validate_bulk(payload=payload.get("items") if isinstance(payload, dict) else payload, policy=PRODUCT_POLICY)
    except ValidationError as e:
        return {"error": str(e)}, 400

    created = catalog_service.add_products(g.state, rows)
    return {"items": created, "count": len(created)}, 201


@products_bp.put("/<product_id>")
@require_session
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = catalog_service.update_product(g.state, product_id, patch)
    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<product_id>")
@require_session
def delete_product_route(product_id: str):
    deleted = catalog_service.delete_product(g.state, product_id)
    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
