# Overview: Catalog manager; product CRUD with single and bulk insert.

"""
Catalog Service

Products are plain dicts ({id, name, price, costPrice, stock, category}).
Missing ids on update/delete are no-ops: the call returns None/False and
never raises. Deleting a product leaves historical transactions untouched;
they carry their own snapshot of name, price and cost.
"""
from __future__ import annotations

import logging

from .identifier_service import new_id, bulk_ids
from .state_service import StoreState, default_cost

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "price", "costPrice", "stock", "category"}


def _build_product(data: dict, product_id: str) -> dict:
    price = data.get("price") or 0
    product = {
        "id": product_id,
        "name": data.get("name", ""),
        "price": price,
        "costPrice": data["costPrice"] if data.get("costPrice") is not None else default_cost(price),
        "stock": int(data.get("stock") or 0),
    }
    if data.get("category"):
        product["category"] = data["category"]
    return product


def apply_product_patch(p: dict, patch: dict) -> dict:
    updated = dict(p)
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        updated[k] = v
    return updated


def list_products(state: StoreState, category: str | None = None) -> list[dict]:
    with state.lock:
        if category is None:
            return list(state.products)
        wanted = category.strip().lower()
        return [p for p in state.products if (p.get("category") or "").lower() == wanted]


def get_product(state: StoreState, product_id: str) -> dict | None:
    with state.lock:
        return next((p for p in state.products if p["id"] == product_id), None)


def add_product(state: StoreState, data: dict) -> dict:
    """Append one product under a fresh id and return it."""
    with state.lock:
        existing = {p["id"] for p in state.products}
        product = _build_product(data, new_id(existing))
        state.products = [*state.products, product]
        state.commit("products")

    logger.info("Created product id=%s name=%s", product["id"], product["name"])
    return product


def add_products(state: StoreState, items: list[dict]) -> list[dict]:
    """Append validated import rows; ids are distinct even within one call."""
    if not items:
        return []

    with state.lock:
        existing = {p["id"] for p in state.products}
        ids = bulk_ids(len(items), existing)
        created = [_build_product(data, pid) for data, pid in zip(items, ids)]
        state.products = [*state.products, *created]
        state.commit("products")

    logger.info("Imported %s products", len(created))
    return created


def update_product(state: StoreState, product_id: str, patch: dict) -> dict | None:
    with state.lock:
        updated = None
        products = []
        for p in state.products:
            if p["id"] == product_id:
                p = updated = apply_product_patch(p, patch)
            products.append(p)
        if updated is None:
            return None
        state.products = products
        state.commit("products")
        return updated


def delete_product(state: StoreState, product_id: str) -> bool:
    with state.lock:
        remaining = [p for p in state.products if p["id"] != product_id]
        if len(remaining) == len(state.products):
            return False
        state.products = remaining
        state.commit("products")

    logger.info("Deleted product id=%s", product_id)
    return True
