# Overview: Customer ledger; customer CRUD plus running total-spent accumulation.

from __future__ import annotations

import logging

from .identifier_service import new_id, bulk_ids
from .state_service import StoreState

logger = logging.getLogger(__name__)

CUSTOMER_MUTABLE_FIELDS = {"name", "phone", "email"}


def _build_customer(data: dict, customer_id: str) -> dict:
    customer = {
        "id": customer_id,
        "name": data.get("name", ""),
        "phone": data.get("phone", ""),
        "totalSpent": 0,
    }
    if data.get("email"):
        customer["email"] = data["email"]
    return customer


def list_customers(state: StoreState, query: str | None = None) -> list[dict]:
    """All customers, optionally filtered by a case-insensitive name/phone/email match."""
    with state.lock:
        if not query:
            return list(state.customers)
        needle = query.strip().lower()
        return [
            c for c in state.customers
            if needle in (c.get("name") or "").lower()
            or needle in (c.get("phone") or "").lower()
            or needle in (c.get("email") or "").lower()
        ]


def get_customer(state: StoreState, customer_id: str) -> dict | None:
    with state.lock:
        return next((c for c in state.customers if c["id"] == customer_id), None)


def add_customer(state: StoreState, data: dict) -> dict:
    """
    Create a customer with totalSpent 0 and return it.

    Checkout uses the returned id immediately to attribute the sale.
    """
    with state.lock:
        existing = {c["id"] for c in state.customers}
        customer = _build_customer(data, new_id(existing))
        state.customers = [*state.customers, customer]
        state.commit("customers")

    logger.info("Created customer id=%s", customer["id"])
    return customer


def add_customers(state: StoreState, items: list[dict]) -> list[dict]:
    if not items:
        return []

    with state.lock:
        existing = {c["id"] for c in state.customers}
        ids = bulk_ids(len(items), existing)
        created = [_build_customer(data, cid) for data, cid in zip(items, ids)]
        state.customers = [*state.customers, *created]
        state.commit("customers")

    logger.info("Imported %s customers", len(created))
    return created


def update_customer(state: StoreState, customer_id: str, patch: dict) -> dict | None:
    with state.lock:
        updated = None
        customers = []
        for c in state.customers:
            if c["id"] == customer_id:
                c = updated = {**c, **{k: v for k, v in patch.items() if k in CUSTOMER_MUTABLE_FIELDS}}
            customers.append(c)
        if updated is None:
            return None
        state.customers = customers
        state.commit("customers")
        return updated


def delete_customer(state: StoreState, customer_id: str) -> bool:
    with state.lock:
        remaining = [c for c in state.customers if c["id"] != customer_id]
        if len(remaining) == len(state.customers):
            return False
        state.customers = remaining
        state.commit("customers")

    logger.info("Deleted customer id=%s", customer_id)
    return True


def accrue_spend(state: StoreState, customer_id: str, amount: float) -> dict | None:
    """
    Add ``amount`` to the customer's totalSpent in memory.

    Does not persist: the caller commits as part of its own unit of work.
    """
    with state.lock:
        for index, c in enumerate(state.customers):
            if c["id"] == customer_id:
                updated = {**c, "totalSpent": round((c.get("totalSpent") or 0) + amount, 2)}
                state.customers = [*state.customers[:index], updated, *state.customers[index + 1:]]
                return updated
        return None
