# Overview: Sale engine; checkout processing and edits of settled transactions.

"""
Sales Service

process_sale is the only operation that touches three collections at once:
it decrements product stock, accrues the customer's totalSpent, and prepends
an immutable transaction record, all under the state lock and persisted
before the lock is released.

KNOWN GAP: update_transaction and delete_transaction patch or remove the
record only. Stock decremented and totalSpent accrued at sale time are NOT
reversed; callers that need compensating adjustments apply them through
catalog_service.update_product / customer_service.update_customer.

AUTHORIZATION: editing or deleting a settled transaction is gated by the
caller (routes use @require_secret); this module does not check secrets.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from . import customer_service
from .identifier_service import new_id
from .state_service import StoreState, default_cost
from swiftpos.time_utils import now_iso
from swiftpos.validation import MONEY, INT, ValidationError, coerce_field

logger = logging.getLogger(__name__)

GUEST_CUSTOMER_ID = "GUEST"
WALK_IN_CUSTOMER_NAME = "Walk-in Customer"

TRANSACTION_MUTABLE_FIELDS = {"customerName", "date", "items"}


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class CartLine:
    """A not-yet-committed selection of a product and quantity."""
    product_id: str
    name: str
    unit_price: float
    unit_cost: float | None
    quantity: int

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Build from a cart item as sent by the checkout screen."""
        if not isinstance(data, dict):
            raise SaleError("Invalid cart line", details={"line": data})
        try:
            price = coerce_field("price", MONEY, data.get("price", data.get("unitPrice")))
            quantity = coerce_field("quantity", INT, data.get("quantity"))
        except ValidationError as e:
            raise SaleError(f"Invalid cart line: {e}", details={"line": data})
        if price is None or quantity is None:
            raise SaleError("Invalid cart line: price and quantity are required", details={"line": data})
        return cls(
            product_id=str(data.get("productId", data.get("id"))),
            name=str(data.get("name", "")),
            unit_price=price,
            unit_cost=data.get("costPrice", data.get("unitCost")),
            quantity=quantity,
        )

    @property
    def subtotal(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    @property
    def cost_at_sale(self) -> float:
        """Line cost, or 75% of the unit price when unset or invalid."""
        try:
            cost = float(self.unit_cost)
        except (TypeError, ValueError):
            return default_cost(self.unit_price)
        if math.isnan(cost) or math.isinf(cost) or cost < 0:
            return default_cost(self.unit_price)
        return cost


def _validate_cart(lines: list[CartLine]) -> None:
    if not lines:
        raise SaleError("Cannot process sale with no lines")

    invalid = [
        {"productId": line.product_id, "quantity": line.quantity}
        for line in lines
        if line.quantity <= 0 or not math.isfinite(line.unit_price) or line.unit_price < 0
    ]
    if invalid:
        raise SaleError("Cart lines need a positive quantity and a non-negative price", details={"items": invalid})


def parse_cart(cart_lines) -> list[CartLine]:
    """Cart items (dicts or CartLine) as validated CartLines; raises SaleError."""
    if not isinstance(cart_lines, list):
        raise SaleError("Cart must be a list of lines")
    lines = [line if isinstance(line, CartLine) else CartLine.from_dict(line) for line in cart_lines]
    _validate_cart(lines)
    return lines


def process_sale(state: StoreState, customer_id: str | None, cart_lines: list) -> dict:
    """
    Settle a cart and return the new transaction.

    - totalAmount is the sum of line subtotals
    - a known customer gets totalSpent += totalAmount; an absent or unknown
      id settles as the GUEST walk-in and no customer record is created
    - every referenced product loses the sold quantity; stock may go negative
    """
    lines = parse_cart(cart_lines)

    total_amount = round(sum(line.subtotal for line in lines), 2)

    with state.lock:
        customer_name = WALK_IN_CUSTOMER_NAME
        final_customer_id = GUEST_CUSTOMER_ID
        touched = ["products", "transactions"]

        if customer_id:
            customer = customer_service.accrue_spend(state, customer_id, total_amount)
            if customer is not None:
                customer_name = customer["name"]
                final_customer_id = customer["id"]
                touched.append("customers")

        sold: dict[str, int] = {}
        for line in lines:
            sold[line.product_id] = sold.get(line.product_id, 0) + line.quantity
        state.products = [
            {**p, "stock": (p.get("stock") or 0) - sold[p["id"]]} if p["id"] in sold else p
            for p in state.products
        ]

        transaction = {
            "id": new_id({t["id"] for t in state.transactions}),
            "customerId": final_customer_id,
            "customerName": customer_name,
            "date": now_iso(),
            "totalAmount": total_amount,
            "items": [
                {
                    "productId": line.product_id,
                    "productName": line.name,
                    "quantity": line.quantity,
                    "priceAtSale": line.unit_price,
                    "costAtSale": line.cost_at_sale,
                    "subtotal": line.subtotal,
                }
                for line in lines
            ],
        }
        state.transactions = [transaction, *state.transactions]
        state.commit(*touched)

    logger.info(
        "Sale %s settled: customer=%s total=%.2f lines=%s",
        transaction["id"], final_customer_id, total_amount, len(lines),
    )
    return transaction


def list_transactions(state: StoreState, customer_id: str | None = None) -> list[dict]:
    """Transactions newest-first, optionally for one customer."""
    with state.lock:
        if customer_id is None:
            return list(state.transactions)
        return [t for t in state.transactions if t.get("customerId") == customer_id]


def get_transaction(state: StoreState, transaction_id: str) -> dict | None:
    with state.lock:
        return next((t for t in state.transactions if t["id"] == transaction_id), None)


def update_transaction(state: StoreState, transaction_id: str, patch: dict) -> dict | None:
    """
    Patch a settled transaction in place; None if the id is unknown.

    When items are replaced, totalAmount is recomputed from their subtotals.
    Stock and customer totals are not adjusted (see KNOWN GAP above).
    """
    with state.lock:
        updated = None
        transactions = []
        for t in state.transactions:
            if t["id"] == transaction_id:
                t = updated = {**t, **{k: v for k, v in patch.items() if k in TRANSACTION_MUTABLE_FIELDS}}
                if "items" in patch:
                    updated["totalAmount"] = round(sum(i["subtotal"] for i in updated["items"]), 2)
            transactions.append(t)
        if updated is None:
            return None
        state.transactions = transactions
        state.commit("transactions")

    logger.info("Transaction %s edited (fields: %s)", transaction_id, ", ".join(sorted(patch)))
    return updated


def delete_transaction(state: StoreState, transaction_id: str) -> bool:
    """Remove a settled transaction; stock and customer totals stay as they are."""
    with state.lock:
        remaining = [t for t in state.transactions if t["id"] != transaction_id]
        if len(remaining) == len(state.transactions):
            return False
        state.transactions = remaining
        state.commit("transactions")

    logger.info("Transaction %s deleted", transaction_id)
    return True
