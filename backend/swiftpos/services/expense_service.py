# Overview: Expense ledger; CRUD over discretionary expense entries (newest-first).

from __future__ import annotations

import logging

from .identifier_service import new_id
from .state_service import StoreState
from swiftpos.time_utils import now_iso, parse_day, record_day
from swiftpos.validation import EXPENSE_CATEGORIES

logger = logging.getLogger(__name__)

EXPENSE_MUTABLE_FIELDS = {"description", "amount", "category", "date"}


class ExpenseError(ValueError):
    """Raised for expense entries outside the closed category set."""


def _check_category(category) -> None:
    if category not in EXPENSE_CATEGORIES:
        raise ExpenseError(f"Unknown expense category: {category}")


def list_expenses(state: StoreState, day: str | None = None) -> list[dict]:
    with state.lock:
        if day is None:
            return list(state.expenses)
        wanted = parse_day(day)
        return [e for e in state.expenses if record_day(e.get("date")) == wanted]


def get_expense(state: StoreState, expense_id: str) -> dict | None:
    with state.lock:
        return next((e for e in state.expenses if e["id"] == expense_id), None)


def add_expense(state: StoreState, data: dict) -> dict:
    """Prepend a new expense; date defaults to now."""
    _check_category(data.get("category"))

    with state.lock:
        expense = {
            "id": new_id({e["id"] for e in state.expenses}),
            "description": data.get("description", ""),
            "amount": data.get("amount", 0),
            "category": data["category"],
            "date": data.get("date") or now_iso(),
        }
        state.expenses = [expense, *state.expenses]
        state.commit("expenses")

    logger.info("Recorded expense id=%s category=%s amount=%.2f", expense["id"], expense["category"], expense["amount"])
    return expense


def update_expense(state: StoreState, expense_id: str, patch: dict) -> dict | None:
    if "category" in patch:
        _check_category(patch["category"])

    with state.lock:
        updated = None
        expenses = []
        for e in state.expenses:
            if e["id"] == expense_id:
                e = updated = {**e, **{k: v for k, v in patch.items() if k in EXPENSE_MUTABLE_FIELDS}}
            expenses.append(e)
        if updated is None:
            return None
        state.expenses = expenses
        state.commit("expenses")
        return updated


def delete_expense(state: StoreState, expense_id: str) -> bool:
    with state.lock:
        remaining = [e for e in state.expenses if e["id"] != expense_id]
        if len(remaining) == len(state.expenses):
            return False
        state.expenses = remaining
        state.commit("expenses")

    logger.info("Deleted expense id=%s", expense_id)
    return True
