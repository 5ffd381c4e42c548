# Overview: Service-layer reporting; summary KPIs, day book, and category sales.

from __future__ import annotations

from datetime import date

from .state_service import StoreState
from swiftpos.time_utils import parse_day, record_day

UNCATEGORIZED = "General"


class ReportError(Exception):
    """Raised when report parameters are unusable."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[date | None, date | None]:
    try:
        start_day = parse_day(start)
        end_day = parse_day(end)
    except ValueError:
        raise ReportError("Dates must be YYYY-MM-DD or ISO-8601")
    if start_day and end_day and start_day > end_day:
        raise ReportError("start must not be after end")
    return start_day, end_day


def _in_range(value: str | None, start: date | None, end: date | None) -> bool:
    day = record_day(value)
    if day is None:
        return False
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


def _money(value: float) -> float:
    return round(value, 2)


def summary(state: StoreState, start: str | None = None, end: str | None = None) -> dict:
    """
    Store-level KPIs.

    totalRevenue, totalExpenses, currentBalance and totalInvestment are
    all-time; the counts and grossProfit cover the optional [start, end] day range.
    """
    start_day, end_day = _parse_range(start, end)

    with state.lock:
        transactions = list(state.transactions)
        expenses = list(state.expenses)
        products = list(state.products)

    total_revenue = sum(t.get("totalAmount") or 0 for t in transactions)
    total_expenses = sum(e.get("amount") or 0 for e in expenses)
    total_investment = sum(
        p.get("stock", 0) * (p.get("costPrice") or 0)
        for p in products
        if (p.get("stock") or 0) > 0
    )

    ranged_tx = [t for t in transactions if _in_range(t.get("date"), start_day, end_day)]
    ranged_ex = [e for e in expenses if _in_range(e.get("date"), start_day, end_day)]
    gross_profit = sum(
        (item.get("priceAtSale", 0) - item.get("costAtSale", 0)) * item.get("quantity", 0)
        for t in ranged_tx
        for item in t.get("items", [])
    )

    return {
        "totalRevenue": _money(total_revenue),
        "totalExpenses": _money(total_expenses),
        "currentBalance": _money(total_revenue - total_expenses),
        "totalInvestment": _money(total_investment),
        "transactionCount": len(ranged_tx),
        "expenseCount": len(ranged_ex),
        "grossProfit": _money(gross_profit),
        "start": start_day.isoformat() if start_day else None,
        "end": end_day.isoformat() if end_day else None,
    }


def day_book(state: StoreState, day: str) -> dict:
    """Transactions and expenses recorded on one calendar day (UTC)."""
    the_day, _ = _parse_range(day, None)
    if the_day is None:
        raise ReportError("day is required")

    with state.lock:
        transactions = [t for t in state.transactions if record_day(t.get("date")) == the_day]
        expenses = [e for e in state.expenses if record_day(e.get("date")) == the_day]

    sales_total = sum(t.get("totalAmount") or 0 for t in transactions)
    expense_total = sum(e.get("amount") or 0 for e in expenses)
    return {
        "day": the_day.isoformat(),
        "transactions": transactions,
        "expenses": expenses,
        "salesTotal": _money(sales_total),
        "expenseTotal": _money(expense_total),
        "net": _money(sales_total - expense_total),
    }


def category_sales(state: StoreState, limit: int = 8) -> list[dict]:
    """Revenue per product category, highest first; vanished products count as General."""
    with state.lock:
        categories = {p["id"]: p.get("category") or UNCATEGORIZED for p in state.products}
        transactions = list(state.transactions)

    stats: dict[str, float] = {}
    for t in transactions:
        for item in t.get("items", []):
            category = categories.get(item.get("productId"), UNCATEGORIZED)
            stats[category] = stats.get(category, 0) + (item.get("subtotal") or 0)

    ranked = sorted(stats.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [{"category": name, "revenue": _money(value)} for name, value in ranked]
