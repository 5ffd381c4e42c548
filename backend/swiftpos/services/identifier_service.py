# Overview: Record id generation for products, customers, transactions, expenses and users.

"""
Identifier Service

Ids are time-based strings (epoch milliseconds). Single inserts append a
random suffix and re-draw on collision; bulk inserts use a per-item
discriminator (index + random suffix) so items created within the same
millisecond stay pairwise distinct.
"""
from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.ascii_lowercase + string.digits


def _base() -> str:
    return str(int(time.time() * 1000))


def _suffix(length: int = 5) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def new_id(existing: set[str] | None = None) -> str:
    """Fresh id not present in ``existing``."""
    existing = existing or set()
    candidate = _base()
    while candidate in existing:
        candidate = f"{_base()}-{_suffix()}"
    return candidate


def bulk_ids(count: int, existing: set[str] | None = None) -> list[str]:
    """``count`` pairwise distinct ids, none present in ``existing``."""
    taken = set(existing or ())
    base = _base()
    ids = []
    for index in range(count):
        candidate = f"{base}-{index}{_suffix()}"
        while candidate in taken:
            candidate = f"{base}-{index}{_suffix()}"
        taken.add(candidate)
        ids.append(candidate)
    return ids
