# Overview: Record store; durable key-value persistence of the store collections.

"""
Record Store

One row per collection in ``storage_entries``; the row value is the whole
collection as JSON. Absent keys yield the built-in seed data. This module
holds no business rules: callers load, mutate, and save whole collections.
"""
from __future__ import annotations

import copy
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified

from ..extensions import db
from ..models import StorageEntry
from . import seed_data
from .concurrency import run_with_retry
from swiftpos.time_utils import now_iso

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"

STORAGE_KEYS = {
    "products": "swiftpos_products",
    "customers": "swiftpos_customers",
    "transactions": "swiftpos_transactions",
    "expenses": "swiftpos_expenses",
    "settings": "swiftpos_settings",
    "users": "swiftpos_users",
    "session": "swiftpos_session",
}

# Envelope fields accepted by restore_data and the JSON shape each must have.
RESTORABLE_FIELDS = {
    "products": list,
    "customers": list,
    "transactions": list,
    "expenses": list,
    "settings": dict,
    "users": list,
}


def _is_record(value) -> bool:
    """Records in a restored collection are objects carrying an id."""
    return isinstance(value, dict) and value.get("id") not in (None, "")


class RecordStore:
    """Synchronous load/save of each collection by its fixed key."""

    def _read(self, name: str):
        entry = db.session.get(StorageEntry, STORAGE_KEYS[name])
        if entry is None:
            return None
        # Callers mutate what they load; never hand out the ORM-held value.
        return copy.deepcopy(entry.value)

    def _put(self, key: str, value) -> None:
        entry = db.session.get(StorageEntry, key)
        if entry is None:
            entry = StorageEntry(key=key)
            db.session.add(entry)
        entry.value = copy.deepcopy(value)
        flag_modified(entry, "value")

    def _write(self, name: str, value) -> None:
        key = STORAGE_KEYS[name]

        def _op():
            self._put(key, value)
            db.session.commit()

        run_with_retry(_op)

    def _delete(self, name: str) -> None:
        key = STORAGE_KEYS[name]

        def _op():
            db.session.query(StorageEntry).filter_by(key=key).delete()
            db.session.commit()

        run_with_retry(_op)

    def has(self, name: str) -> bool:
        return db.session.get(StorageEntry, STORAGE_KEYS[name]) is not None

    # Collections

    def get_products(self) -> list[dict]:
        data = self._read("products")
        return data if data is not None else seed_data.seed(seed_data.INITIAL_PRODUCTS)

    def save_products(self, products: list[dict]) -> None:
        self._write("products", products)

    def get_customers(self) -> list[dict]:
        data = self._read("customers")
        return data if data is not None else seed_data.seed(seed_data.INITIAL_CUSTOMERS)

    def save_customers(self, customers: list[dict]) -> None:
        self._write("customers", customers)

    def get_transactions(self) -> list[dict]:
        data = self._read("transactions")
        return data if data is not None else []

    def save_transactions(self, transactions: list[dict]) -> None:
        self._write("transactions", transactions)

    def get_expenses(self) -> list[dict]:
        data = self._read("expenses")
        return data if data is not None else []

    def save_expenses(self, expenses: list[dict]) -> None:
        self._write("expenses", expenses)

    def get_users(self) -> list[dict]:
        data = self._read("users")
        return data if data is not None else seed_data.seed(seed_data.INITIAL_USERS)

    def save_users(self, users: list[dict]) -> None:
        self._write("users", users)

    # Settings (merged over defaults so new fields pick up their default)

    def get_settings(self) -> dict:
        settings = seed_data.seed(seed_data.DEFAULT_SETTINGS)
        stored = self._read("settings")
        if isinstance(stored, dict):
            settings.update(stored)
        return settings

    def save_settings(self, settings: dict) -> None:
        self._write("settings", settings)

    # Session

    def get_session(self) -> dict | None:
        return self._read("session")

    def save_session(self, user: dict | None) -> None:
        if user:
            self._write("session", user)
        else:
            self._delete("session")

    # Backup & restore

    def get_all_data(self) -> dict:
        return {
            "products": self.get_products(),
            "customers": self.get_customers(),
            "transactions": self.get_transactions(),
            "expenses": self.get_expenses(),
            "settings": self.get_settings(),
            "users": self.get_users(),
            "backupDate": now_iso(),
            "version": BACKUP_VERSION,
        }

    def restore_data(self, data) -> bool:
        """
        Overwrite each collection present in ``data``; skip the absent ones.

        Returns False for non-dict input, for a present field of the wrong
        shape or a collection holding anything but records with an id
        (checked before anything is written), or on a database error.
        """
        if not isinstance(data, dict):
            logger.warning("Restore rejected: payload is not an object")
            return False

        present = {
            name: data[name]
            for name in RESTORABLE_FIELDS
            if data.get(name) is not None
        }
        for name, value in present.items():
            if not isinstance(value, RESTORABLE_FIELDS[name]):
                logger.warning("Restore rejected: %s has the wrong shape", name)
                return False
            if isinstance(value, list) and not all(_is_record(r) for r in value):
                logger.warning("Restore rejected: %s holds malformed records", name)
                return False

        def _op():
            for name, value in present.items():
                self._put(STORAGE_KEYS[name], value)
            db.session.commit()

        try:
            run_with_retry(_op)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Restore failed")
            return False

        logger.info("Restored collections: %s", ", ".join(sorted(present)) or "none")
        return True
