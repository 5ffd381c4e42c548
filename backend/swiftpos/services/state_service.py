# Overview: Process-scoped store state; in-memory collections with write-through persistence.

"""
Store State

The single handle through which every service reads and mutates the store.
It owns the in-memory collections, the settings singleton, and the current
session, writes each mutated collection through to the Record Store, and
notifies listeners (the backup scheduler) after every committed change.

Single logical writer: mutation entry points hold ``state.lock`` for their
whole run, so no interleaving of two mutations is observable.
"""
from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from flask import current_app

from .storage_service import RecordStore, BACKUP_VERSION
from swiftpos.time_utils import now_iso

logger = logging.getLogger(__name__)

EXTENSION_KEY = "swiftpos"

DATA_COLLECTIONS = ("products", "customers", "transactions", "expenses")
PERSISTED_COLLECTIONS = DATA_COLLECTIONS + ("settings", "users")

LEGACY_COST_RATIO = 0.75


@dataclass(frozen=True)
class StateChange:
    """What a single committed mutation touched."""
    collections: frozenset = field(default_factory=frozenset)
    previous_settings: dict | None = None
    settings: dict | None = None
    initial: bool = False


def default_cost(price) -> float:
    """Cost fallback for records without a usable cost: 75% of price."""
    try:
        return round(float(price) * LEGACY_COST_RATIO, 2)
    except (TypeError, ValueError):
        return 0.0


def migrate_cost_prices(products: list[dict]) -> tuple[list[dict], bool]:
    """Give legacy products without costPrice a cost of 75% of their price."""
    changed = False
    migrated = []
    for p in products:
        if p.get("costPrice") is None:
            p = {**p, "costPrice": default_cost(p.get("price", 0))}
            changed = True
        migrated.append(p)
    return migrated, changed


class StoreState:
    def __init__(self, store: RecordStore | None = None):
        self.store = store or RecordStore()
        self.lock = threading.RLock()

        self.products: list[dict] = []
        self.customers: list[dict] = []
        self.transactions: list[dict] = []
        self.expenses: list[dict] = []
        self.users: list[dict] = []
        self.settings: dict = {}
        self.session: dict | None = None

        self.loaded = False
        self._listeners: list[Callable[[StateChange], None]] = []

    def subscribe(self, listener: Callable[[StateChange], None]) -> None:
        self._listeners.append(listener)

    def _notify(self, change: StateChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # Lifecycle

    def load(self, *, initial: bool = True) -> None:
        """
        Load every collection from the record store (seed data on first run).

        Seeds and the costPrice migration are written back so the store
        holds exactly what is in memory.
        """
        with self.lock:
            products, migrated = migrate_cost_prices(self.store.get_products())
            self.products = products
            self.customers = self.store.get_customers()
            self.transactions = self.store.get_transactions()
            self.expenses = self.store.get_expenses()
            self.users = self.store.get_users()
            self.settings = self.store.get_settings()
            self.session = self.store.get_session()

            for name in PERSISTED_COLLECTIONS:
                if not self.store.has(name) or (name == "products" and migrated):
                    self._persist(name)
            if migrated:
                logger.info("Migrated legacy products without costPrice")

            self.loaded = True
            settings = dict(self.settings)

        self._notify(StateChange(
            collections=frozenset(PERSISTED_COLLECTIONS),
            settings=settings,
            initial=initial,
        ))

    def ensure_loaded(self) -> "StoreState":
        if not self.loaded:
            with self.lock:
                if not self.loaded:
                    self.load()
        return self

    def clear_session(self) -> None:
        with self.lock:
            self.session = None
            self.store.save_session(None)

    def set_session(self, user: dict | None) -> None:
        with self.lock:
            self.session = copy.deepcopy(user) if user else None
            self.store.save_session(self.session)

    # Write-through

    def _persist(self, name: str) -> None:
        getattr(self.store, f"save_{name}")(getattr(self, name))

    def commit(self, *collections: str, previous_settings: dict | None = None) -> None:
        """Persist the named collections and notify listeners once."""
        with self.lock:
            for name in collections:
                self._persist(name)
            settings = dict(self.settings)
        self._notify(StateChange(
            collections=frozenset(collections),
            previous_settings=previous_settings,
            settings=settings,
        ))

    # Settings

    def update_settings(self, updates: dict) -> dict:
        with self.lock:
            previous = dict(self.settings)
            self.settings = {**self.settings, **updates}
            self.commit("settings", previous_settings=previous)
            return dict(self.settings)

    def stamp_backup_time(self, when: str) -> None:
        """Record a finished backup without signalling a data change."""
        with self.lock:
            self.settings["lastBackupTime"] = when
            self._persist("settings")

    # Backup & restore

    def get_all_data(self) -> dict:
        with self.lock:
            return {
                "products": copy.deepcopy(self.products),
                "customers": copy.deepcopy(self.customers),
                "transactions": copy.deepcopy(self.transactions),
                "expenses": copy.deepcopy(self.expenses),
                "settings": copy.deepcopy(self.settings),
                "users": copy.deepcopy(self.users),
                "backupDate": now_iso(),
                "version": BACKUP_VERSION,
            }

    def restore_data(self, data) -> bool:
        with self.lock:
            if not self.store.restore_data(data):
                return False
            self.load(initial=False)
            return True


def get_state() -> StoreState:
    """The app's StoreState, loaded on first use."""
    return current_app.extensions[EXTENSION_KEY].ensure_loaded()
