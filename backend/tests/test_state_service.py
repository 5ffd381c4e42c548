"""Store state: loading, the costPrice migration, and change notification."""

import threading
import time

from swiftpos.services.state_service import StoreState, migrate_cost_prices, default_cost
from swiftpos.services.storage_service import RecordStore


def test_default_cost_is_75_percent_of_price():
    assert default_cost(20.00) == 15.00
    assert default_cost("8") == 6.00
    assert default_cost(None) == 0.0


def test_migrate_only_touches_products_without_cost():
    products = [
        {"id": "A", "name": "Legacy", "price": 20.00, "stock": 1},
        {"id": "B", "name": "Current", "price": 10.00, "costPrice": 4.00, "stock": 1},
    ]
    migrated, changed = migrate_cost_prices(products)
    assert changed is True
    assert migrated[0]["costPrice"] == 15.00
    assert migrated[1]["costPrice"] == 4.00
    assert "costPrice" not in products[0]


def test_load_migrates_legacy_products_and_writes_them_back(app):
    store = RecordStore()
    store.save_products([{"id": "L1", "name": "Legacy Belt", "price": 20.00, "stock": 4}])

    state = StoreState(store)
    state.load()

    assert state.products[0]["costPrice"] == 15.00
    assert store.get_products()[0]["costPrice"] == 15.00


def test_first_load_persists_seed_data(app):
    store = RecordStore()
    state = StoreState(store)
    state.load()

    for name in ("products", "customers", "transactions", "expenses", "settings", "users"):
        assert store.has(name)
    assert len(state.products) == 29
    assert state.session is None


def test_load_notifies_as_initial_and_commit_does_not(app):
    state = StoreState(RecordStore())
    seen = []
    state.subscribe(seen.append)

    state.load()
    state.commit("expenses")

    assert seen[0].initial is True
    assert seen[1].initial is False
    assert seen[1].collections == frozenset({"expenses"})


def test_update_settings_reports_previous_values(app):
    state = StoreState(RecordStore())
    state.load()
    seen = []
    state.subscribe(seen.append)

    state.update_settings({"autoBackup": True})

    change = seen[-1]
    assert change.collections == frozenset({"settings"})
    assert change.previous_settings["autoBackup"] is False
    assert change.settings["autoBackup"] is True
    assert RecordStore().get_settings()["autoBackup"] is True


def test_stamp_backup_time_is_silent(app):
    state = StoreState(RecordStore())
    state.load()
    seen = []
    state.subscribe(seen.append)

    state.stamp_backup_time("2026-10-19T09:00:00.000Z")

    assert seen == []
    assert RecordStore().get_settings()["lastBackupTime"] == "2026-10-19T09:00:00.000Z"


def test_restore_reloads_memory(state):
    ok = state.restore_data({"customers": [{"id": "R1", "name": "Restored", "phone": "9", "totalSpent": 12.5}]})

    assert ok is True
    assert [c["id"] for c in state.customers] == ["R1"]
    assert len(state.products) == 29


def test_restore_null_fails_and_keeps_memory(state):
    assert state.restore_data(None) is False
    assert [c["id"] for c in state.customers] == ["C1"]


def test_session_is_persisted_separately(state):
    state.set_session({"id": "1", "username": "admin"})
    assert RecordStore().get_session() == {"id": "1", "username": "admin"}

    state.clear_session()
    assert state.session is None
    assert RecordStore().get_session() is None


def test_restore_with_malformed_records_keeps_store_loadable(state):
    before = [p["id"] for p in state.products]

    assert state.restore_data({"products": [1, 2]}) is False

    assert [p["id"] for p in state.products] == before
    fresh = StoreState()
    fresh.load()
    assert [p["id"] for p in fresh.products] == before


def test_concurrent_first_use_loads_once():
    class CountingState(StoreState):
        def __init__(self):
            super().__init__(store=object())
            self.load_calls = 0

        def load(self, *, initial=True):
            with self.lock:
                self.load_calls += 1
                time.sleep(0.05)
                self.loaded = True

    counting = CountingState()
    start = threading.Barrier(8)

    def first_request():
        start.wait()
        counting.ensure_loaded()

    workers = [threading.Thread(target=first_request) for _ in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert counting.load_calls == 1
