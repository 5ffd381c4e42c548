# Overview: Backup scheduler; debounced automatic sync and on-demand manual sync.

"""
Backup Scheduler

WHEN IT RUNS:
- Automatic: every committed change to products, customers, transactions
  or expenses, or a flip of the autoBackup / googleDriveConnected flags,
  (re)arms a debounce timer while both flags are on. Re-arming cancels the
  pending timer, so only the last change inside a quiet window syncs.
  Initial loads never count as a change.
- Manual: trigger_manual_backup() runs immediately in the caller's thread and
  only needs googleDriveConnected.

A sync sets is_syncing, hands a snapshot to the transport, stamps
settings.lastBackupTime, then clears is_syncing. The transport is a timed
stub; a transport that raises is logged, the stamp is skipped, and no retry
is scheduled.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import nullcontext
from typing import Callable

from flask import current_app

from .state_service import StoreState, StateChange, DATA_COLLECTIONS
from swiftpos.time_utils import now_iso

logger = logging.getLogger(__name__)

SCHEDULER_EXTENSION_KEY = "swiftpos.backup"
BACKUP_FLAGS = ("autoBackup", "googleDriveConnected")

Transport = Callable[[dict, float], None]


def simulated_transport(snapshot: dict, duration: float) -> None:
    """Stand-in for the cloud upload: waits ``duration`` seconds."""
    logger.info(
        "Uploading backup (%s products, %s transactions)",
        len(snapshot.get("products", [])),
        len(snapshot.get("transactions", [])),
    )
    time.sleep(duration)


def qualifies(change: StateChange) -> bool:
    """True if the change should (re)arm the automatic backup."""
    if change.initial:
        return False
    if change.collections & set(DATA_COLLECTIONS):
        return True
    if "settings" in change.collections and change.previous_settings is not None:
        current = change.settings or {}
        return any(bool(change.previous_settings.get(f)) != bool(current.get(f)) for f in BACKUP_FLAGS)
    return False


class BackupScheduler:
    def __init__(
        self,
        state: StoreState,
        *,
        transport: Transport | None = None,
        debounce_seconds: float = 5.0,
        auto_sync_seconds: float = 2.0,
        manual_sync_seconds: float = 1.5,
        timer_factory=threading.Timer,
        clock: Callable[[], str] = now_iso,
        app=None,
    ):
        self.state = state
        self.transport = transport or simulated_transport
        self.debounce_seconds = debounce_seconds
        self.auto_sync_seconds = auto_sync_seconds
        self.manual_sync_seconds = manual_sync_seconds
        self.timer_factory = timer_factory
        self.clock = clock
        self.app = app

        self.is_syncing = False
        self.sync_count = 0
        self._lock = threading.Lock()
        self._timer = None
        self._generation = 0

        state.subscribe(self.on_change)

    # Eligibility

    def _flags(self) -> tuple[bool, bool]:
        with self.state.lock:
            settings = self.state.settings
            return bool(settings.get("autoBackup")), bool(settings.get("googleDriveConnected"))

    def auto_backup_enabled(self) -> bool:
        auto, connected = self._flags()
        return auto and connected

    @property
    def pending(self) -> bool:
        return self._timer is not None

    # Automatic trigger

    def on_change(self, change: StateChange) -> None:
        if not qualifies(change):
            return
        if self.auto_backup_enabled():
            self._arm()
        else:
            self.cancel()

    def _arm(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = self.timer_factory(self.debounce_seconds, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()
        logger.debug("Auto-backup armed (%.1fs quiet window)", self.debounce_seconds)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None

        ctx = self.app.app_context() if self.app is not None else nullcontext()
        with ctx:
            if not self.auto_backup_enabled():
                return
            logger.info("Detected changes, starting auto-backup")
            self._sync(self.auto_sync_seconds)

    # Manual trigger

    def trigger_manual_backup(self) -> bool:
        """Sync now; False (no-op) unless cloud storage is connected."""
        _, connected = self._flags()
        if not connected:
            logger.info("Manual backup skipped: cloud storage not connected")
            return False
        return self._sync(self.manual_sync_seconds)

    # Sync

    def _sync(self, duration: float) -> bool:
        self.is_syncing = True
        try:
            snapshot = self.state.get_all_data()
            self.transport(snapshot, duration)
        except Exception:
            logger.exception("Backup sync failed")
            return False
        else:
            stamp = self.clock()
            self.state.stamp_backup_time(stamp)
            self.sync_count += 1
            logger.info("Backup completed at %s", stamp)
            return True
        finally:
            self.is_syncing = False

    def status(self) -> dict:
        auto, connected = self._flags()
        with self.state.lock:
            last = self.state.settings.get("lastBackupTime")
        return {
            "isSyncing": self.is_syncing,
            "pending": self.pending,
            "lastBackupTime": last,
            "autoBackup": auto,
            "googleDriveConnected": connected,
        }

    def shutdown(self) -> None:
        self.cancel()


def get_scheduler() -> BackupScheduler | None:
    """The app's BackupScheduler, or None when backups are disabled."""
    return current_app.extensions.get(SCHEDULER_EXTENSION_KEY)
