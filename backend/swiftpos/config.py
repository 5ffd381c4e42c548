# backend/swiftpos/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/swiftpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///swiftpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Backup scheduler timings (seconds)
    BACKUP_ENABLED = _env_bool("BACKUP_ENABLED", True)
    BACKUP_DEBOUNCE_SECONDS = float(os.environ.get("BACKUP_DEBOUNCE_SECONDS", "5"))
    AUTO_SYNC_SECONDS = float(os.environ.get("AUTO_SYNC_SECONDS", "2"))
    MANUAL_SYNC_SECONDS = float(os.environ.get("MANUAL_SYNC_SECONDS", "1.5"))

    # bcrypt cost factor for stored user passwords
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
