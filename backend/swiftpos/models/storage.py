from __future__ import annotations

from ..extensions import db


class StorageEntry(db.Model):
    """
    One persisted collection per row, keyed by a fixed string identifier.

    The value is the whole collection (list of records, settings object,
    or session user) serialized as JSON. No business logic lives here.
    """
    __tablename__ = "storage_entries"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.JSON, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

