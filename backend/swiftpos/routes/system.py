# backend/swiftpos/routes/system.py
"""
System health endpoint.

Reports database connectivity and how many records each collection holds.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import StorageEntry
from ..services.state_service import get_state
from swiftpos.time_utils import now_iso

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        entry_count = db.session.query(StorageEntry).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "response_time_ms": round(elapsed_ms, 2),
            "storage_entries": entry_count,
        }
    except Exception as e:
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "error": str(e)}


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    body = {"status": database["status"], "time": now_iso(), "database": database}
    if database["status"] != "healthy":
        return body, 503

    state = get_state()
    with state.lock:
        body["collections"] = {
            "products": len(state.products),
            "customers": len(state.customers),
            "transactions": len(state.transactions),
            "expenses": len(state.expenses),
            "users": len(state.users),
        }
    return body, 200
