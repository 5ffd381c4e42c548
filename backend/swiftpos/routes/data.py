# Overview: Flask API routes for whole-store export and import.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_session, require_role

data_bp = Blueprint("data", __name__, url_prefix="/api/data")


@data_bp.get("/export")
@require_session
@require_role("admin", "manager")
def export_route():
    """Backup envelope: every collection plus backupDate and version."""
    return jsonify(g.state.get_all_data()), 200


@data_bp.post("/import")
@require_session
@require_role("admin")
def import_route():
    """
    Restore from an envelope. Present fields overwrite their collection,
    absent fields are skipped; a non-object body is rejected.
    """
    data = request.get_json(silent=True)
    if not g.state.restore_data(data):
        return jsonify({"ok": False, "error": "Invalid backup file"}), 400
    return jsonify({"ok": True}), 200
