# Overview: Flask API routes for store settings and backups.

from flask import Blueprint, request, jsonify, g, current_app

from ..services.backup_service import get_scheduler
from ..validation import SETTINGS_POLICY, validate_payload, ValidationError
from ..decorators import require_session

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_session
def get_settings_route():
    with g.state.lock:
        settings = dict(g.state.settings)
    return jsonify(settings), 200


@settings_bp.put("")
@require_session
def update_settings_route():
    """
    Update branding and backup flags; fields not sent keep their value.

    lastBackupTime is owned by the backup scheduler and cannot be set here.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=SETTINGS_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    settings = g.state.update_settings(patch)
    return jsonify(settings), 200


@settings_bp.get("/backup")
@require_session
def backup_status_route():
    scheduler = get_scheduler()
    if scheduler is None:
        return jsonify({"error": "Backups are disabled"}), 404
    return jsonify(scheduler.status()), 200


@settings_bp.post("/backup")
@require_session
def manual_backup_route():
    """Run a backup now; requires the cloud connection flag, not autoBackup."""
    scheduler = get_scheduler()
    if scheduler is None:
        return jsonify({"error": "Backups are disabled"}), 404

    try:
        ok = scheduler.trigger_manual_backup()
    except Exception:
        current_app.logger.exception("Failed to run manual backup")
        return jsonify({"error": "Internal server error"}), 500

    if not ok:
        return jsonify({"ok": False, **scheduler.status()}), 409
    return jsonify({"ok": True, **scheduler.status()}), 200
