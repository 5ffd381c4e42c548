# Overview: Flask API routes for login, logout, the secret gate, and the user roster.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import auth_service
from ..services.auth_service import AuthError
from ..services.state_service import get_state
from ..validation import (
    USER_POLICY,
    validate_payload,
    enforce_rules_user,
    ValidationError,
    ConflictError,
)
from ..decorators import require_session, require_role

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Start the session.

    Body: {"username": str, "password": str}
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")
    if not username or not password:
        return jsonify({"error": "username and password required"}), 400

    try:
        user = auth_service.login(get_state(), username, password)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    if not user:
        return jsonify({"error": "Invalid credentials"}), 401
    return jsonify({"user": user, "message": "Login successful"}), 200


@auth_bp.post("/logout")
def logout_route():
    auth_service.logout(get_state())
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_session
def me_route():
    return jsonify({"user": g.current_user}), 200


@auth_bp.post("/verify")
@require_session
def verify_route():
    """Check the current user's password without performing any action."""
    data = request.get_json(silent=True) or {}
    ok = auth_service.verify_secret(g.state, data.get("secret"))
    if not ok:
        return jsonify({"ok": False, "error": "Access denied: Invalid password."}), 403
    return jsonify({"ok": True}), 200


@auth_bp.get("/users")
@require_session
@require_role("admin", "manager")
def list_users_route():
    users = auth_service.list_users(g.state)
    return jsonify({"items": users, "count": len(users)}), 200


@auth_bp.post("/users")
@require_session
@require_role("admin")
def create_user_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=USER_POLICY, partial=False)
        enforce_rules_user(patch)
        user = auth_service.add_user(g.state, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(user), 201


@auth_bp.put("/users/<user_id>")
@require_session
@require_role("admin")
def update_user_route(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=USER_POLICY, partial=True)
        enforce_rules_user(patch)
        user = auth_service.update_user(g.state, user_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user), 200


@auth_bp.delete("/users/<user_id>")
@require_session
@require_role("admin")
def delete_user_route(user_id: str):
    try:
        deleted = auth_service.delete_user(g.state, user_id)
    except AuthError as e:
        return jsonify({"error": str(e)}), 409
    if not deleted:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"ok": True}), 200
