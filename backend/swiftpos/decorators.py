# Overview: Request and authorization decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import auth_service
from .services.state_service import get_state

SECRET_HEADER = "X-Confirm-Password"


def require_session(f):
    """
    Require a logged-in user and expose the store handle.

    Sets the following Flask g attributes:
    - g.state: the app's StoreState
    - g.current_user: the session user (without password)

    Returns 401 if nobody is logged in.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        state = get_state()
        user = auth_service.current_user(state)
        if not user:
            return jsonify({"error": "Authentication required"}), 401

        g.state = state
        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the session user to hold one of ``roles``. Use after @require_session."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required"}), 401
            if g.current_user.get("role") not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_role": list(roles),
                }), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_secret(f):
    """
    Gate for edits of historical records: the caller re-enters the current
    user's password, either in the X-Confirm-Password header or as "secret"
    in the JSON body. Use after @require_session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        candidate = request.headers.get(SECRET_HEADER)
        if candidate is None:
            body = request.get_json(silent=True)
            if isinstance(body, dict):
                candidate = body.get("secret")

        if not auth_service.verify_secret(g.state, candidate):
            return jsonify({"error": "Access denied: Invalid password."}), 403

        return f(*args, **kwargs)

    return decorated_function
