# Overview: Service-layer operations for auth; user roster, session, and the secret gate.

"""
Authentication Service

One process-wide session: at most one logged-in user, persisted under its
own key and held on StoreState.session (without the password field).

verify_secret is the authorization gate for editing historical
transactions and expenses: the candidate must match the stored secret of
the user currently logged in.

PASSWORDS:
- New and changed passwords are stored as bcrypt hashes
- Stored plaintext (seed users, restored legacy rosters) is still accepted
  via constant-time comparison and re-hashed on the next successful login
"""
from __future__ import annotations

import hmac
import logging

import bcrypt
from flask import current_app, has_app_context

from .identifier_service import new_id
from .state_service import StoreState
from swiftpos.validation import ConflictError

logger = logging.getLogger(__name__)

USER_MUTABLE_FIELDS = {"name", "username", "password", "role"}
DEFAULT_BCRYPT_ROUNDS = 12


class AuthError(Exception):
    """Raised when a user operation is refused."""


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
    return DEFAULT_BCRYPT_ROUNDS


def is_hashed(stored: str) -> bool:
    return stored.startswith(("$2a$", "$2b$", "$2y$"))


def hash_password(password: str) -> str:
    """Hash password using bcrypt with the configured cost factor."""
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in the roster


def verify_password(password: str, stored: str | None) -> bool:
    """
    Check a candidate against a stored bcrypt hash or legacy plaintext.

    Returns True if the candidate matches, False otherwise.
    """
    if not stored or password is None:
        return False
    if is_hashed(stored):
        try:
            return bcrypt.checkpw(password.encode('utf-8'), stored.encode('utf-8'))
        except ValueError:
            return False
    return hmac.compare_digest(password.encode('utf-8'), stored.encode('utf-8'))


def public_user(user: dict) -> dict:
    """User record without its secret, as kept in the session and returned by the API."""
    return {k: v for k, v in user.items() if k != "password"}


def _find(state: StoreState, *, user_id: str | None = None, username: str | None = None) -> dict | None:
    for u in state.users:
        if user_id is not None and u["id"] == user_id:
            return u
        if username is not None and u.get("username") == username:
            return u
    return None


def _replace(state: StoreState, user: dict) -> None:
    state.users = [user if u["id"] == user["id"] else u for u in state.users]


# Session

def current_user(state: StoreState) -> dict | None:
    with state.lock:
        return state.session


def login(state: StoreState, username: str, password: str) -> dict | None:
    """Start the session for matching credentials; None on mismatch."""
    with state.lock:
        user = _find(state, username=username)
        if user is None or not verify_password(password, user.get("password")):
            logger.info("Failed login for username=%s", username)
            return None

        if not is_hashed(user["password"]):
            user = {**user, "password": hash_password(password)}
            _replace(state, user)
            state.commit("users")
            logger.info("Upgraded stored password to bcrypt for user id=%s", user["id"])

        state.set_session(public_user(user))
        logger.info("User %s logged in", username)
        return state.session


def logout(state: StoreState) -> None:
    with state.lock:
        user = state.session
        state.clear_session()
    if user:
        logger.info("User %s logged out", user.get("username"))


def verify_secret(state: StoreState, candidate: str | None) -> bool:
    """Authorization gate: does ``candidate`` match the logged-in user's secret?"""
    with state.lock:
        session = state.session
        if not session or candidate is None:
            return False
        user = _find(state, user_id=session.get("id"))
        if user is None:
            return False
        return verify_password(candidate, user.get("password"))


# Roster

def list_users(state: StoreState) -> list[dict]:
    with state.lock:
        return [public_user(u) for u in state.users]


def add_user(state: StoreState, data: dict) -> dict:
    with state.lock:
        if _find(state, username=data["username"]) is not None:
            raise ConflictError("Username already exists.")
        user = {
            "id": new_id({u["id"] for u in state.users}),
            "name": data["name"],
            "username": data["username"],
            "password": hash_password(data["password"]),
            "role": data["role"],
        }
        state.users = [*state.users, user]
        state.commit("users")

    logger.info("Created user id=%s username=%s role=%s", user["id"], user["username"], user["role"])
    return public_user(user)


def update_user(state: StoreState, user_id: str, patch: dict) -> dict | None:
    """Patch a user; refreshes the session copy when it is the current user."""
    with state.lock:
        user = _find(state, user_id=user_id)
        if user is None:
            return None

        username = patch.get("username")
        if username and username != user["username"] and _find(state, username=username) is not None:
            raise ConflictError("Username already exists.")

        changes = {k: v for k, v in patch.items() if k in USER_MUTABLE_FIELDS}
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        user = {**user, **changes}
        _replace(state, user)
        state.commit("users")

        if state.session and state.session.get("id") == user_id:
            state.set_session(public_user(user))

        return public_user(user)


def delete_user(state: StoreState, user_id: str) -> bool:
    with state.lock:
        if state.session and state.session.get("id") == user_id:
            raise AuthError("Cannot delete the user that is currently logged in")
        remaining = [u for u in state.users if u["id"] != user_id]
        if len(remaining) == len(state.users):
            return False
        state.users = remaining
        state.commit("users")

    logger.info("Deleted user id=%s", user_id)
    return True
