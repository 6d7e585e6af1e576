"""Authentication routes: register, login, logout, current user.

JSON bodies: ``{"email": ..., "password": ...}``. Sessions are managed by
Flask-Login; API writes require one.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from bestiary.logging_utils import get_logger
from bestiary.services import user_service

bp_auth = Blueprint("auth", __name__, url_prefix="/api")
log = get_logger("bestiary.auth")


def _credentials():
    data = request.get_json(silent=True)
    data = data if isinstance(data, dict) else {}
    return data.get("email"), data.get("password")


@bp_auth.route("/register", methods=["POST"])
def register():
    """Create an account and log it in. Service errors map through the API handler."""
    email, password = _credentials()
    user = user_service.create_user({"email": email, "password": password})
    login_user(user)
    return jsonify(user.to_dict()), 201


@bp_auth.route("/login", methods=["POST"])
def login():
    email, password = _credentials()
    user = user_service.authenticate(email, password)
    if user is None:
        return jsonify({"error": "invalid credentials", "code": "invalid_credentials"}), 401
    login_user(user)
    log.info(event="login", user_id=user.id)
    return jsonify(user.to_dict())


@bp_auth.route("/logout", methods=["POST"])
@login_required
def logout():
    user_id = current_user.id
    logout_user()
    log.info(event="logout", user_id=user_id)
    return jsonify({"ok": True})


@bp_auth.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(current_user.to_dict())
