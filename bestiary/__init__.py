"""
project: Bestiary
module: __init__.py
License: MIT

Flask application factory and core extensions setup.

This module wires together the Flask app, SQLAlchemy and Flask-Login.
Configuration is sourced from environment variables with reasonable defaults
for development. A local `instance/` directory is used for SQLite, the log
file and other runtime data.
"""

import logging
import os
import sqlite3
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

# Load .env if present so `SECRET_KEY`, `DATABASE_URL`, etc. can be supplied
# without exporting shell variables during development.
load_dotenv()

app = Flask(__name__, instance_relative_config=True)

try:
    os.makedirs(app.instance_path, exist_ok=True)
except OSError:
    # Read-only installs still work with an explicit DATABASE_URL
    pass

secret_key = os.getenv("SECRET_KEY", "dev-secret-change-me")
database_url = os.getenv("DATABASE_URL")

if not database_url:
    db_path = Path(app.instance_path) / "bestiary.db"
    # Use POSIX path for SQLAlchemy URI compatibility across OS
    database_url = f"sqlite:///{db_path.as_posix()}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


app.config.update(
    SECRET_KEY=secret_key,
    SQLALCHEMY_DATABASE_URI=database_url,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    # Validation limits, bound into bestiary.validation.ValidationConfig
    BESTIARY_MAX_ARRAY_LENGTH=_env_int("BESTIARY_MAX_ARRAY_LENGTH", 10),
    BESTIARY_MIN_INFORMATION=_env_int("BESTIARY_MIN_INFORMATION", 4),
    BESTIARY_MAX_INFORMATION=_env_int("BESTIARY_MAX_INFORMATION", 50),
    BESTIARY_MIN_DESCRIPTION=_env_int("BESTIARY_MIN_DESCRIPTION", 8),
    BESTIARY_MAX_DESCRIPTION=_env_int("BESTIARY_MAX_DESCRIPTION", 500),
    BESTIARY_MAX_LONG_DESCRIPTION=_env_int("BESTIARY_MAX_LONG_DESCRIPTION", 4000),
    BESTIARY_MAX_DICE=_env_int("BESTIARY_MAX_DICE", 20),
    BESTIARY_MAX_HIT_DICE=_env_int("BESTIARY_MAX_HIT_DICE", 50),
    BESTIARY_MAX_LEGENDARY_RESISTANCES=_env_int("BESTIARY_MAX_LEGENDARY_RESISTANCES", 4),
)

engine_opts = {}
if database_url.startswith("sqlite:///"):
    engine_opts["connect_args"] = {
        "timeout": 10,  # busy timeout (seconds) for sqlite
        "check_same_thread": False,
    }
db = SQLAlchemy(app, engine_options=engine_opts)
login_manager = LoginManager(app)


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: D401
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=10000")  # 10 seconds
    cursor.close()


@login_manager.user_loader
def load_user(user_id):
    from bestiary.models import User

    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


@login_manager.unauthorized_handler
def _unauthorized():
    return jsonify({"error": "authentication required", "code": "unauthorized"}), 401


# Register HTTP blueprints (import after app/db created)
from bestiary.routes.api import bp_api  # noqa: E402
from bestiary.routes.auth import bp_auth  # noqa: E402

app.register_blueprint(bp_api)
app.register_blueprint(bp_auth)


def create_app():
    """Return the Flask app instance with all tables created.

    Idempotent: `create_all` only creates missing tables, so the CLI, the
    server and the test suite can all call it.
    """
    from bestiary import models  # noqa: F401

    with app.app_context():
        db.create_all()
    return app


@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s)", error_id)
    return jsonify({"error": "internal server error", "code": "internal", "error_id": error_id}), 500
