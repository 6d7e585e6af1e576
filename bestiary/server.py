"""
project: Bestiary
module: server.py
License: MIT

Server bootstrap helpers used by the CLI.

``init_db`` creates missing tables, ``configure_logging`` sends stdlib
logging to the console and a rotating ``instance/app.log``, and
``start_server`` runs the Flask development server.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from bestiary import app, db
from bestiary.logging_utils import get_logger

log = get_logger("bestiary.server")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level=logging.INFO):
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    """
    log_dir = app.instance_path
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(level)

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LOG_FORMAT))

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(file_handler)
    root.addHandler(console)
    return log_path


def init_db():
    """Create any missing tables (idempotent)."""
    from bestiary import models  # noqa: F401

    with app.app_context():
        db.create_all()
    log.info(event="db_initialized", uri=app.config["SQLALCHEMY_DATABASE_URI"])


def seed_db():
    from bestiary.seed_data import seed_defaults

    init_db()
    with app.app_context():
        return seed_defaults()


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (runtime only)
    """Ensure tables exist, configure logging and run the Flask server."""
    init_db()
    configure_logging(logging.DEBUG if debug else logging.INFO)
    try:
        print(f"[INFO] Starting Bestiary API on {host}:{port}")
        app.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)


__all__ = ["configure_logging", "init_db", "seed_db", "start_server"]
