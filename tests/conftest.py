import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Must be set before the app module is imported (config is read at import time)
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("BESTIARY_LOG_LEVEL", "warn")

from bestiary import create_app, db  # noqa: E402

from tests.factories import PASSWORD  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app()
    app.config.update({"TESTING": True, "LOGIN_DISABLED": False})
    return app


@pytest.fixture(autouse=True)
def _push_app_context(test_app):
    """Fresh schema per test inside a pushed app context."""
    ctx = test_app.app_context()
    ctx.push()
    db.drop_all()
    db.create_all()
    try:
        yield
    finally:
        db.session.remove()
        ctx.pop()


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture()
def auth_client(client):
    """Test client with a registered, logged-in user."""
    resp = client.post("/api/register", json={"email": "gm@example.com", "password": PASSWORD})
    assert resp.status_code == 201, resp.get_json()
    return client
