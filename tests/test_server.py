import logging

from bestiary import app
from bestiary.models import Armor
from bestiary.server import configure_logging, seed_db


def test_configure_logging_writes_instance_log(tmp_path, monkeypatch):
    monkeypatch.setattr(app, "instance_path", str(tmp_path))
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging()
        # Reconfiguring replaces handlers instead of stacking them
        path = configure_logging(logging.DEBUG)
        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG
        logging.getLogger("bestiary.test").info("hello")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
    assert path == str(tmp_path / "app.log")
    assert "hello" in (tmp_path / "app.log").read_text()


def test_seed_db_is_idempotent():
    first = seed_db()
    assert first["armors"] == 12
    assert seed_db()["armors"] == 0
    assert Armor.query.count() == 12
