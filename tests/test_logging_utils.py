import json

from bestiary import logging_utils
from bestiary.logging_utils import _format, get_logger


def test_format_key_value_pairs(monkeypatch):
    monkeypatch.setattr(logging_utils, "JSON_MODE", False)
    line = _format("info", event="weapon_created", id=3, name="great axe", skipped=None)
    parts = line.split(" ")
    assert parts[0] == "level=info"
    assert parts[1].startswith("ts=")
    assert "event=weapon_created" in parts
    assert "id=3" in parts
    assert "name=great_axe" in parts
    assert not any(p.startswith("skipped=") for p in parts)


def test_format_json(monkeypatch):
    monkeypatch.setattr(logging_utils, "JSON_MODE", True)
    rec = json.loads(_format("warn", event="armor_detach_skipped", armor_id=2, error=None))
    assert rec["level"] == "warn"
    assert rec["event"] == "armor_detach_skipped"
    assert rec["armor_id"] == 2
    assert "error" not in rec


def test_level_filtering(monkeypatch, capsys):
    monkeypatch.setattr(logging_utils, "JSON_MODE", False)
    monkeypatch.setattr(logging_utils, "CURRENT_LEVEL", logging_utils.LEVELS["warn"])
    log = get_logger("bestiary.test")
    log.info(event="hidden")
    log.warn(event="shown")
    log.error(event="failed")
    captured = capsys.readouterr()
    assert "hidden" not in captured.out
    assert "event=shown" in captured.out
    assert "logger=bestiary.test" in captured.out
    assert "event=failed" in captured.err


def test_get_logger_is_cached():
    assert get_logger("bestiary.same") is get_logger("bestiary.same")
