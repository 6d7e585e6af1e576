import pytest

from bestiary.errors import DuplicateNameError, InvalidFieldError
from bestiary.models import Weapon
from bestiary.schemas import WEAPON_SCHEMA
from bestiary.services.helpers import (
    CREATE,
    UPDATE,
    clone_name,
    decode_json_fields,
    ensure_unique,
    human_name,
    missing_required_params,
    next_numbered_name,
    parse_id,
    strip_invalid_params,
    with_article,
)
from tests.factories import make_weapon


def test_parse_id():
    assert parse_id(3) == 3
    assert parse_id("12") == 12
    assert parse_id(" 7 ") == 7
    for bad in (None, "abc", "1.5", 0, -1, True, 2.0, "0"):
        assert parse_id(bad) is None


def test_strip_and_missing_params():
    data = strip_invalid_params({"name": "club", "id": 9, "bogus": 1}, WEAPON_SCHEMA.allowed_params)
    assert data == {"name": "club"}
    assert missing_required_params(data, WEAPON_SCHEMA.required_params) == ["damages"]
    assert missing_required_params({"name": None}, WEAPON_SCHEMA.required_params) == ["name", "damages"]


def test_decode_json_fields_only_touches_json_columns():
    out = decode_json_fields(Weapon, "Weapon", "creation", {"name": "[x]", "properties": '["light"]'})
    assert out == {"name": "[x]", "properties": ["light"]}
    with pytest.raises(InvalidFieldError) as exc:
        decode_json_fields(Weapon, "Weapon", "creation", {"damages": "{oops"})
    assert exc.value.field == "damages"


def test_entity_wording():
    assert human_name("CreatureType") == "creature type"
    assert with_article("Armor") == "an armor"
    assert with_article("ActionPattern") == "an action pattern"
    assert with_article("User") == "a user"
    assert with_article("Weapon") == "a weapon"


def test_next_numbered_name():
    make_weapon(name="club")
    assert next_numbered_name(Weapon, "club") == "club 2"
    make_weapon(name="club 2")
    assert next_numbered_name(Weapon, "club") == "club 3"
    assert next_numbered_name(Weapon, "club 2") == "club 3"
    assert next_numbered_name(Weapon, "club 9") == "club 10"


def test_ensure_unique_follows_schema_fields():
    club = make_weapon(name="club")
    # Only fields listed in the schema's unique tuple are checked
    ensure_unique(Weapon, WEAPON_SCHEMA, UPDATE, {"damages": []})
    ensure_unique(Weapon, WEAPON_SCHEMA, UPDATE, {"name": "club"}, exclude_id=club.id)
    with pytest.raises(DuplicateNameError) as exc:
        ensure_unique(Weapon, WEAPON_SCHEMA, CREATE, {"name": "club"})
    assert str(exc.value) == "Weapon creation failed, a weapon with the given name already exists"


def test_clone_name_checks_length():
    make_weapon(name="club")
    assert clone_name(Weapon, "Weapon", "club") == "club 2"
    with pytest.raises(InvalidFieldError) as exc:
        clone_name(Weapon, "Weapon", "c" * 49)
    assert exc.value.field == "name"
    assert str(exc.value).startswith("Weapon clone failed, name must be between 1 and 50 characters")
