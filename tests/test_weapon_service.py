import pytest
from sqlalchemy import func, select

from bestiary import db
from bestiary.errors import (
    DuplicateNameError,
    InvalidFieldError,
    InvalidIdentifierError,
    MissingFieldsError,
    NoValidFieldsError,
    NotFoundError,
)
from bestiary.models import CreatureTypeWeapon, Weapon
from bestiary.services import creature_type_service, weapon_service
from tests.factories import damage, make_creature_type, make_weapon, weapon_data


def weapon_count():
    return db.session.scalar(select(func.count(Weapon.id)))


def test_create_weapon_strips_unknown_fields():
    weapon = weapon_service.create_weapon(weapon_data(id=99, bogus="x"))
    assert weapon.id != 99
    assert weapon.name == "scimitar"
    assert weapon.damages == [damage()]
    assert weapon.normal_range == 0
    assert weapon.save_still_half is False


def test_create_weapon_accepts_json_strings():
    weapon = weapon_service.create_weapon(
        {
            "name": "dagger",
            "damages": '[{"count":1,"dieSize":4,"bonus":0,"damageType":"piercing","effect":""}]',
            "properties": '["finesse","light","thrown"]',
            "normal_range": 20,
            "long_range": 60,
        }
    )
    assert weapon.properties == ["finesse", "light", "thrown"]
    assert weapon.damages[0]["dieSize"] == 4


def test_create_missing_fields_lists_them_in_schema_order():
    with pytest.raises(MissingFieldsError) as exc:
        weapon_service.create_weapon({"properties": ["light"]})
    assert exc.value.fields == ["name", "damages"]
    assert str(exc.value) == "Weapon creation failed, fields missing: name,damages"
    assert exc.value.status == 400


def test_create_duplicate_name_leaves_count_unchanged():
    make_weapon()
    before = weapon_count()
    with pytest.raises(DuplicateNameError) as exc:
        make_weapon()
    assert "a weapon with the given name already exists" in str(exc.value)
    assert weapon_count() == before


def test_create_rejects_invalid_fields():
    with pytest.raises(InvalidFieldError) as exc:
        make_weapon(properties=["light", "finesse"])
    assert exc.value.field == "properties"
    with pytest.raises(InvalidFieldError):
        make_weapon(normal_range=80, long_range=20)
    with pytest.raises(InvalidFieldError):
        make_weapon(attack_shape="blob")
    assert weapon_count() == 0


def test_get_weapon_malformed_or_missing_returns_none():
    assert weapon_service.get_weapon("abc") is None
    assert weapon_service.get_weapon(12345) is None
    weapon = make_weapon()
    assert weapon_service.get_weapon(str(weapon.id)).name == "scimitar"


def test_update_weapon():
    weapon = make_weapon()
    updated = weapon_service.update_weapon(weapon.id, {"name": "great scimitar", "save": 12, "save_type": "con"})
    assert updated.name == "great scimitar"
    assert updated.save == 12


def test_update_only_non_updateable_fields():
    weapon = make_weapon()
    with pytest.raises(NoValidFieldsError) as exc:
        weapon_service.update_weapon(weapon.id, {"id": 5, "created_at": "now"})
    assert str(exc.value) == "Weapon update failed, no valid update fields found"
    assert weapon_service.get_weapon(weapon.id).name == "scimitar"


def test_update_errors():
    weapon = make_weapon()
    make_weapon(name="club")
    with pytest.raises(InvalidIdentifierError):
        weapon_service.update_weapon("x1", {"name": "other"})
    with pytest.raises(NotFoundError) as exc:
        weapon_service.update_weapon(9999, {"name": "other"})
    assert "no weapon found for the given ID" in str(exc.value)
    with pytest.raises(DuplicateNameError):
        weapon_service.update_weapon(weapon.id, {"name": "club"})
    with pytest.raises(InvalidFieldError):
        weapon_service.update_weapon(weapon.id, {"damages": None})
    # Cross-field check runs against the merged record
    weapon_service.update_weapon(weapon.id, {"normal_range": 20, "long_range": 60})
    with pytest.raises(InvalidFieldError):
        weapon_service.update_weapon(weapon.id, {"long_range": 10})


def test_rename_to_own_name_is_allowed():
    weapon = make_weapon()
    assert weapon_service.update_weapon(weapon.id, {"name": "scimitar"}).name == "scimitar"


def test_delete_weapon_removes_links():
    weapon = make_weapon()
    goblin = make_creature_type()
    creature_type_service.link_weapon(goblin.id, weapon.id)
    assert weapon_service.delete_weapon(weapon.id) is True
    assert weapon_service.get_weapon(weapon.id) is None
    assert db.session.scalar(select(func.count(CreatureTypeWeapon.id))) == 0
    with pytest.raises(NotFoundError):
        weapon_service.delete_weapon(weapon.id)
    with pytest.raises(InvalidIdentifierError):
        weapon_service.delete_weapon("nope")


def test_search_weapons():
    make_weapon()
    make_weapon(name="shortbow", properties=["ammunition", "two-handed"], normal_range=80, long_range=320)
    assert [w.name for w in weapon_service.search_weapons(normal_range=80)] == ["shortbow"]
    assert len(weapon_service.search_weapons()) == 2
    with pytest.raises(InvalidFieldError) as exc:
        weapon_service.search_weapons(damages="x")
    assert exc.value.operation == "search"
