import pytest

from bestiary.errors import InvalidFieldError, MissingFieldsError, NotFoundError
from bestiary.services import action_service, spell_service, weapon_service
from tests.factories import make_action, make_action_pattern, make_creature_type, make_spell, make_weapon

KIND_ERROR = "Action creation failed, action must be one of weapon, spell, or other"


@pytest.fixture()
def pattern():
    return make_action_pattern(make_creature_type())


def test_create_weapon_action(pattern):
    scimitar = make_weapon()
    action = make_action(pattern, weapon_id=scimitar.id, restrictions="Only while hidden.")
    assert action.times == 1
    data = action.to_dict()
    assert data["weapon"]["name"] == "scimitar"
    assert data["spell"] is None
    assert data["other"] is None


def test_exactly_one_kind_on_create(pattern):
    scimitar = make_weapon()
    fire_bolt = make_spell()
    with pytest.raises(InvalidFieldError) as exc:
        action_service.create_action({"action_pattern_id": pattern.id, "index": 0})
    assert str(exc.value) == KIND_ERROR
    with pytest.raises(InvalidFieldError):
        make_action(pattern, weapon_id=scimitar.id, spell_id=fire_bolt.id)
    with pytest.raises(InvalidFieldError):
        make_action(pattern, weapon_id=scimitar.id, other="Swings wildly at anyone.")


def test_blank_other_counts_as_unset(pattern):
    with pytest.raises(InvalidFieldError) as exc:
        make_action(pattern, other="   ")
    assert str(exc.value) == KIND_ERROR
    scimitar = make_weapon()
    action = make_action(pattern, weapon_id=scimitar.id, other="")
    assert action.other is None


def test_exactly_one_kind_on_merged_update(pattern):
    scimitar = make_weapon()
    fire_bolt = make_spell()
    action = make_action(pattern, weapon_id=scimitar.id)
    with pytest.raises(InvalidFieldError):
        action_service.update_action(action.id, {"spell_id": fire_bolt.id})
    switched = action_service.update_action(action.id, {"spell_id": fire_bolt.id, "weapon_id": None})
    assert switched.weapon_id is None
    assert switched.spell.name == "Fire Bolt"


def test_references_must_exist(pattern):
    with pytest.raises(InvalidFieldError) as exc:
        make_action(pattern, weapon_id=404)
    assert "no weapon found for the given weapon_id" in str(exc.value)
    with pytest.raises(InvalidFieldError):
        make_action(pattern, spell_id=404)
    with pytest.raises(InvalidFieldError):
        action_service.create_action({"action_pattern_id": 404, "index": 0, "other": "Waits patiently."})


def test_field_rules(pattern):
    with pytest.raises(MissingFieldsError) as exc:
        action_service.create_action({"action_pattern_id": pattern.id})
    assert exc.value.fields == ["index"]
    with pytest.raises(InvalidFieldError):
        make_action(pattern, times=10)
    with pytest.raises(InvalidFieldError):
        make_action(pattern, times=0)
    with pytest.raises(InvalidFieldError):
        make_action(pattern, index=-1)
    assert make_action(pattern, times=9).times == 9


def test_clone_action_takes_next_index(pattern):
    make_action(pattern, index=0)
    second = make_action(pattern, index=1, other="Runs for the nearest exit.")
    clone = action_service.clone_action(second.id)
    assert clone.index == 2
    assert clone.other == "Runs for the nearest exit."
    assert clone.action_pattern_id == pattern.id


def test_clone_action_rejects_deleted_weapon(pattern):
    scimitar = make_weapon()
    swing = make_action(pattern, weapon_id=scimitar.id)
    weapon_service.delete_weapon(scimitar.id)
    with pytest.raises(InvalidFieldError) as exc:
        action_service.clone_action(swing.id)
    assert str(exc.value) == "Action clone failed, no weapon found for the given weapon_id"
    assert [a.id for a in action_service.search_actions(action_pattern_id=pattern.id)] == [swing.id]


def test_clone_action_rejects_deleted_spell(pattern):
    fire_bolt = make_spell()
    cast = make_action(pattern, spell_id=fire_bolt.id)
    spell_service.delete_spell(fire_bolt.id)
    with pytest.raises(InvalidFieldError) as exc:
        action_service.clone_action(cast.id)
    assert exc.value.field == "spell_id"


def test_delete_action(pattern):
    action = make_action(pattern)
    assert action_service.delete_action(action.id) is True
    assert action_service.get_action(action.id) is None
    with pytest.raises(NotFoundError):
        action_service.delete_action(action.id)


def test_search_actions(pattern):
    scimitar = make_weapon()
    make_action(pattern)
    swing = make_action(pattern, index=1, weapon_id=scimitar.id)
    assert [a.id for a in action_service.search_actions(weapon_id=scimitar.id)] == [swing.id]
