import pytest
from sqlalchemy import func, select

from bestiary import db
from bestiary.errors import InvalidFieldError
from bestiary.models import Action, CreatureTypeSpell
from bestiary.services import creature_type_service, spell_service
from tests.factories import make_action, make_action_pattern, make_creature_type, make_spell


def test_create_spell():
    spell = make_spell()
    assert spell.level == 0
    assert spell.damages[0][0]["damage"]["dieSize"] == 10
    assert spell.to_dict()["school"] == "evocation"


def test_create_spell_validation():
    with pytest.raises(InvalidFieldError):
        make_spell(level=10)
    with pytest.raises(InvalidFieldError):
        make_spell(school="pyromancy")
    with pytest.raises(InvalidFieldError):
        make_spell(components="V, Q")
    with pytest.raises(InvalidFieldError):
        make_spell(damages=[[]])


def test_delete_spell_removes_links_but_not_actions():
    spell = make_spell()
    goblin = make_creature_type()
    creature_type_service.link_spell(goblin.id, spell.id)
    action = make_action(make_action_pattern(goblin), spell_id=spell.id)
    spell_id = spell.id

    spell_service.delete_spell(spell_id)

    assert db.session.scalar(select(func.count(CreatureTypeSpell.id))) == 0
    # Actions keep the dangling id
    assert db.session.get(Action, action.id).spell_id == spell_id


def test_clone_spell():
    spell = make_spell()
    clone = spell_service.clone_spell(spell.id)
    assert clone.name == "Fire Bolt 2"
    assert clone.damages == spell_service.get_spell(spell.id).damages


def test_search_spells_by_level():
    make_spell()
    make_spell(name="Magic Missile", level=1, damages=None)
    assert [s.name for s in spell_service.search_spells(level=1)] == ["Magic Missile"]
