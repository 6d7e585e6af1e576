"""Deletes that reach across entities."""

from sqlalchemy import func, select

from bestiary import db
from bestiary.models import Action, ActionPattern, Creature, CreatureType, CreatureTypeSpell, CreatureTypeWeapon
from bestiary.services import armor_service, creature_type_service, weapon_service
from tests.factories import (
    make_action,
    make_action_pattern,
    make_armor,
    make_creature,
    make_creature_type,
    make_spell,
    make_weapon,
)


def count(model):
    return db.session.scalar(select(func.count(model.id)))


def build_goblin():
    leather = make_armor()
    scimitar = make_weapon()
    fire_bolt = make_spell()
    goblin = make_creature_type(armor_id=leather.id)
    creature_type_service.link_weapon(goblin.id, scimitar.id)
    creature_type_service.link_spell(goblin.id, fire_bolt.id)
    pattern = make_action_pattern(goblin)
    make_action(pattern, weapon_id=scimitar.id)
    make_action(pattern, index=1)
    make_creature(goblin)
    make_creature(goblin, name="goblin two")
    return leather, scimitar, goblin, pattern


def test_delete_creature_type_removes_owned_rows():
    _, scimitar, goblin, _ = build_goblin()
    orc = make_creature_type(name="orc", hit_die=8, max_hp=15)
    make_action(make_action_pattern(orc))
    make_creature(orc)

    assert creature_type_service.delete_creature_type(goblin.id) is True

    assert creature_type_service.get_creature_type(goblin.id) is None
    assert count(CreatureType) == 1
    assert count(Creature) == 1
    assert count(ActionPattern) == 1
    assert count(Action) == 1
    assert count(CreatureTypeWeapon) == 0
    assert count(CreatureTypeSpell) == 0
    # Catalog rows survive
    assert weapon_service.get_weapon(scimitar.id) is not None


def test_delete_armor_keeps_the_goblin_graph():
    leather, _, goblin, pattern = build_goblin()

    armor_service.delete_armor(leather.id)

    graph = creature_type_service.get_creature_type(goblin.id)
    assert graph.armor_id is None
    assert graph.armor is None
    assert [p.id for p in graph.action_patterns] == [pattern.id]
    assert len(graph.action_patterns[0].actions) == 2
    assert [w.name for w in graph.weapons] == ["scimitar"]


def test_delete_weapon_keeps_actions_pointing_at_it():
    _, scimitar, goblin, pattern = build_goblin()

    weapon_service.delete_weapon(scimitar.id)

    graph = creature_type_service.get_creature_type(goblin.id)
    assert graph.weapons == []
    actions = graph.action_patterns[0].actions
    assert actions[0].weapon_id == scimitar.id
    assert actions[0].weapon is None


def test_leather_goblin_end_to_end():
    leather = make_armor()
    scimitar = make_weapon()
    goblin = make_creature_type(armor_id=leather.id)
    pattern = make_action_pattern(goblin, priority=0)
    make_action(pattern, weapon_id=scimitar.id, times=1)
    before = {model: count(model) for model in (Action, ActionPattern, CreatureType)}

    creature_type_service.delete_creature_type(goblin.id)

    assert {model: count(model) for model in before} == {model: n - 1 for model, n in before.items()}
    assert armor_service.get_armor(leather.id).creature_types == []
