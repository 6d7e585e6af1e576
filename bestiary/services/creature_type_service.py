"""
project: Bestiary
module: creature_type_service.py
License: MIT

Creature type (stat block) operations.

Notes:
- max_hp is bounded by the hit dice: num_dice * (hit_die + con modifier).
  The bound is checked on the merged record, so an update touching only
  ``con`` can still be rejected.
- Deleting a creature type removes, in order: its creatures, the actions of
  its patterns, the patterns, its weapon/spell links, then the row itself.
- Cloning copies the stat block only; patterns and links stay with the
  original.
"""

from __future__ import annotations

from functools import partial

from sqlalchemy import select

from bestiary import db
from bestiary.logging_utils import get_logger
from bestiary.models import (
    Action,
    ActionPattern,
    Armor,
    Creature,
    CreatureType,
    CreatureTypeSpell,
    CreatureTypeWeapon,
    Spell,
    Weapon,
)
from bestiary.schemas import CREATURE_TYPE_SCHEMA
from bestiary.services.helpers import (
    CLONE,
    CREATE,
    DELETE,
    LINK,
    UNLINK,
    UPDATE,
    apply_field_rules,
    atomic,
    clone_name,
    delete_where,
    ensure_reference,
    ensure_unique,
    field_errors,
    merged_record,
    parse_id,
    prepare_create,
    prepare_update,
    require_id,
    require_record,
    search_records,
)
from bestiary.validation import ABILITIES, SIZES, SPELLCASTING_ABILITIES, FieldValidators, current_validators

log = get_logger("bestiary.creature_types")
ENTITY = CREATURE_TYPE_SCHEMA.entity

_SPEEDS = ("speed", "fly_speed", "swim_speed", "climb_speed", "burrow_speed")
_LABELED = ("special_abilities", "legendary_actions", "reactions", "lair_actions", "regional_effects")


def _field_rules(v: FieldValidators):
    rules = {
        "name": v.name,
        "size": partial(v.choice, options=SIZES),
        "type": v.string_array,
        "tags": v.alphabetical_string_array,
        "alignment": v.alignment,
        "armor_id": v.positive,
        "has_shield": v.boolean,
        "hit_die": v.hit_die,
        "num_dice": v.num_dice,
        "max_hp": v.positive,
        "hover": v.boolean,
        "saving_throws": v.saving_throws,
        "skills": v.skills,
        "resistances": v.resistances,
        "senses": v.senses,
        "passive_perception": v.ability_score,
        "languages": v.string_array,
        "challenge_rating": v.challenge_rating,
        "proficiency_bonus": v.proficiency_bonus,
        "legendary_resistances": v.legendary_resistances,
        "spellcasting": partial(v.choice, options=SPELLCASTING_ABILITIES),
        "spell_slots": v.spell_slots,
        "innate_spells": v.innate_spells,
    }
    rules.update({speed: v.distance for speed in _SPEEDS})
    rules.update({ability: v.ability_score for ability in ABILITIES})
    rules.update({field: v.labeled_descriptions for field in _LABELED})
    return rules


def _check_hit_points(v: FieldValidators, record, operation: str):
    with field_errors(ENTITY, operation):
        v.hit_point_bound(record.get("max_hp"), record.get("num_dice"), record.get("hit_die"), record.get("con"))


def _check_references(record, operation: str):
    ensure_reference(Armor, ENTITY, operation, "armor_id", record.get("armor_id"))
    for innate in record.get("innate_spells") or ():
        ensure_reference(Spell, ENTITY, operation, "innate_spells", innate["spellId"])


def get_creature_type(creature_type_id):
    creature_type_id = parse_id(creature_type_id)
    if creature_type_id is None:
        return None
    return CreatureType.get_with_full_graph(creature_type_id)


def create_creature_type(data):
    v = current_validators()
    with atomic(ENTITY, CREATE):
        values = prepare_create(CreatureType, CREATURE_TYPE_SCHEMA, data)
        apply_field_rules(ENTITY, CREATE, values, _field_rules(v))
        _check_hit_points(v, values, CREATE)
        _check_references(values, CREATE)
        ensure_unique(CreatureType, CREATURE_TYPE_SCHEMA, CREATE, values)
        creature_type = CreatureType(**values)
        db.session.add(creature_type)
        db.session.flush()
        creature_type_id = creature_type.id
    log.info(event="creature_type_created", id=creature_type_id, name=values["name"])
    return get_creature_type(creature_type_id)


def update_creature_type(creature_type_id, data):
    v = current_validators()
    with atomic(ENTITY, UPDATE):
        creature_type, changes = prepare_update(CreatureType, CREATURE_TYPE_SCHEMA, creature_type_id, data)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(v))
        _check_hit_points(v, merged_record(creature_type, changes), UPDATE)
        _check_references(changes, UPDATE)
        ensure_unique(CreatureType, CREATURE_TYPE_SCHEMA, UPDATE, changes, exclude_id=creature_type.id)
        for key, value in changes.items():
            setattr(creature_type, key, value)
        creature_type_id = creature_type.id
    log.info(event="creature_type_updated", id=creature_type_id, fields=",".join(changes))
    return get_creature_type(creature_type_id)


def delete_creature_type(creature_type_id) -> bool:
    with atomic(ENTITY, DELETE):
        creature_type_id = require_id(ENTITY, DELETE, creature_type_id)
        require_record(CreatureType, ENTITY, DELETE, creature_type_id)
        creatures = delete_where(Creature, Creature.creature_type_id == creature_type_id)
        pattern_ids = ActionPattern.ids_for_creature_type(creature_type_id)
        actions = 0
        if pattern_ids:
            actions = delete_where(Action, Action.action_pattern_id.in_(pattern_ids))
            delete_where(ActionPattern, ActionPattern.id.in_(pattern_ids))
        delete_where(CreatureTypeWeapon, CreatureTypeWeapon.creature_type_id == creature_type_id)
        delete_where(CreatureTypeSpell, CreatureTypeSpell.creature_type_id == creature_type_id)
        delete_where(CreatureType, CreatureType.id == creature_type_id)
    log.info(
        event="creature_type_deleted",
        id=creature_type_id,
        creatures=creatures,
        action_patterns=len(pattern_ids),
        actions=actions,
    )
    return True


def clone_creature_type(creature_type_id):
    with atomic(ENTITY, CLONE):
        creature_type_id = require_id(ENTITY, CLONE, creature_type_id)
        original = require_record(CreatureType, ENTITY, CLONE, creature_type_id)
        values = original.column_values()
        values["name"] = clone_name(CreatureType, ENTITY, original.name)
        _check_references(values, CLONE)
        clone = CreatureType(**values)
        db.session.add(clone)
        db.session.flush()
        db.session.refresh(original)
        clone_id = clone.id
    log.info(event="creature_type_cloned", id=clone_id, source_id=creature_type_id, name=values["name"])
    return get_creature_type(clone_id)


def search_creature_types(**filters):
    return search_records(CreatureType, CREATURE_TYPE_SCHEMA, filters)


# --- weapon / spell links ---------------------------------------------------
def _link(join_model, target_model, target_field: str, creature_type_id, target_id):
    with atomic(ENTITY, LINK):
        creature_type_id = require_id(ENTITY, LINK, creature_type_id)
        target_id = require_id(ENTITY, LINK, target_id)
        require_record(CreatureType, ENTITY, LINK, creature_type_id)
        ensure_reference(target_model, ENTITY, LINK, target_field, target_id)
        target_column = getattr(join_model, target_field)
        existing = db.session.scalars(
            select(join_model.id).where(join_model.creature_type_id == creature_type_id, target_column == target_id)
        ).first()
        if existing is None:
            db.session.add(join_model(creature_type_id=creature_type_id, **{target_field: target_id}))
    if existing is None:
        log.info(event="creature_type_linked", id=creature_type_id, **{target_field: target_id})
    return get_creature_type(creature_type_id)


def _unlink(join_model, target_field: str, creature_type_id, target_id):
    with atomic(ENTITY, UNLINK):
        creature_type_id = require_id(ENTITY, UNLINK, creature_type_id)
        target_id = require_id(ENTITY, UNLINK, target_id)
        require_record(CreatureType, ENTITY, UNLINK, creature_type_id)
        removed = delete_where(
            join_model, join_model.creature_type_id == creature_type_id, getattr(join_model, target_field) == target_id
        )
    log.info(event="creature_type_unlinked", id=creature_type_id, removed=removed, **{target_field: target_id})
    return get_creature_type(creature_type_id)


def link_weapon(creature_type_id, weapon_id):
    """Idempotent: linking an already linked weapon is a no-op."""
    return _link(CreatureTypeWeapon, Weapon, "weapon_id", creature_type_id, weapon_id)


def unlink_weapon(creature_type_id, weapon_id):
    return _unlink(CreatureTypeWeapon, "weapon_id", creature_type_id, weapon_id)


def link_spell(creature_type_id, spell_id):
    """Idempotent: linking an already linked spell is a no-op."""
    return _link(CreatureTypeSpell, Spell, "spell_id", creature_type_id, spell_id)


def unlink_spell(creature_type_id, spell_id):
    return _unlink(CreatureTypeSpell, "spell_id", creature_type_id, spell_id)


__all__ = [
    "get_creature_type",
    "create_creature_type",
    "update_creature_type",
    "delete_creature_type",
    "clone_creature_type",
    "search_creature_types",
    "link_weapon",
    "unlink_weapon",
    "link_spell",
    "unlink_spell",
]
