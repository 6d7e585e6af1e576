"""Creature (stamped instance) operations.

A creature starts as a copy of its creature type's counters: anything not
supplied on create is taken from the type (max_hp, then current_hp from
max_hp, spell slots per level, legendary resistances).
"""

from __future__ import annotations

from bestiary import db
from bestiary.errors import ValidationError
from bestiary.logging_utils import get_logger
from bestiary.models import Creature, CreatureType
from bestiary.schemas import CREATURE_SCHEMA, SLOT_FIELDS
from bestiary.services.helpers import (
    CLONE,
    CREATE,
    DELETE,
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
from bestiary.validation import FieldValidators, current_validators

log = get_logger("bestiary.creatures")
ENTITY = CREATURE_SCHEMA.entity


def _field_rules(v: FieldValidators):
    rules = {
        "name": v.name,
        "creature_type_id": v.positive,
        "max_hp": v.positive,
        "current_hp": v.non_negative,
        "current_legendary_resistances": v.legendary_resistances,
    }
    rules.update({slot: v.slot_count for slot in SLOT_FIELDS})
    return rules


def _stamp_from_type(values: dict, creature_type: CreatureType):
    """Fill unset counters from the creature type."""
    values.setdefault("max_hp", creature_type.max_hp)
    values.setdefault("current_hp", values["max_hp"])
    slots = creature_type.spell_slots or [0] * (len(SLOT_FIELDS) + 1)
    for level, field in enumerate(SLOT_FIELDS, start=1):
        values.setdefault(field, slots[level])
    values.setdefault("current_legendary_resistances", creature_type.legendary_resistances)


def _check_hit_points(record, operation: str):
    with field_errors(ENTITY, operation):
        if record["current_hp"] > record["max_hp"]:
            raise ValidationError("current_hp", "must not exceed max_hp", "range")


def get_creature(creature_id):
    creature_id = parse_id(creature_id)
    if creature_id is None:
        return None
    return Creature.get_with_creature_type(creature_id)


def create_creature(data):
    with atomic(ENTITY, CREATE):
        values = prepare_create(Creature, CREATURE_SCHEMA, data)
        apply_field_rules(ENTITY, CREATE, values, _field_rules(current_validators()))
        creature_type = ensure_reference(
            CreatureType, ENTITY, CREATE, "creature_type_id", values["creature_type_id"]
        )
        _stamp_from_type(values, creature_type)
        _check_hit_points(values, CREATE)
        ensure_unique(Creature, CREATURE_SCHEMA, CREATE, values)
        creature = Creature(**values)
        db.session.add(creature)
        db.session.flush()
        creature_id = creature.id
    log.info(event="creature_created", id=creature_id, name=values["name"], creature_type_id=values["creature_type_id"])
    return get_creature(creature_id)


def update_creature(creature_id, data):
    with atomic(ENTITY, UPDATE):
        creature, changes = prepare_update(Creature, CREATURE_SCHEMA, creature_id, data)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(current_validators()))
        _check_hit_points(merged_record(creature, changes), UPDATE)
        ensure_unique(Creature, CREATURE_SCHEMA, UPDATE, changes, exclude_id=creature.id)
        for key, value in changes.items():
            setattr(creature, key, value)
        creature_id = creature.id
    log.info(event="creature_updated", id=creature_id, fields=",".join(changes))
    return get_creature(creature_id)


def delete_creature(creature_id) -> bool:
    with atomic(ENTITY, DELETE):
        creature_id = require_id(ENTITY, DELETE, creature_id)
        require_record(Creature, ENTITY, DELETE, creature_id)
        delete_where(Creature, Creature.id == creature_id)
    log.info(event="creature_deleted", id=creature_id)
    return True


def clone_creature(creature_id):
    with atomic(ENTITY, CLONE):
        creature_id = require_id(ENTITY, CLONE, creature_id)
        original = require_record(Creature, ENTITY, CLONE, creature_id)
        values = original.column_values()
        values["name"] = clone_name(Creature, ENTITY, original.name)
        clone = Creature(**values)
        db.session.add(clone)
        db.session.flush()
        db.session.refresh(original)
        clone_id = clone.id
    log.info(event="creature_cloned", id=clone_id, source_id=creature_id, name=values["name"])
    return get_creature(clone_id)


def search_creatures(**filters):
    return search_records(Creature, CREATURE_SCHEMA, filters)


__all__ = [
    "get_creature",
    "create_creature",
    "update_creature",
    "delete_creature",
    "clone_creature",
    "search_creatures",
]
