"""Weapon catalog operations.

Weapons are shared between creature types (through ``creature_type_weapon``
join rows) and referenced by actions. Deleting a weapon removes its join rows
only; actions keep their ``weapon_id``.
"""

from __future__ import annotations

from functools import partial

from bestiary import db
from bestiary.logging_utils import get_logger
from bestiary.models import CreatureTypeWeapon, Weapon
from bestiary.schemas import WEAPON_SCHEMA
from bestiary.services.helpers import (
    CREATE,
    DELETE,
    UPDATE,
    apply_field_rules,
    atomic,
    delete_where,
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
from bestiary.validation import ATTACK_SHAPES, FieldValidators, current_validators

log = get_logger("bestiary.weapons")
ENTITY = WEAPON_SCHEMA.entity


def _field_rules(v: FieldValidators):
    return {
        "name": v.name,
        "damages": v.damage_array,
        "properties": v.alphabetical_string_array,
        "normal_range": v.distance,
        "long_range": v.distance,
        "attack_shape": partial(v.choice, options=ATTACK_SHAPES),
        "save": v.save_dc,
        "save_type": v.ability,
        "save_still_half": v.boolean,
    }


def _check_record(v: FieldValidators, record, operation: str):
    with field_errors(ENTITY, operation):
        v.range_pair(record.get("normal_range"), record.get("long_range"))


def get_weapon(weapon_id):
    weapon_id = parse_id(weapon_id)
    if weapon_id is None:
        return None
    return db.session.get(Weapon, weapon_id)


def create_weapon(data):
    v = current_validators()
    with atomic(ENTITY, CREATE):
        values = prepare_create(Weapon, WEAPON_SCHEMA, data)
        apply_field_rules(ENTITY, CREATE, values, _field_rules(v))
        _check_record(v, values, CREATE)
        ensure_unique(Weapon, WEAPON_SCHEMA, CREATE, values)
        weapon = Weapon(**values)
        db.session.add(weapon)
        db.session.flush()
        weapon_id = weapon.id
    log.info(event="weapon_created", id=weapon_id, name=values["name"])
    return get_weapon(weapon_id)


def update_weapon(weapon_id, data):
    v = current_validators()
    with atomic(ENTITY, UPDATE):
        weapon, changes = prepare_update(Weapon, WEAPON_SCHEMA, weapon_id, data)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(v))
        _check_record(v, merged_record(weapon, changes), UPDATE)
        ensure_unique(Weapon, WEAPON_SCHEMA, UPDATE, changes, exclude_id=weapon.id)
        for key, value in changes.items():
            setattr(weapon, key, value)
        weapon_id = weapon.id
    log.info(event="weapon_updated", id=weapon_id, fields=",".join(changes))
    return get_weapon(weapon_id)


def delete_weapon(weapon_id) -> bool:
    with atomic(ENTITY, DELETE):
        weapon_id = require_id(ENTITY, DELETE, weapon_id)
        require_record(Weapon, ENTITY, DELETE, weapon_id)
        links = delete_where(CreatureTypeWeapon, CreatureTypeWeapon.weapon_id == weapon_id)
        delete_where(Weapon, Weapon.id == weapon_id)
    log.info(event="weapon_deleted", id=weapon_id, links=links)
    return True


def search_weapons(**filters):
    return search_records(Weapon, WEAPON_SCHEMA, filters)


__all__ = ["get_weapon", "create_weapon", "update_weapon", "delete_weapon", "search_weapons"]
