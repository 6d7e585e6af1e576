"""Armor catalog operations.

Creature types point at armor through a nullable ``armor_id``. Deleting an
armor detaches every creature type wearing it (each in its own savepoint,
so one bad row is logged and skipped instead of aborting the delete) and
then removes the armor row.
"""

from __future__ import annotations

from functools import partial

from sqlalchemy.exc import SQLAlchemyError

from bestiary import db
from bestiary.logging_utils import get_logger
from bestiary.models import Armor, CreatureType
from bestiary.schemas import ARMOR_SCHEMA
from bestiary.services.helpers import (
    CLONE,
    CREATE,
    DELETE,
    UPDATE,
    apply_field_rules,
    atomic,
    clone_name,
    delete_where,
    ensure_unique,
    parse_id,
    prepare_create,
    prepare_update,
    require_id,
    require_record,
    search_records,
)
from bestiary.validation import ARMOR_TYPES, MAX_ABILITY_SCORE, FieldValidators, current_validators

log = get_logger("bestiary.armors")
ENTITY = ARMOR_SCHEMA.entity


def _field_rules(v: FieldValidators):
    return {
        "name": v.name,
        "type": partial(v.choice, options=ARMOR_TYPES),
        "base_ac": partial(v.integer, minimum=0, maximum=MAX_ABILITY_SCORE),
        "disadvantage": v.boolean,
    }


def get_armor(armor_id):
    armor_id = parse_id(armor_id)
    if armor_id is None:
        return None
    return Armor.get_with_creature_types(armor_id)


def create_armor(data):
    with atomic(ENTITY, CREATE):
        values = prepare_create(Armor, ARMOR_SCHEMA, data)
        apply_field_rules(ENTITY, CREATE, values, _field_rules(current_validators()))
        ensure_unique(Armor, ARMOR_SCHEMA, CREATE, values)
        armor = Armor(**values)
        db.session.add(armor)
        db.session.flush()
        armor_id = armor.id
    log.info(event="armor_created", id=armor_id, name=values["name"])
    return get_armor(armor_id)


def update_armor(armor_id, data):
    with atomic(ENTITY, UPDATE):
        armor, changes = prepare_update(Armor, ARMOR_SCHEMA, armor_id, data)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(current_validators()))
        ensure_unique(Armor, ARMOR_SCHEMA, UPDATE, changes, exclude_id=armor.id)
        for key, value in changes.items():
            setattr(armor, key, value)
        armor_id = armor.id
    log.info(event="armor_updated", id=armor_id, fields=",".join(changes))
    return get_armor(armor_id)


def delete_armor(armor_id) -> bool:
    with atomic(ENTITY, DELETE):
        armor_id = require_id(ENTITY, DELETE, armor_id)
        require_record(Armor, ENTITY, DELETE, armor_id)
        detached, skipped = 0, 0
        for creature_type in CreatureType.using_armor(armor_id):
            creature_type_id = creature_type.id
            try:
                with db.session.begin_nested():
                    creature_type.armor_id = None
                detached += 1
            except SQLAlchemyError as exc:
                skipped += 1
                log.warn(
                    event="armor_detach_skipped",
                    armor_id=armor_id,
                    creature_type_id=creature_type_id,
                    error=exc.__class__.__name__,
                )
        delete_where(Armor, Armor.id == armor_id)
    log.info(event="armor_deleted", id=armor_id, detached=detached, skipped=skipped)
    return True


def clone_armor(armor_id):
    with atomic(ENTITY, CLONE):
        armor_id = require_id(ENTITY, CLONE, armor_id)
        original = require_record(Armor, ENTITY, CLONE, armor_id)
        values = original.column_values()
        values["name"] = clone_name(Armor, ENTITY, original.name)
        clone = Armor(**values)
        db.session.add(clone)
        db.session.flush()
        db.session.refresh(original)
        clone_id = clone.id
    log.info(event="armor_cloned", id=clone_id, source_id=armor_id, name=values["name"])
    return get_armor(clone_id)


def search_armors(**filters):
    return search_records(Armor, ARMOR_SCHEMA, filters)


__all__ = ["get_armor", "create_armor", "update_armor", "delete_armor", "clone_armor", "search_armors"]
