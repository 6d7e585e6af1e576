"""Spell catalog operations."""

from __future__ import annotations

from functools import partial

from bestiary import db
from bestiary.logging_utils import get_logger
from bestiary.models import CreatureTypeSpell, Spell
from bestiary.schemas import SPELL_SCHEMA
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
from bestiary.validation import SCHOOLS, FieldValidators, current_validators

log = get_logger("bestiary.spells")
ENTITY = SPELL_SCHEMA.entity


def _field_rules(v: FieldValidators):
    return {
        "name": v.name,
        "level": v.spell_level,
        "school": partial(v.choice, options=SCHOOLS),
        "casting_time": v.information,
        "range": v.distance,
        "components": v.components,
        "duration": v.information,
        "save_type": v.ability,
        "save_still_half": v.boolean,
        "description": v.long_description,
        "damages": v.spell_damages,
    }


def get_spell(spell_id):
    spell_id = parse_id(spell_id)
    if spell_id is None:
        return None
    return db.session.get(Spell, spell_id)


def create_spell(data):
    with atomic(ENTITY, CREATE):
        values = prepare_create(Spell, SPELL_SCHEMA, data)
        apply_field_rules(ENTITY, CREATE, values, _field_rules(current_validators()))
        ensure_unique(Spell, SPELL_SCHEMA, CREATE, values)
        spell = Spell(**values)
        db.session.add(spell)
        db.session.flush()
        spell_id = spell.id
    log.info(event="spell_created", id=spell_id, name=values["name"])
    return get_spell(spell_id)


def update_spell(spell_id, data):
    with atomic(ENTITY, UPDATE):
        spell, changes = prepare_update(Spell, SPELL_SCHEMA, spell_id, data)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(current_validators()))
        ensure_unique(Spell, SPELL_SCHEMA, UPDATE, changes, exclude_id=spell.id)
        for key, value in changes.items():
            setattr(spell, key, value)
        spell_id = spell.id
    log.info(event="spell_updated", id=spell_id, fields=",".join(changes))
    return get_spell(spell_id)


def delete_spell(spell_id) -> bool:
    """Remove the spell and its creature type links; actions keep their spell_id."""
    with atomic(ENTITY, DELETE):
        spell_id = require_id(ENTITY, DELETE, spell_id)
        require_record(Spell, ENTITY, DELETE, spell_id)
        links = delete_where(CreatureTypeSpell, CreatureTypeSpell.spell_id == spell_id)
        delete_where(Spell, Spell.id == spell_id)
    log.info(event="spell_deleted", id=spell_id, links=links)
    return True


def clone_spell(spell_id):
    with atomic(ENTITY, CLONE):
        spell_id = require_id(ENTITY, CLONE, spell_id)
        original = require_record(Spell, ENTITY, CLONE, spell_id)
        values = original.column_values()
        values["name"] = clone_name(Spell, ENTITY, original.name)
        clone = Spell(**values)
        db.session.add(clone)
        db.session.flush()
        db.session.refresh(original)
        clone_id = clone.id
    log.info(event="spell_cloned", id=clone_id, source_id=spell_id, name=values["name"])
    return get_spell(clone_id)


def search_spells(**filters):
    return search_records(Spell, SPELL_SCHEMA, filters)


__all__ = ["get_spell", "create_spell", "update_spell", "delete_spell", "clone_spell", "search_spells"]
