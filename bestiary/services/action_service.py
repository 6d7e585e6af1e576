"""Action operations.

An action is exactly one of a weapon attack (``weapon_id``), a spell
(``spell_id``) or free text (``other``). The rule is checked on the merged
record, so an update that sets ``spell_id`` must also clear ``weapon_id``.
Empty ``other`` / ``restrictions`` strings are stored as null.
"""

from __future__ import annotations

from functools import partial

from bestiary import db
from bestiary.errors import InvalidFieldError
from bestiary.logging_utils import get_logger
from bestiary.models import Action, ActionPattern, Spell, Weapon
from bestiary.schemas import ACTION_SCHEMA
from bestiary.services.helpers import (
    CLONE,
    CREATE,
    DELETE,
    UPDATE,
    apply_field_rules,
    atomic,
    delete_where,
    ensure_reference,
    merged_record,
    next_in_sequence,
    parse_id,
    prepare_create,
    prepare_update,
    require_id,
    require_record,
    search_records,
)
from bestiary.validation import FieldValidators, current_validators

log = get_logger("bestiary.actions")
ENTITY = ACTION_SCHEMA.entity

MAX_TIMES = 9
_KINDS = ("weapon_id", "spell_id", "other")
_BLANK_AS_NULL = ("other", "restrictions")


def _field_rules(v: FieldValidators):
    return {
        "action_pattern_id": v.positive,
        "index": v.non_negative,
        "weapon_id": v.positive,
        "times": partial(v.integer, minimum=1, maximum=MAX_TIMES),
        "spell_id": v.positive,
        "restrictions": v.description,
        "other": v.description,
    }


def _blank_to_null(values: dict) -> dict:
    for key in _BLANK_AS_NULL:
        if isinstance(values.get(key), str) and not values[key].strip():
            values[key] = None
    return values


def _check_kind(record, operation: str):
    if sum(record.get(key) is not None for key in _KINDS) != 1:
        raise InvalidFieldError(ENTITY, operation, "action must be one of weapon, spell, or other")


def _check_references(record, operation: str):
    ensure_reference(Weapon, ENTITY, operation, "weapon_id", record.get("weapon_id"))
    ensure_reference(Spell, ENTITY, operation, "spell_id", record.get("spell_id"))


def get_action(action_id):
    action_id = parse_id(action_id)
    if action_id is None:
        return None
    return Action.get_with_weapon_and_spell(action_id)


def create_action(data):
    with atomic(ENTITY, CREATE):
        values = _blank_to_null(prepare_create(Action, ACTION_SCHEMA, data))
        apply_field_rules(ENTITY, CREATE, values, _field_rules(current_validators()))
        _check_kind(values, CREATE)
        ensure_reference(ActionPattern, ENTITY, CREATE, "action_pattern_id", values["action_pattern_id"])
        _check_references(values, CREATE)
        action = Action(**values)
        db.session.add(action)
        db.session.flush()
        action_id = action.id
    log.info(event="action_created", id=action_id, action_pattern_id=values["action_pattern_id"])
    return get_action(action_id)


def update_action(action_id, data):
    with atomic(ENTITY, UPDATE):
        action, changes = prepare_update(Action, ACTION_SCHEMA, action_id, data)
        changes = _blank_to_null(changes)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(current_validators()))
        _check_kind(merged_record(action, changes), UPDATE)
        _check_references(changes, UPDATE)
        for key, value in changes.items():
            setattr(action, key, value)
        action_id = action.id
    log.info(event="action_updated", id=action_id, fields=",".join(changes))
    return get_action(action_id)


def delete_action(action_id) -> bool:
    with atomic(ENTITY, DELETE):
        action_id = require_id(ENTITY, DELETE, action_id)
        require_record(Action, ENTITY, DELETE, action_id)
        delete_where(Action, Action.id == action_id)
    log.info(event="action_deleted", id=action_id)
    return True


def clone_action(action_id):
    with atomic(ENTITY, CLONE):
        action_id = require_id(ENTITY, CLONE, action_id)
        original = require_record(Action, ENTITY, CLONE, action_id)
        values = original.column_values()
        values["index"] = next_in_sequence(Action.index, Action.action_pattern_id, original.action_pattern_id)
        _check_references(values, CLONE)
        clone = Action(**values)
        db.session.add(clone)
        db.session.flush()
        db.session.refresh(original)
        clone_id = clone.id
    log.info(event="action_cloned", id=clone_id, source_id=action_id, index=values["index"])
    return get_action(clone_id)


def search_actions(**filters):
    return search_records(Action, ACTION_SCHEMA, filters)


__all__ = ["get_action", "create_action", "update_action", "delete_action", "clone_action", "search_actions"]
