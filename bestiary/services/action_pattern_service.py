"""Action pattern operations.

Patterns belong to one creature type for life (``creature_type_id`` is not
updateable). A cloned pattern is appended after its siblings and carries
copies of its actions.
"""

from __future__ import annotations

from bestiary import db
from bestiary.logging_utils import get_logger
from bestiary.models import Action, ActionPattern, CreatureType, Spell, Weapon
from bestiary.models.base import IDENTITY_COLUMNS
from bestiary.schemas import ACTION_PATTERN_SCHEMA
from bestiary.services.helpers import (
    CLONE,
    CREATE,
    DELETE,
    UPDATE,
    apply_field_rules,
    atomic,
    delete_where,
    ensure_reference,
    next_in_sequence,
    parse_id,
    prepare_create,
    prepare_update,
    require_id,
    require_record,
    search_records,
)
from bestiary.validation import FieldValidators, current_validators

log = get_logger("bestiary.action_patterns")
ENTITY = ACTION_PATTERN_SCHEMA.entity


def _field_rules(v: FieldValidators):
    return {
        "creature_type_id": v.positive,
        "priority": v.non_negative,
    }


def get_action_pattern(action_pattern_id):
    action_pattern_id = parse_id(action_pattern_id)
    if action_pattern_id is None:
        return None
    return ActionPattern.get_with_actions(action_pattern_id)


def create_action_pattern(data):
    with atomic(ENTITY, CREATE):
        values = prepare_create(ActionPattern, ACTION_PATTERN_SCHEMA, data)
        apply_field_rules(ENTITY, CREATE, values, _field_rules(current_validators()))
        ensure_reference(CreatureType, ENTITY, CREATE, "creature_type_id", values["creature_type_id"])
        pattern = ActionPattern(**values)
        db.session.add(pattern)
        db.session.flush()
        pattern_id = pattern.id
    log.info(event="action_pattern_created", id=pattern_id, creature_type_id=values["creature_type_id"])
    return get_action_pattern(pattern_id)


def update_action_pattern(action_pattern_id, data):
    with atomic(ENTITY, UPDATE):
        pattern, changes = prepare_update(ActionPattern, ACTION_PATTERN_SCHEMA, action_pattern_id, data)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(current_validators()))
        for key, value in changes.items():
            setattr(pattern, key, value)
        pattern_id = pattern.id
    log.info(event="action_pattern_updated", id=pattern_id, fields=",".join(changes))
    return get_action_pattern(pattern_id)


def delete_action_pattern(action_pattern_id) -> bool:
    with atomic(ENTITY, DELETE):
        action_pattern_id = require_id(ENTITY, DELETE, action_pattern_id)
        require_record(ActionPattern, ENTITY, DELETE, action_pattern_id)
        actions = delete_where(Action, Action.action_pattern_id == action_pattern_id)
        delete_where(ActionPattern, ActionPattern.id == action_pattern_id)
    log.info(event="action_pattern_deleted", id=action_pattern_id, actions=actions)
    return True


def clone_action_pattern(action_pattern_id):
    with atomic(ENTITY, CLONE):
        action_pattern_id = require_id(ENTITY, CLONE, action_pattern_id)
        original = require_record(ActionPattern, ENTITY, CLONE, action_pattern_id)
        values = original.column_values()
        values["priority"] = next_in_sequence(
            ActionPattern.priority, ActionPattern.creature_type_id, original.creature_type_id
        )
        clone = ActionPattern(**values)
        db.session.add(clone)
        db.session.flush()
        for action in original.actions:
            copied = action.column_values(exclude=IDENTITY_COLUMNS + ("action_pattern_id",))
            ensure_reference(Weapon, ENTITY, CLONE, "weapon_id", copied.get("weapon_id"))
            ensure_reference(Spell, ENTITY, CLONE, "spell_id", copied.get("spell_id"))
            db.session.add(Action(action_pattern_id=clone.id, **copied))
        db.session.flush()
        db.session.refresh(original)
        clone_id = clone.id
    log.info(event="action_pattern_cloned", id=clone_id, source_id=action_pattern_id, priority=values["priority"])
    return get_action_pattern(clone_id)


def search_action_patterns(**filters):
    return search_records(ActionPattern, ACTION_PATTERN_SCHEMA, filters)


__all__ = [
    "get_action_pattern",
    "create_action_pattern",
    "update_action_pattern",
    "delete_action_pattern",
    "clone_action_pattern",
    "search_action_patterns",
]
