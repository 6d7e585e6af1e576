"""Static per-entity field tables.

Each entity lists its accepted input fields with ``(required, searchable,
updateable)`` flags. The services derive everything else from these tables:

* ``allowed_params``    every key; anything else is stripped from input
* ``required_params``   keys that must be present on create
* ``updateable_params`` keys an update may change
* ``searchable_params`` keys usable as search filters

Declaration order matters: missing-field errors list keys in this order.
Identity and parent foreign keys are never updateable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, NamedTuple, Tuple


class FieldOpts(NamedTuple):
    required: bool
    searchable: bool
    updateable: bool


@dataclass(frozen=True)
class EntitySchema:
    entity: str
    fields: Mapping[str, FieldOpts]
    unique: Tuple[str, ...] = ()

    @property
    def allowed_params(self) -> Tuple[str, ...]:
        return tuple(self.fields)

    @property
    def required_params(self) -> Tuple[str, ...]:
        return tuple(k for k, o in self.fields.items() if o.required)

    @property
    def updateable_params(self) -> Tuple[str, ...]:
        return tuple(k for k, o in self.fields.items() if o.updateable)

    @property
    def searchable_params(self) -> Tuple[str, ...]:
        return tuple(k for k, o in self.fields.items() if o.searchable)


# required, searchable, updateable
REQUIRED = FieldOpts(True, True, True)
OPTIONAL = FieldOpts(False, True, True)
OPTIONAL_BLOB = FieldOpts(False, False, True)
PARENT_KEY = FieldOpts(True, True, False)

WEAPON_SCHEMA = EntitySchema(
    "Weapon",
    {
        "name": REQUIRED,
        "damages": FieldOpts(True, False, True),
        "properties": OPTIONAL_BLOB,
        "normal_range": OPTIONAL,
        "long_range": OPTIONAL,
        "attack_shape": OPTIONAL,
        "save": OPTIONAL,
        "save_type": OPTIONAL,
        "save_still_half": OPTIONAL,
    },
    unique=("name",),
)

ARMOR_SCHEMA = EntitySchema(
    "Armor",
    {
        "name": REQUIRED,
        "type": REQUIRED,
        "base_ac": REQUIRED,
        "disadvantage": OPTIONAL,
    },
    unique=("name",),
)

SPELL_SCHEMA = EntitySchema(
    "Spell",
    {
        "name": REQUIRED,
        "level": REQUIRED,
        "school": REQUIRED,
        "casting_time": OPTIONAL,
        "range": OPTIONAL,
        "components": OPTIONAL,
        "duration": OPTIONAL,
        "save_type": OPTIONAL,
        "save_still_half": OPTIONAL,
        "description": OPTIONAL_BLOB,
        "damages": OPTIONAL_BLOB,
    },
    unique=("name",),
)

CREATURE_TYPE_SCHEMA = EntitySchema(
    "CreatureType",
    {
        "name": REQUIRED,
        "size": OPTIONAL,
        "type": OPTIONAL_BLOB,
        "tags": OPTIONAL_BLOB,
        "alignment": OPTIONAL_BLOB,
        "armor_id": OPTIONAL,
        "has_shield": OPTIONAL,
        "hit_die": REQUIRED,
        "num_dice": REQUIRED,
        "max_hp": REQUIRED,
        "speed": OPTIONAL,
        "fly_speed": OPTIONAL,
        "swim_speed": OPTIONAL,
        "climb_speed": OPTIONAL,
        "burrow_speed": OPTIONAL,
        "hover": OPTIONAL,
        "str": OPTIONAL,
        "dex": OPTIONAL,
        "con": OPTIONAL,
        "int": OPTIONAL,
        "wis": OPTIONAL,
        "cha": OPTIONAL,
        "saving_throws": OPTIONAL_BLOB,
        "skills": OPTIONAL_BLOB,
        "resistances": OPTIONAL_BLOB,
        "senses": OPTIONAL_BLOB,
        "passive_perception": OPTIONAL,
        "languages": OPTIONAL_BLOB,
        "challenge_rating": OPTIONAL,
        "proficiency_bonus": OPTIONAL,
        "legendary_resistances": OPTIONAL,
        "special_abilities": OPTIONAL_BLOB,
        "spellcasting": OPTIONAL,
        "spell_slots": OPTIONAL_BLOB,
        "innate_spells": OPTIONAL_BLOB,
        "legendary_actions": OPTIONAL_BLOB,
        "reactions": OPTIONAL_BLOB,
        "lair_actions": OPTIONAL_BLOB,
        "regional_effects": OPTIONAL_BLOB,
    },
    unique=("name",),
)

SLOT_FIELDS = (
    "slots_first",
    "slots_second",
    "slots_third",
    "slots_fourth",
    "slots_fifth",
    "slots_sixth",
    "slots_seventh",
    "slots_eighth",
    "slots_ninth",
)

CREATURE_SCHEMA = EntitySchema(
    "Creature",
    {
        "name": REQUIRED,
        "creature_type_id": PARENT_KEY,
        "max_hp": OPTIONAL,
        "current_hp": OPTIONAL,
        **{slot: OPTIONAL_BLOB for slot in SLOT_FIELDS},
        "current_legendary_resistances": OPTIONAL,
    },
    unique=("name",),
)

ACTION_PATTERN_SCHEMA = EntitySchema(
    "ActionPattern",
    {
        "creature_type_id": PARENT_KEY,
        "priority": OPTIONAL,
    },
)

ACTION_SCHEMA = EntitySchema(
    "Action",
    {
        "action_pattern_id": PARENT_KEY,
        "index": REQUIRED,
        "weapon_id": OPTIONAL,
        "times": OPTIONAL,
        "spell_id": OPTIONAL,
        "restrictions": OPTIONAL_BLOB,
        "other": OPTIONAL_BLOB,
    },
)

USER_SCHEMA = EntitySchema(
    "User",
    {
        "email": REQUIRED,
        "password": FieldOpts(True, False, False),
    },
    unique=("email",),
)

SCHEMAS = {
    schema.entity: schema
    for schema in (
        WEAPON_SCHEMA,
        ARMOR_SCHEMA,
        SPELL_SCHEMA,
        CREATURE_TYPE_SCHEMA,
        CREATURE_SCHEMA,
        ACTION_PATTERN_SCHEMA,
        ACTION_SCHEMA,
        USER_SCHEMA,
    )
}
