"""Default catalog content.

``seed_defaults()`` inserts the standard armors, a handful of common weapons
and cantrips, and a sample ``goblin`` creature type with one action pattern
(a single scimitar attack). Everything goes through the services, so seed
rows obey the same validation as API input. Rows whose name already exists
are left alone; running the seed twice is a no-op.
"""

from __future__ import annotations

from typing import Dict

from bestiary.logging_utils import get_logger
from bestiary.models import Armor, CreatureType, Spell, Weapon
from bestiary.services import (
    action_pattern_service,
    action_service,
    armor_service,
    creature_type_service,
    spell_service,
    weapon_service,
)

log = get_logger("bestiary.seed")

_FRACTIONAL_CR = {"1/8": -3, "1/4": -2, "1/2": -1}


def normalized_cr(rating: str) -> int:
    """Challenge ratings below 1 are stored as negative integers ("1/4" -> -2)."""
    if rating in _FRACTIONAL_CR:
        return _FRACTIONAL_CR[rating]
    return int(rating)


def _damage(count: int, die: int, damage_type: str, bonus: int = 0, effect: str = "") -> dict:
    return {"count": count, "dieSize": die, "bonus": bonus, "damageType": damage_type, "effect": effect}


DEFAULT_ARMORS = [
    {"name": "Padded", "type": "light", "base_ac": 11, "disadvantage": True},
    {"name": "Leather", "type": "light", "base_ac": 11},
    {"name": "Studded Leather", "type": "light", "base_ac": 12},
    {"name": "Hide", "type": "medium", "base_ac": 12},
    {"name": "Chain Shirt", "type": "medium", "base_ac": 13},
    {"name": "Scale Mail", "type": "medium", "base_ac": 14, "disadvantage": True},
    {"name": "Breastplate", "type": "medium", "base_ac": 14},
    {"name": "Half Plate", "type": "medium", "base_ac": 15, "disadvantage": True},
    {"name": "Ring Mail", "type": "heavy", "base_ac": 14, "disadvantage": True},
    {"name": "Chain Mail", "type": "heavy", "base_ac": 16, "disadvantage": True},
    {"name": "Splint", "type": "heavy", "base_ac": 17, "disadvantage": True},
    {"name": "Plate", "type": "heavy", "base_ac": 18, "disadvantage": True},
]

DEFAULT_WEAPONS = [
    {"name": "club", "properties": ["light"], "damages": [_damage(1, 4, "bludgeoning")]},
    {
        "name": "dagger",
        "properties": ["finesse", "light", "thrown"],
        "normal_range": 20,
        "long_range": 60,
        "damages": [_damage(1, 4, "piercing")],
    },
    {"name": "scimitar", "properties": ["finesse", "light"], "damages": [_damage(1, 6, "slashing")]},
    {"name": "shortsword", "properties": ["finesse", "light"], "damages": [_damage(1, 6, "piercing")]},
    {
        "name": "shortbow",
        "properties": ["ammunition", "two-handed"],
        "normal_range": 80,
        "long_range": 320,
        "damages": [_damage(1, 6, "piercing")],
    },
    {
        "name": "handaxe",
        "properties": ["light", "thrown"],
        "normal_range": 20,
        "long_range": 60,
        "damages": [_damage(1, 6, "slashing")],
    },
    {
        "name": "javelin",
        "properties": ["thrown"],
        "normal_range": 30,
        "long_range": 120,
        "damages": [_damage(1, 6, "piercing")],
    },
    {"name": "longsword", "properties": ["versatile"], "damages": [_damage(1, 8, "slashing")]},
    {"name": "greataxe", "properties": ["heavy", "two-handed"], "damages": [_damage(1, 12, "slashing")]},
    {
        "name": "light crossbow",
        "properties": ["ammunition", "loading", "two-handed"],
        "normal_range": 80,
        "long_range": 320,
        "damages": [_damage(1, 8, "piercing")],
    },
]


def _cantrip_tiers(die: int, damage_type: str):
    # one extra die at caster levels 5, 11 and 17
    return [
        [{"caster": caster, "slot": 0, "effect": "", "damage": _damage(count, die, damage_type)}]
        for count, caster in enumerate((0, 5, 11, 17), start=1)
    ]


def _slot_tiers(base_count: int, base_slot: int, die: int, damage_type: str):
    # one extra die per slot above the spell's level
    return [
        [{"caster": 0, "slot": slot, "effect": "", "damage": _damage(base_count + slot - base_slot, die, damage_type)}]
        for slot in range(base_slot, 10)
    ]


DEFAULT_SPELLS = [
    {
        "name": "Acid Splash",
        "level": 0,
        "school": "conjuration",
        "casting_time": "1 action",
        "range": 60,
        "components": "V, S",
        "duration": "instantaneous",
        "save_type": "dex",
        "save_still_half": False,
        "description": (
            "You hurl a bubble of acid. Choose one creature you can see within range, or choose two "
            "creatures you can see within range that are within 5 feet of each other. A target must "
            "succeed on a Dexterity saving throw or take 1d6 acid damage.\n\nAt Higher Levels. This "
            "spell's damage increases by 1d6 when you reach 5th level (2d6), 11th level (3d6), and "
            "17th level (4d6)."
        ),
        "damages": _cantrip_tiers(6, "acid"),
    },
    {
        "name": "Fire Bolt",
        "level": 0,
        "school": "evocation",
        "casting_time": "1 action",
        "range": 120,
        "components": "V, S",
        "duration": "instantaneous",
        "description": (
            "You hurl a mote of fire at a creature or object within range. Make a ranged spell attack "
            "against the target. On a hit, the target takes 1d10 fire damage. A flammable object hit by "
            "this spell ignites if it isn't being worn or carried."
        ),
        "damages": _cantrip_tiers(10, "fire"),
    },
    {
        "name": "Burning Hands",
        "level": 1,
        "school": "evocation",
        "casting_time": "1 action",
        "range": 15,
        "components": "V, S",
        "duration": "instantaneous",
        "save_type": "dex",
        "save_still_half": True,
        "description": (
            "As you hold your hands with thumbs touching and fingers spread, a thin sheet of flames "
            "shoots forth from your outstretched fingertips. Each creature in a 15-foot cone must make "
            "a Dexterity saving throw. A creature takes 3d6 fire damage on a failed save, or half as "
            "much damage on a successful one."
        ),
        "damages": _slot_tiers(3, 1, 6, "fire"),
    },
]

GOBLIN = {
    "name": "goblin",
    "size": "small",
    "type": ["humanoid"],
    "tags": ["goblinoid"],
    "alignment": ["neutral", "evil"],
    "has_shield": True,
    "hit_die": 6,
    "num_dice": 2,
    "max_hp": 7,
    "speed": 30,
    "str": 8,
    "dex": 14,
    "con": 10,
    "int": 10,
    "wis": 8,
    "cha": 8,
    "skills": [{"skill": "stealth", "value": 6}],
    "senses": ["darkvision 60ft"],
    "passive_perception": 9,
    "languages": ["common", "goblin"],
    "challenge_rating": normalized_cr("1/4"),
}


def _seed_named(model, create, rows) -> int:
    created = 0
    for row in rows:
        if model.get_by_name(row["name"]) is None:
            create(dict(row))
            created += 1
    return created


def _seed_goblin() -> int:
    if CreatureType.get_by_name(GOBLIN["name"]) is not None:
        return 0
    leather = Armor.get_by_name("Leather")
    goblin = creature_type_service.create_creature_type(dict(GOBLIN, armor_id=leather.id if leather else None))
    goblin_id = goblin.id
    for weapon_name in ("scimitar", "shortbow"):
        weapon = Weapon.get_by_name(weapon_name)
        if weapon is not None:
            creature_type_service.link_weapon(goblin_id, weapon.id)
    scimitar = Weapon.get_by_name("scimitar")
    if scimitar is not None:
        pattern = action_pattern_service.create_action_pattern({"creature_type_id": goblin_id, "priority": 0})
        action_service.create_action(
            {"action_pattern_id": pattern.id, "index": 0, "weapon_id": scimitar.id, "times": 1}
        )
    return 1


def seed_defaults() -> Dict[str, int]:
    """Insert missing default rows; returns the number created per kind."""
    counts = {
        "armors": _seed_named(Armor, armor_service.create_armor, DEFAULT_ARMORS),
        "weapons": _seed_named(Weapon, weapon_service.create_weapon, DEFAULT_WEAPONS),
        "spells": _seed_named(Spell, spell_service.create_spell, DEFAULT_SPELLS),
        "creature_types": _seed_goblin(),
    }
    log.info(event="seed_complete", **counts)
    return counts


__all__ = ["normalized_cr", "seed_defaults", "DEFAULT_ARMORS", "DEFAULT_WEAPONS", "DEFAULT_SPELLS", "GOBLIN"]
