"""Field validators for the bestiary entities.

Every rule is a method on :class:`FieldValidators` with the signature
``rule(field, value)``. A rule returns ``None`` when the value is acceptable
and raises :class:`~bestiary.errors.ValidationError` naming the field and the
violated rule otherwise. ``None`` always passes (field unset); an empty or
malformed structure never does unless the rule says so.

Composite values may arrive JSON-encoded (``'["light","thrown"]'``); rules
for composite fields parse strings before checking them.

Limits (array lengths, text lengths, dice counts, die sizes) come from a
:class:`ValidationConfig` bound when the validators are built, normally from
the Flask config via :func:`current_validators`:

    v = FieldValidators(ValidationConfig(max_array_length=5))
    v.string_array("tags", ["goblinoid"])          # ok
    v.alignment("alignment", ["neutral", "evil"])  # ok
    v.spell_slots("spell_slots", [1] * 10)         # ValidationError: index 0 must be 0
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence

from flask import current_app

from .errors import ValidationError

ABILITIES = ("str", "dex", "con", "int", "wis", "cha")
SIZES = ("tiny", "small", "medium", "large", "huge", "gargantuan")
ARMOR_TYPES = ("light", "medium", "heavy", "natural")
SCHOOLS = (
    "abjuration",
    "conjuration",
    "divination",
    "enchantment",
    "evocation",
    "illusion",
    "necromancy",
    "transmutation",
)
ATTACK_SHAPES = ("cone", "cube", "cylinder", "line", "sphere")
ETHICAL_AXIS = ("chaotic", "neutral", "lawful")
MORAL_AXIS = ("evil", "neutral", "good")
SPELLCASTING_ABILITIES = ("int", "wis", "cha")
SPELL_COMPONENTS = ("V", "S", "M")
SKILLS = (
    "acrobatics",
    "animal-handling",
    "arcana",
    "athletics",
    "deception",
    "history",
    "insight",
    "intimidation",
    "investigation",
    "medicine",
    "nature",
    "perception",
    "performance",
    "persuasion",
    "religion",
    "sleight-of-hand",
    "stealth",
    "survival",
)

DAMAGE_KEYS = frozenset({"count", "dieSize", "bonus", "damageType", "effect"})
SPELL_DAMAGE_KEYS = frozenset({"caster", "damage", "effect", "slot"})
LABELED_DESCRIPTION_KEYS = frozenset({"title", "description"})
SKILL_KEYS = frozenset({"skill", "value"})
INNATE_SPELL_KEYS = frozenset({"spellId", "perDay", "restrictions"})
RESISTANCE_KEYS = frozenset({"resistant", "vulnerable", "immune"})

SPELL_SLOT_LEVELS = 10
MAX_ABILITY_SCORE = 30
MAX_SAVING_THROW = 19
MAX_SKILL_VALUE = 28
MIN_CHALLENGE_RATING = -3
MAX_CHALLENGE_RATING = 30
MAX_CASTER_LEVEL = 20
MAX_SPELL_LEVEL = 9
MAX_DAMAGE_BONUS = 3

TOKEN_RE = re.compile(r"^[a-z-]+$")
SENSE_RE = re.compile(r"^[a-z0-9 -]+$")
EMAIL_RE = re.compile(
    r"^[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$"
)
PASSWORD_RE = re.compile(r"^(?=.*?[A-Z])(?=.*?[a-z])(?=.*?[0-9])(?=.*?[#?!@$%^&*-]).{8,}$")


@dataclass(frozen=True)
class ValidationConfig:
    """Limits consulted by the validators.

    ``from_mapping`` reads ``BESTIARY_<FIELD>`` keys (e.g.
    ``BESTIARY_MAX_ARRAY_LENGTH``) and ignores anything else.
    """

    max_array_length: int = 10
    min_token_length: int = 3
    min_information: int = 4
    max_information: int = 50
    min_description: int = 8
    max_description: int = 500
    max_long_description: int = 4000
    max_dice: int = 20
    max_hit_dice: int = 50
    max_legendary_resistances: int = 4
    max_spell_slots: int = 10
    max_per_day: int = 3
    valid_die_sizes: Sequence[int] = (0, 2, 4, 6, 8, 10, 12)
    valid_hit_die_sizes: Sequence[int] = (4, 6, 8, 10, 12)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ValidationConfig":
        values = {}
        for f in fields(cls):
            key = f"BESTIARY_{f.name.upper()}"
            if mapping.get(key) is not None:
                values[f.name] = tuple(mapping[key]) if f.name.startswith("valid_") else int(mapping[key])
        return cls(**values)


def ability_modifier(score: int) -> int:
    return (score - 10) // 2


def max_hit_points(num_dice: int, hit_die: int, con: int) -> int:
    return num_dice * (hit_die + ability_modifier(con))


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class FieldValidators:
    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()

    # --- helpers ---------------------------------------------------------
    @staticmethod
    def _load(field: str, value):
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError as exc:
                raise ValidationError(field, "must be valid JSON", "json") from exc
        return value

    def _array(self, field: str, value, allow_empty: bool = False) -> list:
        value = self._load(field, value)
        if not isinstance(value, list):
            raise ValidationError(field, "must be an array", "type")
        if not value and not allow_empty:
            raise ValidationError(field, "should not be length 0", "empty")
        if len(value) > self.config.max_array_length:
            raise ValidationError(field, "maximum array length exceeded", "max_len")
        return value

    # --- scalars ---------------------------------------------------------
    def integer(self, field: str, value, minimum: Optional[int] = None, maximum: Optional[int] = None):
        if value is None:
            return
        if not _is_int(value):
            raise ValidationError(field, "must be an integer", "type")
        if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
            low = "-inf" if minimum is None else minimum
            high = "inf" if maximum is None else maximum
            raise ValidationError(field, f"must be between {low} and {high}", "range")

    def non_negative(self, field: str, value):
        self.integer(field, value, minimum=0)

    def positive(self, field: str, value):
        self.integer(field, value, minimum=1)

    def boolean(self, field: str, value):
        if value is not None and not isinstance(value, bool):
            raise ValidationError(field, "must be a boolean", "type")

    def choice(self, field: str, value, options: Sequence[str]):
        if value is None:
            return
        if value not in options:
            raise ValidationError(field, f"must be one of {', '.join(options)}", "choice")

    def text(self, field: str, value, min_len: int, max_len: int):
        if value is None:
            return
        if not isinstance(value, str):
            raise ValidationError(field, "must be a string", "type")
        if len(value) < min_len or len(value) > max_len:
            raise ValidationError(field, f"must be between {min_len} and {max_len} characters", "length")

    def name(self, field: str, value):
        if isinstance(value, str) and not value.strip():
            raise ValidationError(field, "must not be blank", "empty")
        self.text(field, value, 1, self.config.max_information)

    def information(self, field: str, value):
        self.text(field, value, self.config.min_information, self.config.max_information)

    def description(self, field: str, value):
        self.text(field, value, self.config.min_description, self.config.max_description)

    def long_description(self, field: str, value):
        self.text(field, value, self.config.min_description, self.config.max_long_description)

    def distance(self, field: str, value):
        """Ranges and speeds: non-negative multiples of 5 feet."""
        self.non_negative(field, value)
        if value is not None and value % 5:
            raise ValidationError(field, "must be a multiple of 5", "step")

    def range_pair(self, normal_range, long_range):
        if normal_range and long_range and long_range < normal_range:
            raise ValidationError("long_range", "must not be shorter than normal_range", "range")

    def ability(self, field: str, value):
        self.choice(field, value, ABILITIES)

    def ability_score(self, field: str, value):
        self.integer(field, value, 0, MAX_ABILITY_SCORE)

    def save_dc(self, field: str, value):
        """0 means no save; otherwise a DC between 10 and 30."""
        self.integer(field, value, 0, MAX_ABILITY_SCORE)
        if value and value < 10:
            raise ValidationError(field, "must be 0 or between 10 and 30", "range")

    def challenge_rating(self, field: str, value):
        self.integer(field, value, MIN_CHALLENGE_RATING, MAX_CHALLENGE_RATING)

    def proficiency_bonus(self, field: str, value):
        self.integer(field, value, 2, 9)

    def spell_level(self, field: str, value):
        self.integer(field, value, 0, MAX_SPELL_LEVEL)

    def legendary_resistances(self, field: str, value):
        self.integer(field, value, 0, self.config.max_legendary_resistances)

    def slot_count(self, field: str, value):
        self.integer(field, value, 0, self.config.max_spell_slots)

    def components(self, field: str, value):
        """``"V, S, M"``: a comma separated subset of V, S and M."""
        if value is None:
            return
        if not isinstance(value, str):
            raise ValidationError(field, "must be a string", "type")
        parts = [p.strip() for p in value.split(",")]
        if not all(p in SPELL_COMPONENTS for p in parts) or len(set(parts)) != len(parts):
            raise ValidationError(field, "must be a comma separated subset of V, S, M", "format")

    def email(self, field: str, value):
        if value is None:
            return
        if not isinstance(value, str) or len(value) > 254 or not EMAIL_RE.match(value.lower()):
            raise ValidationError(field, "must be a valid email address", "format")

    def password(self, field: str, value):
        if not isinstance(value, str) or not PASSWORD_RE.match(value):
            raise ValidationError(
                field,
                "must contain at least one number, lowercase letter, uppercase letter, "
                "one symbol, and be at least eight characters long",
                "weak",
            )

    # --- string arrays ---------------------------------------------------
    def string_array(
        self,
        field: str,
        value,
        alphabetical: bool = False,
        pattern: re.Pattern = TOKEN_RE,
        allow_empty: bool = False,
    ):
        if value is None:
            return
        array = self._array(field, value, allow_empty=allow_empty)
        for element in array:
            if (
                not isinstance(element, str)
                or not pattern.match(element)
                or len(element) < self.config.min_token_length
                or len(element) > self.config.max_information
            ):
                raise ValidationError(field, "elements must be strings of lowercase letters or dashes", "element")
        if alphabetical and array != sorted(set(array)):
            raise ValidationError(field, "must be in alphabetical order without duplicates", "order")

    def alphabetical_string_array(self, field: str, value):
        self.string_array(field, value, alphabetical=True)

    def senses(self, field: str, value):
        self.string_array(field, value, pattern=SENSE_RE)

    def alignment(self, field: str, value):
        if value is None:
            return
        value = self._load(field, value)
        if not isinstance(value, list) or len(value) != 2:
            raise ValidationError(field, "must be an array of length 2", "shape")
        if value[0] not in ETHICAL_AXIS or value[1] not in MORAL_AXIS:
            raise ValidationError(
                field,
                f"must pair one of {', '.join(ETHICAL_AXIS)} with one of {', '.join(MORAL_AXIS)}",
                "choice",
            )

    def resistances(self, field: str, value):
        if value is None:
            return
        value = self._load(field, value)
        if not isinstance(value, dict) or set(value) != RESISTANCE_KEYS:
            raise ValidationError(field, "must have exactly the keys resistant, vulnerable, and immune", "shape")
        for key in sorted(RESISTANCE_KEYS):
            self.string_array(f"{field}.{key}", value[key], allow_empty=True)

    # --- labeled descriptions --------------------------------------------
    def labeled_descriptions(self, field: str, value):
        """specialAbilities, reactions, etc.: ``[{"title": str, "description": str}]``."""
        if value is None:
            return
        array = self._array(field, value)
        cfg = self.config
        for item in array:
            if not isinstance(item, dict) or set(item) != LABELED_DESCRIPTION_KEYS:
                raise ValidationError(field, "objects must contain a title, description pair", "shape")
            title, desc = item["title"], item["description"]
            if (
                not isinstance(title, str)
                or not cfg.min_information <= len(title) <= cfg.max_information
                or not isinstance(desc, str)
                or not cfg.min_description <= len(desc) <= cfg.max_description
            ):
                raise ValidationError(field, "objects must contain a title, description pair", "element")

    # --- damage ------------------------------------------------------------
    def damage_object(self, field: str, obj):
        """``{count, dieSize, bonus, damageType, effect}``; a count of 0 deals no damage."""
        cfg = self.config
        if not isinstance(obj, dict):
            raise ValidationError(field, "must be an array of objects", "type")
        if set(obj) != DAMAGE_KEYS:
            raise ValidationError(field, "damage object must have keys count, dieSize, bonus, damageType, and effect", "shape")
        count, die, bonus = obj["count"], obj["dieSize"], obj["bonus"]
        damage_type, effect = obj["damageType"], obj["effect"]
        if (
            not _is_int(count)
            or not 0 <= count <= cfg.max_dice
            or not _is_int(die)
            or die not in cfg.valid_die_sizes
            or not _is_int(bonus)
            or not 0 <= bonus <= MAX_DAMAGE_BONUS
            or not isinstance(damage_type, str)
            or not TOKEN_RE.match(damage_type)
            or not cfg.min_information <= len(damage_type) <= cfg.max_information
            or not isinstance(effect, str)
            or (effect and not cfg.min_information <= len(effect) <= cfg.max_information)
        ):
            raise ValidationError(field, f"damage object {json.dumps(obj, sort_keys=True)} failed validation", "element")

    def damage_array(self, field: str, value):
        if value is None:
            return
        for obj in self._array(field, value):
            self.damage_object(field, obj)

    def spell_damages(self, field: str, value):
        """Tiers of ``{caster, damage, effect, slot}`` entries, one tier per caster level or slot."""
        if value is None:
            return
        tiers = self._array(field, value)
        cfg = self.config
        for tier in tiers:
            if not isinstance(tier, list) or not tier:
                raise ValidationError(field, "tiers must be non-empty arrays", "shape")
            for entry in tier:
                if not isinstance(entry, dict) or set(entry) != SPELL_DAMAGE_KEYS:
                    raise ValidationError(field, "entries must have keys caster, damage, effect, and slot", "shape")
                caster, slot, effect = entry["caster"], entry["slot"], entry["effect"]
                if not _is_int(caster) or not 0 <= caster <= MAX_CASTER_LEVEL:
                    raise ValidationError(field, f"caster must be between 0 and {MAX_CASTER_LEVEL}", "range")
                if not _is_int(slot) or not 0 <= slot <= MAX_SPELL_LEVEL:
                    raise ValidationError(field, f"slot must be between 0 and {MAX_SPELL_LEVEL}", "range")
                if not isinstance(effect, str) or (effect and len(effect) > cfg.max_information):
                    raise ValidationError(field, "effect must be a short string", "element")
                self.damage_object(field, entry["damage"])

    # --- creature stat blocks ------------------------------------------------
    def saving_throws(self, field: str, value):
        if value is None:
            return
        value = self._load(field, value)
        if not isinstance(value, dict) or set(value) != set(ABILITIES):
            raise ValidationError(field, f"must have exactly the keys {', '.join(ABILITIES)}", "shape")
        for ability in ABILITIES:
            score = value[ability]
            if not _is_int(score) or not 0 <= score <= MAX_SAVING_THROW:
                raise ValidationError(field, f"values must be between 0 and {MAX_SAVING_THROW}", "range")

    def skills(self, field: str, value):
        if value is None:
            return
        array = self._array(field, value)
        seen = set()
        for item in array:
            if not isinstance(item, dict) or set(item) != SKILL_KEYS:
                raise ValidationError(field, "objects must contain a skill, value pair", "shape")
            if item["skill"] not in SKILLS:
                raise ValidationError(field, f"unknown skill {item['skill']!r}", "choice")
            if item["skill"] in seen:
                raise ValidationError(field, f"duplicate skill {item['skill']!r}", "duplicate")
            seen.add(item["skill"])
            if not _is_int(item["value"]) or not 0 <= item["value"] <= MAX_SKILL_VALUE:
                raise ValidationError(field, f"values must be between 0 and {MAX_SKILL_VALUE}", "range")

    def spell_slots(self, field: str, value):
        """Ten counters indexed by spell level; index 0 (cantrips) is always 0."""
        if value is None:
            return
        value = self._load(field, value)
        if not isinstance(value, list) or len(value) != SPELL_SLOT_LEVELS:
            raise ValidationError(field, f"must be an array of length {SPELL_SLOT_LEVELS}", "shape")
        if not all(_is_int(n) for n in value):
            raise ValidationError(field, "must contain only integers", "type")
        if value[0] != 0:
            raise ValidationError(field, "index 0 must be 0", "shape")
        if any(not 0 <= n <= self.config.max_spell_slots for n in value):
            raise ValidationError(field, f"values must be between 0 and {self.config.max_spell_slots}", "range")

    def innate_spells(self, field: str, value):
        if value is None:
            return
        array = self._array(field, value)
        for item in array:
            if not isinstance(item, dict) or set(item) != INNATE_SPELL_KEYS:
                raise ValidationError(field, "objects must have keys spellId, perDay, and restrictions", "shape")
            if not _is_int(item["spellId"]) or item["spellId"] < 1:
                raise ValidationError(field, "spellId must be a positive integer", "type")
            if not _is_int(item["perDay"]) or not 0 <= item["perDay"] <= self.config.max_per_day:
                raise ValidationError(field, f"perDay must be between 0 and {self.config.max_per_day}", "range")
            restrictions = item["restrictions"]
            if not isinstance(restrictions, str) or len(restrictions) > self.config.max_description:
                raise ValidationError(field, "restrictions must be a string", "element")

    def hit_die(self, field: str, value):
        if value is None:
            return
        if not _is_int(value) or value not in self.config.valid_hit_die_sizes:
            sizes = ", ".join(str(s) for s in self.config.valid_hit_die_sizes)
            raise ValidationError(field, f"must be one of {sizes}", "choice")

    def num_dice(self, field: str, value):
        self.integer(field, value, 1, self.config.max_hit_dice)

    def hit_point_bound(self, max_hp, num_dice, hit_die, con):
        """max_hp may not exceed what the hit dice can roll."""
        if None in (max_hp, num_dice, hit_die):
            return
        bound = max_hit_points(num_dice, hit_die, 10 if con is None else con)
        if max_hp > bound:
            raise ValidationError("max_hp", f"must not exceed {bound} for {num_dice}d{hit_die} hit dice", "range")


def current_validators() -> FieldValidators:
    """Validators bound to the active app's ``BESTIARY_*`` limits (built once per app)."""
    validators = current_app.extensions.get("bestiary.validators")
    if validators is None:
        validators = FieldValidators(ValidationConfig.from_mapping(current_app.config))
        current_app.extensions["bestiary.validators"] = validators
    return validators


__all__ = [
    "ABILITIES",
    "ValidationConfig",
    "FieldValidators",
    "ability_modifier",
    "max_hit_points",
    "current_validators",
]
