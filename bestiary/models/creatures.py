"""Creature templates, their stamped instances and the weapon/spell join rows.

A CreatureType is the stat block ("goblin"); a Creature is one goblin at the
table with its own hit points and remaining spell slots. CreatureTypes own
ordered ActionPatterns (see bestiary.models.actions).

Query helpers here replace ad hoc eager-loading options: each one returns a
fixed shape for one access pattern.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from bestiary import db
from bestiary.models.base import SerializerMixin, TimestampMixin
from bestiary.validation import ABILITIES, ability_modifier


class CreatureTypeWeapon(TimestampMixin, db.Model):
    __tablename__ = "creature_type_weapon"

    id = db.Column(db.Integer, primary_key=True)
    creature_type_id = db.Column(db.Integer, db.ForeignKey("creature_type.id"), nullable=False, index=True)
    weapon_id = db.Column(db.Integer, db.ForeignKey("weapon.id"), nullable=False, index=True)
    __table_args__ = (db.UniqueConstraint("creature_type_id", "weapon_id", name="uq_creature_type_weapon"),)


class CreatureTypeSpell(TimestampMixin, db.Model):
    __tablename__ = "creature_type_spell"

    id = db.Column(db.Integer, primary_key=True)
    creature_type_id = db.Column(db.Integer, db.ForeignKey("creature_type.id"), nullable=False, index=True)
    spell_id = db.Column(db.Integer, db.ForeignKey("spell.id"), nullable=False, index=True)
    __table_args__ = (db.UniqueConstraint("creature_type_id", "spell_id", name="uq_creature_type_spell"),)


class CreatureType(TimestampMixin, SerializerMixin, db.Model):
    """Stat block template.

    JSON columns: type, tags, alignment, saving_throws, skills, resistances,
    senses, languages, special_abilities, spell_slots, innate_spells,
    legendary_actions, reactions, lair_actions, regional_effects.
    """

    __tablename__ = "creature_type"
    _default_related = ("armor", "action_patterns", "weapons", "spells")

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    size = db.Column(db.String(20), nullable=False, default="medium")
    type = db.Column(db.JSON, nullable=True)
    tags = db.Column(db.JSON, nullable=True)
    alignment = db.Column(db.JSON, nullable=True)
    armor_id = db.Column(db.Integer, db.ForeignKey("armor.id"), nullable=True, index=True)
    has_shield = db.Column(db.Boolean, nullable=False, default=False)
    hit_die = db.Column(db.Integer, nullable=False)
    num_dice = db.Column(db.Integer, nullable=False)
    max_hp = db.Column(db.Integer, nullable=False)
    speed = db.Column(db.Integer, nullable=False, default=30)
    fly_speed = db.Column(db.Integer, nullable=False, default=0)
    swim_speed = db.Column(db.Integer, nullable=False, default=0)
    climb_speed = db.Column(db.Integer, nullable=False, default=0)
    burrow_speed = db.Column(db.Integer, nullable=False, default=0)
    hover = db.Column(db.Boolean, nullable=False, default=False)
    # Ability scores; attribute names match the saving throw keys
    str = db.Column(db.Integer, nullable=False, default=10)
    dex = db.Column(db.Integer, nullable=False, default=10)
    con = db.Column(db.Integer, nullable=False, default=10)
    int = db.Column(db.Integer, nullable=False, default=10)
    wis = db.Column(db.Integer, nullable=False, default=10)
    cha = db.Column(db.Integer, nullable=False, default=10)
    saving_throws = db.Column(db.JSON, nullable=True)
    skills = db.Column(db.JSON, nullable=True)
    resistances = db.Column(db.JSON, nullable=True)
    senses = db.Column(db.JSON, nullable=True)
    passive_perception = db.Column(db.Integer, nullable=False, default=10)
    languages = db.Column(db.JSON, nullable=True)
    challenge_rating = db.Column(db.Integer, nullable=True)
    proficiency_bonus = db.Column(db.Integer, nullable=False, default=2)
    legendary_resistances = db.Column(db.Integer, nullable=False, default=0)
    special_abilities = db.Column(db.JSON, nullable=True)
    spellcasting = db.Column(db.String(3), nullable=True)
    spell_slots = db.Column(db.JSON, nullable=True)
    innate_spells = db.Column(db.JSON, nullable=True)
    legendary_actions = db.Column(db.JSON, nullable=True)
    reactions = db.Column(db.JSON, nullable=True)
    lair_actions = db.Column(db.JSON, nullable=True)
    regional_effects = db.Column(db.JSON, nullable=True)

    armor = db.relationship("Armor", back_populates="creature_types")
    creatures = db.relationship("Creature", back_populates="creature_type")
    action_patterns = db.relationship(
        "ActionPattern", back_populates="creature_type", order_by="ActionPattern.priority"
    )
    weapons = db.relationship(
        "Weapon", secondary="creature_type_weapon", back_populates="creature_types", viewonly=True
    )
    spells = db.relationship(
        "Spell", secondary="creature_type_spell", back_populates="creature_types", viewonly=True
    )

    def saving_throw(self, ability: str) -> int:
        """Explicit saving throw when listed, otherwise the ability modifier."""
        if ability not in ABILITIES:
            raise KeyError(ability)
        if self.saving_throws and ability in self.saving_throws:
            return self.saving_throws[ability]
        return ability_modifier(getattr(self, ability))

    @classmethod
    def get_with_full_graph(cls, creature_type_id: int):
        """Armor, weapons, spells and action patterns (by priority) with their actions."""
        from bestiary.models.actions import Action, ActionPattern

        actions = selectinload(cls.action_patterns).selectinload(ActionPattern.actions)
        stmt = (
            select(cls)
            .where(cls.id == creature_type_id)
            .options(
                selectinload(cls.armor),
                selectinload(cls.weapons),
                selectinload(cls.spells),
                actions.selectinload(Action.weapon),
                actions.selectinload(Action.spell),
            )
        )
        return db.session.scalars(stmt).first()

    @staticmethod
    def get_by_name(name: str):
        return db.session.scalars(select(CreatureType).filter_by(name=name)).first()

    @classmethod
    def using_armor(cls, armor_id: int):
        return list(db.session.scalars(select(cls).where(cls.armor_id == armor_id).order_by(cls.id)))


class Creature(TimestampMixin, SerializerMixin, db.Model):
    """One instance of a CreatureType with its own mutable counters."""

    _default_related = ("creature_type",)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    creature_type_id = db.Column(db.Integer, db.ForeignKey("creature_type.id"), nullable=False, index=True)
    max_hp = db.Column(db.Integer, nullable=False)
    current_hp = db.Column(db.Integer, nullable=False)
    slots_first = db.Column(db.Integer, nullable=False, default=0)
    slots_second = db.Column(db.Integer, nullable=False, default=0)
    slots_third = db.Column(db.Integer, nullable=False, default=0)
    slots_fourth = db.Column(db.Integer, nullable=False, default=0)
    slots_fifth = db.Column(db.Integer, nullable=False, default=0)
    slots_sixth = db.Column(db.Integer, nullable=False, default=0)
    slots_seventh = db.Column(db.Integer, nullable=False, default=0)
    slots_eighth = db.Column(db.Integer, nullable=False, default=0)
    slots_ninth = db.Column(db.Integer, nullable=False, default=0)
    current_legendary_resistances = db.Column(db.Integer, nullable=False, default=0)

    creature_type = db.relationship("CreatureType", back_populates="creatures")

    @classmethod
    def get_with_creature_type(cls, creature_id: int):
        stmt = select(cls).where(cls.id == creature_id).options(selectinload(cls.creature_type))
        return db.session.scalars(stmt).first()
