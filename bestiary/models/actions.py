"""Action patterns: prioritized, ordered groups of actions for a creature type.

An ActionPattern is one turn of behaviour ("multiattack: two scimitar
swings"); lower priority patterns are tried first. Each Action in it is
exactly one of a weapon attack, a spell, or free text (``other``).
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from bestiary import db
from bestiary.models.base import SerializerMixin, TimestampMixin


class ActionPattern(TimestampMixin, SerializerMixin, db.Model):
    __tablename__ = "action_pattern"
    _default_related = ("actions",)

    id = db.Column(db.Integer, primary_key=True)
    creature_type_id = db.Column(db.Integer, db.ForeignKey("creature_type.id"), nullable=False, index=True)
    priority = db.Column(db.Integer, nullable=False, default=0)

    creature_type = db.relationship("CreatureType", back_populates="action_patterns")
    actions = db.relationship("Action", back_populates="action_pattern", order_by="Action.index")

    @classmethod
    def get_with_actions(cls, action_pattern_id: int):
        stmt = (
            select(cls)
            .where(cls.id == action_pattern_id)
            .options(
                selectinload(cls.actions).selectinload(Action.weapon),
                selectinload(cls.actions).selectinload(Action.spell),
            )
        )
        return db.session.scalars(stmt).first()

    @classmethod
    def ids_for_creature_type(cls, creature_type_id: int) -> list[int]:
        return list(db.session.scalars(select(cls.id).where(cls.creature_type_id == creature_type_id)))


class Action(TimestampMixin, SerializerMixin, db.Model):
    """One step of an action pattern.

    Attributes:
        index: position within the pattern (0-based)
        times: repetitions of this step (1-9)
        restrictions: optional free-text condition ("only while hidden")
        weapon_id / spell_id / other: exactly one is set
    """

    _default_related = ("weapon", "spell")

    id = db.Column(db.Integer, primary_key=True)
    action_pattern_id = db.Column(db.Integer, db.ForeignKey("action_pattern.id"), nullable=False, index=True)
    index = db.Column(db.Integer, nullable=False, default=0)
    weapon_id = db.Column(db.Integer, db.ForeignKey("weapon.id"), nullable=True, index=True)
    spell_id = db.Column(db.Integer, db.ForeignKey("spell.id"), nullable=True, index=True)
    times = db.Column(db.Integer, nullable=False, default=1)
    restrictions = db.Column(db.String(500), nullable=True)
    other = db.Column(db.String(500), nullable=True)

    action_pattern = db.relationship("ActionPattern", back_populates="actions")
    weapon = db.relationship("Weapon")
    spell = db.relationship("Spell")

    @classmethod
    def get_with_weapon_and_spell(cls, action_id: int):
        stmt = select(cls).where(cls.id == action_id).options(selectinload(cls.weapon), selectinload(cls.spell))
        return db.session.scalars(stmt).first()
