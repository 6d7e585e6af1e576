"""
project: Bestiary
module: models.py
License: MIT

Reusable catalog models (weapons, armor, spells) and user accounts.

Notes:
- Composite fields (damage arrays, property tags) are JSON columns; their
  shapes are enforced by bestiary.validation before they reach the database.
- Passwords are stored as Werkzeug hashes and the column is deferred, so a
  plain read of a User never loads it.
"""

from flask_login import UserMixin
from sqlalchemy import func, select
from sqlalchemy.orm import deferred, selectinload
from werkzeug.security import check_password_hash, generate_password_hash

from bestiary import db
from bestiary.models.base import SerializerMixin, TimestampMixin


class Weapon(TimestampMixin, SerializerMixin, db.Model):
    """A weapon or natural attack usable by actions.

    Attributes:
        damages: list of {count, dieSize, bonus, damageType, effect}
        properties: alphabetical list of property tags ("finesse", "light")
        normal_range / long_range: feet, 0 for melee-only
        save / save_type / save_still_half: optional saving throw on hit
    """

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    damages = db.Column(db.JSON, nullable=False)
    properties = db.Column(db.JSON, nullable=True)
    normal_range = db.Column(db.Integer, nullable=False, default=0)
    long_range = db.Column(db.Integer, nullable=False, default=0)
    attack_shape = db.Column(db.String(20), nullable=True)
    save = db.Column(db.Integer, nullable=False, default=0)
    save_type = db.Column(db.String(3), nullable=True)
    save_still_half = db.Column(db.Boolean, nullable=False, default=False)

    creature_types = db.relationship(
        "CreatureType", secondary="creature_type_weapon", back_populates="weapons", viewonly=True
    )

    @staticmethod
    def get_by_name(name: str):
        return db.session.scalars(select(Weapon).filter_by(name=name)).first()


class Armor(TimestampMixin, SerializerMixin, db.Model):
    """Armor worn by creature types.

    Attributes:
        type: 'light' | 'medium' | 'heavy' | 'natural'
        base_ac: armor class before dexterity
        disadvantage: imposes disadvantage on stealth checks
    """

    _default_related = ("creature_types",)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    type = db.Column(db.String(20), nullable=False)
    base_ac = db.Column(db.Integer, nullable=False)
    disadvantage = db.Column(db.Boolean, nullable=False, default=False)

    creature_types = db.relationship("CreatureType", back_populates="armor", order_by="CreatureType.id")

    @staticmethod
    def get_by_name(name: str):
        return db.session.scalars(select(Armor).filter_by(name=name)).first()

    @classmethod
    def get_with_creature_types(cls, armor_id: int):
        stmt = select(cls).where(cls.id == armor_id).options(selectinload(cls.creature_types))
        return db.session.scalars(stmt).first()


class Spell(TimestampMixin, SerializerMixin, db.Model):
    """A spell castable through actions or innate spellcasting.

    ``damages`` is a list of tiers. Cantrips scale by caster level (one tier
    per ``caster`` threshold); leveled spells scale by slot.
    """

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    level = db.Column(db.Integer, nullable=False, default=0)
    school = db.Column(db.String(20), nullable=False)
    casting_time = db.Column(db.String(50), nullable=True)
    range = db.Column(db.Integer, nullable=False, default=0)
    components = db.Column(db.String(20), nullable=True)
    duration = db.Column(db.String(50), nullable=True)
    save_type = db.Column(db.String(3), nullable=True)
    save_still_half = db.Column(db.Boolean, nullable=False, default=False)
    description = db.Column(db.Text, nullable=True)
    damages = db.Column(db.JSON, nullable=True)

    creature_types = db.relationship(
        "CreatureType", secondary="creature_type_spell", back_populates="spells", viewonly=True
    )

    @staticmethod
    def get_by_name(name: str):
        return db.session.scalars(select(Spell).filter_by(name=name)).first()


class User(UserMixin, TimestampMixin, SerializerMixin, db.Model):
    """Account allowed to edit content through the API.

    Attributes:
        email: unique login, stored lower-cased
        password: Werkzeug hash (never plaintext, never serialized)
    """

    _serialize_exclude = ("password",)

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), unique=True, nullable=False)
    password = deferred(db.Column(db.String(255), nullable=False))

    def set_password(self, raw_password: str):
        self.password = generate_password_hash(raw_password)

    def check_password(self, candidate: str) -> bool:
        return bool(self.password) and check_password_hash(self.password, candidate)

    @staticmethod
    def get_by_email(email: str):
        stmt = select(User).where(func.lower(User.email) == (email or "").strip().lower())
        return db.session.scalars(stmt).first()
