"""Shared model plumbing: timestamps, dict serialization and row copies."""

from __future__ import annotations

import copy
from datetime import datetime, timezone

from bestiary import db

IDENTITY_COLUMNS = ("id", "created_at", "updated_at")


def utcnow():
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class SerializerMixin:
    """``to_dict`` for the JSON API.

    ``_default_related`` names the relationships serialized along with the
    columns; nested records use their own defaults, minus any relationship
    leading back to a model already on the path (Armor -> creature types
    does not expand each creature type's armor again).
    """

    _serialize_exclude: tuple = ()
    _default_related: tuple = ()

    def to_dict(self, related=None, _path=()) -> dict:
        out = {}
        for column in self.__table__.columns:
            if column.key in self._serialize_exclude:
                continue
            value = getattr(self, column.key)
            out[column.key] = value.isoformat() if isinstance(value, datetime) else value
        path = _path + (type(self),)
        relationships = self.__mapper__.relationships
        for name in self._default_related if related is None else related:
            if relationships[name].mapper.class_ in path:
                continue
            target = getattr(self, name)
            if target is None:
                out[name] = None
            elif isinstance(target, list):
                out[name] = [item.to_dict(_path=path) for item in target]
            else:
                out[name] = target.to_dict(_path=path)
        return out

    def column_values(self, exclude=IDENTITY_COLUMNS) -> dict:
        """Deep copy of the column values, minus identity and timestamps (clone input)."""
        return {
            column.key: copy.deepcopy(getattr(self, column.key))
            for column in self.__table__.columns
            if column.key not in exclude
        }
