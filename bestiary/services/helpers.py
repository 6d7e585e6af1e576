"""Shared plumbing for the entity services.

Each service operation follows the same pipeline::

    strip unknown keys -> required keys -> decode JSON strings
      -> field rules -> cross-field / reference checks -> uniqueness -> write

These helpers implement the steps; the services only declare their field
rules and cross-field checks. Every failure is raised as a
:class:`~bestiary.errors.ServiceError` subclass naming the entity and the
operation ("Weapon creation failed, ...").
"""

from __future__ import annotations

import json
import re
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from bestiary import db
from bestiary.errors import (
    DuplicateNameError,
    InvalidFieldError,
    InvalidIdentifierError,
    MissingFieldsError,
    NoValidFieldsError,
    NotFoundError,
    ValidationError,
)
from bestiary.schemas import EntitySchema
from bestiary.validation import current_validators

CREATE = "creation"
UPDATE = "update"
DELETE = "deletion"
CLONE = "clone"
SEARCH = "search"
LINK = "link"
UNLINK = "unlink"

_NUMBERED_NAME_RE = re.compile(r"^(?P<base>.*?) (?P<num>\d+)$")
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def human_name(entity: str) -> str:
    """'CreatureType' -> 'creature type'."""
    return _CAMEL_RE.sub(" ", entity).lower()


def with_article(entity: str) -> str:
    noun = human_name(entity)
    return f"{'an' if noun[0] in 'aeio' else 'a'} {noun}"


# --- input shaping -------------------------------------------------------
def strip_invalid_params(data: Optional[Mapping], allowed: Iterable[str]) -> Dict:
    data = data or {}
    return {key: data[key] for key in allowed if key in data}


def missing_required_params(data: Mapping, required: Iterable[str]) -> List[str]:
    """Required keys absent from ``data`` (a ``None`` value counts as absent), in schema order."""
    return [key for key in required if data.get(key) is None]


def parse_id(value) -> Optional[int]:
    """Positive integer id from an int or a digit string; ``None`` for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def require_id(entity: str, operation: str, value) -> int:
    parsed = parse_id(value)
    if parsed is None:
        raise InvalidIdentifierError(entity, operation, value)
    return parsed


def _columns(model):
    return model.__table__.columns


def decode_json_fields(model, entity: str, operation: str, data: Dict) -> Dict:
    """Parse JSON-encoded strings destined for JSON columns."""
    columns = _columns(model)
    out = dict(data)
    for key, value in data.items():
        if key in columns and isinstance(columns[key].type, db.JSON) and isinstance(value, str):
            try:
                out[key] = json.loads(value)
            except ValueError as exc:
                raise InvalidFieldError(entity, operation, f"{key} must be valid JSON", field=key) from exc
    return out


def prepare_create(model, schema: EntitySchema, data: Optional[Mapping]) -> Dict:
    values = strip_invalid_params(data, schema.allowed_params)
    missing = missing_required_params(values, schema.required_params)
    if missing:
        raise MissingFieldsError(schema.entity, CREATE, missing)
    # An explicit null on a defaulted column means "use the default"
    columns = _columns(model)
    values = {k: v for k, v in values.items() if v is not None or columns[k].nullable}
    return decode_json_fields(model, schema.entity, CREATE, values)


def prepare_update(model, schema: EntitySchema, record_id, data: Optional[Mapping]):
    """Return ``(record, changes)`` for an update, or raise.

    Order of checks: identifier, updateable keys, existence, nulls, JSON.
    """
    entity = schema.entity
    record_id = require_id(entity, UPDATE, record_id)
    changes = strip_invalid_params(data, schema.updateable_params)
    if not changes:
        raise NoValidFieldsError(entity, UPDATE)
    record = require_record(model, entity, UPDATE, record_id)
    columns = _columns(model)
    for key, value in changes.items():
        if value is None and not columns[key].nullable:
            raise InvalidFieldError(entity, UPDATE, f"{key} must not be null", field=key)
    return record, decode_json_fields(model, entity, UPDATE, changes)


def merged_record(record, changes: Mapping) -> Dict:
    """Current column values with ``changes`` applied on top."""
    merged = record.column_values(exclude=())
    merged.update(changes)
    return merged


# --- validation ----------------------------------------------------------
@contextmanager
def field_errors(entity: str, operation: str):
    """Re-raise validator failures as InvalidFieldError for ``entity``/``operation``."""
    try:
        yield
    except ValidationError as exc:
        raise InvalidFieldError(entity, operation, str(exc), field=exc.field) from exc


def apply_field_rules(entity: str, operation: str, data: Mapping, rules: Mapping[str, Callable]):
    with field_errors(entity, operation):
        for field, value in data.items():
            rule = rules.get(field)
            if rule is not None:
                rule(field, value)


# --- lookups -------------------------------------------------------------
def require_record(model, entity: str, operation: str, record_id: int):
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(entity, operation, f"no {human_name(entity)} found for the given ID")
    return record


def ensure_reference(model, entity: str, operation: str, field: str, value):
    """Referenced row for ``field``; ``None`` when the field is unset."""
    if value is None:
        return None
    target = db.session.get(model, value)
    if target is None:
        raise InvalidFieldError(
            entity, operation, f"no {human_name(model.__name__)} found for the given {field}", field=field
        )
    return target


def ensure_unique(model, schema: EntitySchema, operation: str, values: Mapping, exclude_id: Optional[int] = None):
    """Reject values colliding with another row on any of the schema's unique fields present in ``values``."""
    entity = schema.entity
    for field in schema.unique:
        if field not in values:
            continue
        stmt = select(model.id).where(getattr(model, field) == values[field])
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        if db.session.scalars(stmt.limit(1)).first() is not None:
            raise DuplicateNameError(entity, operation, f"{with_article(entity)} with the given {field} already exists")


def next_numbered_name(model, name: str) -> str:
    """Next unused "<base> <n>" name: "goblin" -> "goblin 2", "goblin 2" -> "goblin 3"."""
    match = _NUMBERED_NAME_RE.match(name)
    if match:
        base, number = match.group("base"), int(match.group("num")) + 1
    else:
        base, number = name, 2
    taken = set(db.session.scalars(select(model.name).where(model.name.startswith(f"{base} ", autoescape=True))))
    while f"{base} {number}" in taken:
        number += 1
    return f"{base} {number}"


def clone_name(model, entity: str, name: str) -> str:
    """Numbered name for a clone; must still pass the name rule."""
    candidate = next_numbered_name(model, name)
    with field_errors(entity, CLONE):
        current_validators().name("name", candidate)
    return candidate


def next_in_sequence(column, parent_column, parent_id: int) -> int:
    """max(column) + 1 among rows sharing ``parent_id``; 0 for the first."""
    current = db.session.scalar(select(func.max(column)).where(parent_column == parent_id))
    return 0 if current is None else current + 1


def search_records(model, schema: EntitySchema, filters: Mapping) -> list:
    unknown = [key for key in filters if key not in schema.searchable_params]
    if unknown:
        raise InvalidFieldError(schema.entity, SEARCH, f"invalid search fields: {','.join(unknown)}", field=unknown[0])
    stmt = select(model).filter_by(**filters).order_by(model.id)
    return list(db.session.scalars(stmt))


# --- writes --------------------------------------------------------------
def delete_where(model, *criteria) -> int:
    """Bulk delete; returns the number of rows removed."""
    return db.session.execute(delete(model).where(*criteria)).rowcount


@contextmanager
def atomic(entity: str, operation: str):
    """One transaction per service write: commit on success, roll back on any error."""
    try:
        yield
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if "unique" in str(exc.orig).lower():
            raise DuplicateNameError(
                entity, operation, f"{with_article(entity)} with the given unique value already exists"
            ) from exc
        raise InvalidFieldError(entity, operation, "database constraint violated") from exc
    except Exception:
        db.session.rollback()
        raise


__all__ = [
    "CREATE",
    "UPDATE",
    "DELETE",
    "CLONE",
    "SEARCH",
    "LINK",
    "UNLINK",
    "human_name",
    "with_article",
    "strip_invalid_params",
    "missing_required_params",
    "parse_id",
    "require_id",
    "decode_json_fields",
    "prepare_create",
    "prepare_update",
    "merged_record",
    "field_errors",
    "apply_field_rules",
    "require_record",
    "ensure_reference",
    "ensure_unique",
    "next_numbered_name",
    "clone_name",
    "next_in_sequence",
    "search_records",
    "delete_where",
    "atomic",
]
