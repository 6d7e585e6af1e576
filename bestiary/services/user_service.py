"""User account operations.

Emails are stored stripped and lower-cased. Passwords are checked for
strength, hashed with Werkzeug and can only be changed through
:func:`change_password`, which requires the current password.
"""

from __future__ import annotations

from bestiary import db
from bestiary.errors import InvalidFieldError
from bestiary.logging_utils import get_logger
from bestiary.models import User
from bestiary.schemas import USER_SCHEMA
from bestiary.services.helpers import (
    CREATE,
    DELETE,
    UPDATE,
    apply_field_rules,
    atomic,
    delete_where,
    ensure_unique,
    field_errors,
    parse_id,
    prepare_create,
    prepare_update,
    require_id,
    require_record,
    search_records,
)
from bestiary.validation import FieldValidators, current_validators

log = get_logger("bestiary.users")
ENTITY = USER_SCHEMA.entity


def _field_rules(v: FieldValidators):
    return {
        "email": v.email,
        "password": v.password,
    }


def _normalize_email(values: dict) -> dict:
    if isinstance(values.get("email"), str):
        values["email"] = values["email"].strip().lower()
    return values


def get_user(user_id):
    user_id = parse_id(user_id)
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def create_user(data):
    with atomic(ENTITY, CREATE):
        values = _normalize_email(prepare_create(User, USER_SCHEMA, data))
        apply_field_rules(ENTITY, CREATE, values, _field_rules(current_validators()))
        ensure_unique(User, USER_SCHEMA, CREATE, values)
        user = User(email=values["email"])
        user.set_password(values["password"])
        db.session.add(user)
        db.session.flush()
        user_id = user.id
    log.info(event="user_created", id=user_id)
    return get_user(user_id)


def update_user(user_id, data):
    with atomic(ENTITY, UPDATE):
        user, changes = prepare_update(User, USER_SCHEMA, user_id, data)
        changes = _normalize_email(changes)
        apply_field_rules(ENTITY, UPDATE, changes, _field_rules(current_validators()))
        ensure_unique(User, USER_SCHEMA, UPDATE, changes, exclude_id=user.id)
        for key, value in changes.items():
            setattr(user, key, value)
        user_id = user.id
    log.info(event="user_updated", id=user_id, fields=",".join(changes))
    return get_user(user_id)


def delete_user(user_id) -> bool:
    with atomic(ENTITY, DELETE):
        user_id = require_id(ENTITY, DELETE, user_id)
        require_record(User, ENTITY, DELETE, user_id)
        delete_where(User, User.id == user_id)
    log.info(event="user_deleted", id=user_id)
    return True


def search_users(**filters):
    if isinstance(filters.get("email"), str):
        filters["email"] = filters["email"].strip().lower()
    return search_records(User, USER_SCHEMA, filters)


def authenticate(email, password):
    """Return the user when the credentials match, otherwise ``None``."""
    if not email or not password:
        return None
    user = User.get_by_email(email)
    if user is None or not user.check_password(password):
        log.info(event="login_failed")
        return None
    return user


def change_password(user_id, current_password, new_password):
    with atomic(ENTITY, UPDATE):
        user_id = require_id(ENTITY, UPDATE, user_id)
        user = require_record(User, ENTITY, UPDATE, user_id)
        if not user.check_password(current_password or ""):
            raise InvalidFieldError(ENTITY, UPDATE, "current password is incorrect", field="password")
        with field_errors(ENTITY, UPDATE):
            current_validators().password("password", new_password)
        user.set_password(new_password)
    log.info(event="user_password_changed", id=user_id)
    return get_user(user_id)


__all__ = [
    "get_user",
    "create_user",
    "update_user",
    "delete_user",
    "search_users",
    "authenticate",
    "change_password",
]
