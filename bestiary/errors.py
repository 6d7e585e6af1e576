"""Error taxonomy shared by validators, services and the JSON API.

Validators raise :class:`ValidationError`; the services translate those into
:class:`InvalidFieldError` so every failure reaching a caller names the entity,
the operation and the violated rule, e.g.::

    Weapon creation failed, fields missing: name,damages
    Action update failed, action must be one of weapon, spell, or other

Each service error carries an HTTP ``status`` and a short ``code`` used by the
API error handler. Nothing here is retried.
"""

from __future__ import annotations

from typing import Iterable, Optional


class ValidationError(Exception):
    def __init__(self, field: str, message: str, code: str = "invalid"):
        super().__init__(f"{field} {message}")
        self.field = field
        self.message = message
        self.code = code


class ServiceError(Exception):
    """Base class for failures of a service operation."""

    status = 400
    code = "service_error"

    def __init__(self, entity: str, operation: str, detail: str):
        super().__init__(f"{entity} {operation} failed, {detail}")
        self.entity = entity
        self.operation = operation
        self.detail = detail


class MissingFieldsError(ServiceError):
    code = "missing_fields"

    def __init__(self, entity: str, operation: str, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(entity, operation, f"fields missing: {','.join(self.fields)}")


class InvalidFieldError(ServiceError):
    code = "invalid_field"

    def __init__(self, entity: str, operation: str, detail: str, field: Optional[str] = None):
        super().__init__(entity, operation, detail)
        self.field = field


class NotFoundError(ServiceError):
    status = 404
    code = "not_found"


class DuplicateNameError(ServiceError):
    status = 409
    code = "duplicate_name"


class NoValidFieldsError(ServiceError):
    code = "no_valid_fields"

    def __init__(self, entity: str, operation: str):
        super().__init__(entity, operation, "no valid update fields found")


class InvalidIdentifierError(ServiceError):
    code = "invalid_identifier"

    def __init__(self, entity: str, operation: str, value):
        super().__init__(entity, operation, f"invalid identifier: {value!r}")
        self.value = value


__all__ = [
    "ValidationError",
    "ServiceError",
    "MissingFieldsError",
    "InvalidFieldError",
    "NotFoundError",
    "DuplicateNameError",
    "NoValidFieldsError",
    "InvalidIdentifierError",
]
