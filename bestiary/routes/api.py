"""
project: Bestiary
module: api.py
License: MIT

JSON API over the entity services.

Every resource gets the same routes:

  POST   /api/<resource>                 create (201)
  GET    /api/<resource>?field=value     search
  GET    /api/<resource>/<id>            read (404 on miss)
  PATCH  /api/<resource>/<id>            update
  DELETE /api/<resource>/<id>            delete
  POST   /api/<resource>/<id>/clone      clone (201, where supported)

plus weapon/spell link routes on creature types. Reads are public; writes
require a logged-in session. Service errors become
``{"error": message, "code": kind}`` with the error's HTTP status.
"""

import re
from typing import Callable, NamedTuple, Optional

from flask import Blueprint, jsonify, request
from flask_login import login_required

from bestiary.errors import ServiceError
from bestiary.logging_utils import get_logger
from bestiary.services import (
    action_pattern_service,
    action_service,
    armor_service,
    creature_service,
    creature_type_service,
    spell_service,
    weapon_service,
)

bp_api = Blueprint("api", __name__, url_prefix="/api")
log = get_logger("bestiary.api")

_INT_RE = re.compile(r"^-?\d+$")


class Resource(NamedTuple):
    name: str
    create: Callable
    get: Callable
    update: Callable
    delete: Callable
    search: Callable
    clone: Optional[Callable] = None


RESOURCES = (
    Resource(
        "weapons",
        weapon_service.create_weapon,
        weapon_service.get_weapon,
        weapon_service.update_weapon,
        weapon_service.delete_weapon,
        weapon_service.search_weapons,
    ),
    Resource(
        "armors",
        armor_service.create_armor,
        armor_service.get_armor,
        armor_service.update_armor,
        armor_service.delete_armor,
        armor_service.search_armors,
        armor_service.clone_armor,
    ),
    Resource(
        "spells",
        spell_service.create_spell,
        spell_service.get_spell,
        spell_service.update_spell,
        spell_service.delete_spell,
        spell_service.search_spells,
        spell_service.clone_spell,
    ),
    Resource(
        "creature-types",
        creature_type_service.create_creature_type,
        creature_type_service.get_creature_type,
        creature_type_service.update_creature_type,
        creature_type_service.delete_creature_type,
        creature_type_service.search_creature_types,
        creature_type_service.clone_creature_type,
    ),
    Resource(
        "creatures",
        creature_service.create_creature,
        creature_service.get_creature,
        creature_service.update_creature,
        creature_service.delete_creature,
        creature_service.search_creatures,
        creature_service.clone_creature,
    ),
    Resource(
        "action-patterns",
        action_pattern_service.create_action_pattern,
        action_pattern_service.get_action_pattern,
        action_pattern_service.update_action_pattern,
        action_pattern_service.delete_action_pattern,
        action_pattern_service.search_action_patterns,
        action_pattern_service.clone_action_pattern,
    ),
    Resource(
        "actions",
        action_service.create_action,
        action_service.get_action,
        action_service.update_action,
        action_service.delete_action,
        action_service.search_actions,
        action_service.clone_action,
    ),
)


def _coerce_query_value(raw: str):
    """Query strings are text; map digits to int and true/false to bool."""
    if _INT_RE.match(raw):
        return int(raw)
    if raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return raw


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _register(resource: Resource):
    endpoint = resource.name.replace("-", "_")
    base = f"/{resource.name}"

    def create():
        record = resource.create(_payload())
        return jsonify(record.to_dict()), 201

    def search():
        filters = {key: _coerce_query_value(value) for key, value in request.args.items()}
        return jsonify([record.to_dict(related=()) for record in resource.search(**filters)])

    def read(record_id):
        record = resource.get(record_id)
        if record is None:
            return jsonify({"error": "not found", "code": "not_found"}), 404
        return jsonify(record.to_dict())

    def update(record_id):
        return jsonify(resource.update(record_id, _payload()).to_dict())

    def delete(record_id):
        return jsonify({"deleted": resource.delete(record_id)})

    bp_api.add_url_rule(base, f"{endpoint}_create", login_required(create), methods=["POST"])
    bp_api.add_url_rule(base, f"{endpoint}_search", search, methods=["GET"])
    bp_api.add_url_rule(f"{base}/<record_id>", f"{endpoint}_read", read, methods=["GET"])
    bp_api.add_url_rule(f"{base}/<record_id>", f"{endpoint}_update", login_required(update), methods=["PATCH"])
    bp_api.add_url_rule(f"{base}/<record_id>", f"{endpoint}_delete", login_required(delete), methods=["DELETE"])

    if resource.clone is not None:

        def clone(record_id):
            return jsonify(resource.clone(record_id).to_dict()), 201

        bp_api.add_url_rule(f"{base}/<record_id>/clone", f"{endpoint}_clone", login_required(clone), methods=["POST"])


for _resource in RESOURCES:
    _register(_resource)


# --- creature type links --------------------------------------------------
@bp_api.route("/creature-types/<record_id>/weapons/<weapon_id>", methods=["POST"])
@login_required
def link_weapon(record_id, weapon_id):
    return jsonify(creature_type_service.link_weapon(record_id, weapon_id).to_dict())


@bp_api.route("/creature-types/<record_id>/weapons/<weapon_id>", methods=["DELETE"])
@login_required
def unlink_weapon(record_id, weapon_id):
    return jsonify(creature_type_service.unlink_weapon(record_id, weapon_id).to_dict())


@bp_api.route("/creature-types/<record_id>/spells/<spell_id>", methods=["POST"])
@login_required
def link_spell(record_id, spell_id):
    return jsonify(creature_type_service.link_spell(record_id, spell_id).to_dict())


@bp_api.route("/creature-types/<record_id>/spells/<spell_id>", methods=["DELETE"])
@login_required
def unlink_spell(record_id, spell_id):
    return jsonify(creature_type_service.unlink_spell(record_id, spell_id).to_dict())


@bp_api.app_errorhandler(ServiceError)
def handle_service_error(exc: ServiceError):
    log.info(event="service_error", code=exc.code, status=exc.status, entity=exc.entity, operation=exc.operation)
    return jsonify({"error": str(exc), "code": exc.code}), exc.status
