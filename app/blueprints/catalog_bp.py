"""
Resource Catalog blueprint — read access to companies, staff, tests and
equipment, plus ad-hoc vehicle registration.

Endpoints:
    GET  /api/v1/companies            ?search=
    GET  /api/v1/staff                ?search=  ?role=
    GET  /api/v1/tests                ?search=
    GET  /api/v1/equipment            ?search=  ?type=Device|Vehicle  ?status=
    POST /api/v1/equipment/vehicles   {name, serial_number}
"""

import logging

from flask import Blueprint, jsonify, request

from app.core.exceptions import ValidationError
from app.models.catalog import EQUIPMENT_STATUSES, EQUIPMENT_TYPES, STAFF_ROLES
from app.services import search
from app.services.catalog import get_catalog
from app.services.operation_wizard import create_vehicle
from app.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

catalog_bp = Blueprint("catalog_bp", __name__, url_prefix="/api/v1")

register_error_handlers(catalog_bp, logger)


def _check_enum(value, allowed, name):
    if value and value not in allowed:
        raise ValidationError(
            f"Invalid {name}. Must be one of: {sorted(allowed)}", details={name: value},
        )


@catalog_bp.route("/companies", methods=["GET"])
def list_companies():
    items = search.filter_items(
        get_catalog().list_companies(), search.COMPANY_SEARCH_FIELDS, request.args.get("search"),
    )
    return jsonify({"items": items, "total": len(items)}), 200


@catalog_bp.route("/staff", methods=["GET"])
def list_staff():
    role = request.args.get("role")
    _check_enum(role, STAFF_ROLES, "role")
    items = get_catalog().list_staff()
    if role:
        items = [s for s in items if s["role"] == role]
    items = search.filter_items(items, search.STAFF_SEARCH_FIELDS, request.args.get("search"))
    return jsonify({"items": items, "total": len(items)}), 200


@catalog_bp.route("/tests", methods=["GET"])
def list_tests():
    items = search.filter_items(
        get_catalog().list_tests(), search.TEST_SEARCH_FIELDS, request.args.get("search"),
    )
    return jsonify({"items": items, "total": len(items)}), 200


@catalog_bp.route("/equipment", methods=["GET"])
def list_equipment():
    """List equipment; ``type`` selects the Device or Vehicle tab."""
    equipment_type = request.args.get("type")
    status = request.args.get("status")
    _check_enum(equipment_type, EQUIPMENT_TYPES, "type")
    _check_enum(status, EQUIPMENT_STATUSES, "status")

    items = get_catalog().list_equipment(equipment_type)
    if status:
        items = [e for e in items if e["status"] == status]
    items = search.filter_items(items, search.EQUIPMENT_SEARCH_FIELDS, request.args.get("search"))
    return jsonify({"items": items, "total": len(items)}), 200


@catalog_bp.route("/equipment/vehicles", methods=["POST"])
def register_vehicle():
    """Register a new Active vehicle.

    Body: {name, serial_number}
    Returns: created equipment dict (201).
    """
    data = request.get_json(silent=True) or {}
    vehicle = create_vehicle(get_catalog(), data.get("name"), data.get("serial_number"))
    return jsonify(vehicle), 201
