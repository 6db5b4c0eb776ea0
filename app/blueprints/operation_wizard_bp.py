"""
Operation Wizard blueprint — stateless 5-step planner.

The client keeps the wizard state and sends it back with every call; the
server applies one action and returns the new state.

Endpoints:
    GET  /api/v1/operation-wizard/new        fresh state (step 1)
    POST /api/v1/operation-wizard/actions    {state, action}        → {state}
    POST /api/v1/operation-wizard/options    {state}                → picker items / review summary
    POST /api/v1/operation-wizard/vehicles   {state, name, serial_number} → {state, vehicle}
    POST /api/v1/operation-wizard/confirm    {state}                → {state, appointment, warnings}

Action types (``action.type``):
    next, back{step?}, set_field{field, value}, toggle_test{id},
    toggle_staff{id}, toggle_equipment{id}, search{term}, set_inventory_tab{tab}
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from app.core.exceptions import ValidationError
from app.services import operation_wizard as wizard
from app.services.catalog import get_catalog
from app.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

operation_wizard_bp = Blueprint("operation_wizard_bp", __name__,
                                url_prefix="/api/v1/operation-wizard")

register_error_handlers(operation_wizard_bp, logger)


def _state_from_request(data: dict) -> wizard.WizardState:
    state = data.get("state")
    if state is not None and not isinstance(state, dict):
        raise ValidationError("state must be an object", details={"state": "invalid"})
    return wizard.WizardState.from_dict(state)


@operation_wizard_bp.route("/new", methods=["GET"])
def new_wizard():
    return jsonify({"state": wizard.initial_state().to_dict()}), 200


@operation_wizard_bp.route("/actions", methods=["POST"])
def apply_action():
    data = request.get_json(silent=True) or {}
    action = data.get("action")
    if not isinstance(action, dict) or not action.get("type"):
        raise ValidationError("action.type is required", details={"action": "required"})

    state = wizard.dispatch(
        get_catalog(),
        _state_from_request(data),
        action,
        preserve_manual_title=current_app.config.get("WIZARD_PRESERVE_MANUAL_TITLE", True),
    )
    return jsonify({"state": state.to_dict()}), 200


@operation_wizard_bp.route("/options", methods=["POST"])
def step_options():
    data = request.get_json(silent=True) or {}
    state = _state_from_request(data)
    return jsonify(wizard.get_step_options(get_catalog(), state)), 200


@operation_wizard_bp.route("/vehicles", methods=["POST"])
def register_vehicle():
    data = request.get_json(silent=True) or {}
    state = _state_from_request(data)
    vehicle = wizard.register_vehicle(
        get_catalog(), state, data.get("name"), data.get("serial_number"),
    )
    return jsonify({"state": state.to_dict(), "vehicle": vehicle}), 201


@operation_wizard_bp.route("/confirm", methods=["POST"])
def confirm():
    data = request.get_json(silent=True) or {}
    state, appointment, warnings = wizard.confirm(get_catalog(), _state_from_request(data))
    return jsonify({
        "state": state.to_dict(),
        "appointment": appointment,
        "warnings": warnings,
    }), 201
