"""
Operation Lifecycle blueprint — persisted screening operations.

Endpoints:
    GET    /api/v1/operations                         ?status= ?company_id= ?date_from= ?date_to= ?q= ?limit= ?offset=
    GET    /api/v1/operations/<id>                    detail with resolved references
    PUT    /api/v1/operations/<id>                    partial edit
    DELETE /api/v1/operations/<id>
    POST   /api/v1/operations/<id>/status             {status}
    POST   /api/v1/operations/<id>/toggle             {field, id}
    POST   /api/v1/operations/<id>/notify             {staff_ids, message?}
    GET    /api/v1/operations/<id>/message-template
    GET    /api/v1/operations/<id>/documents/<kind>   task_order | plan | result_report (PDF)
    GET    /api/v1/operations/<id>/conflicts

An unknown id answers 404 with ``back`` pointing at the list endpoint.
Service layer owns all business logic and writes.
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from app.blueprints import paginate_list
from app.core.exceptions import CollaboratorError, ValidationError
from app.integrations.document_gateway import build_document_gateway
from app.integrations.messaging_gateway import MessagingConfigError, build_messaging_gateway
from app.services import operation_service as ops
from app.services.catalog import get_catalog
from app.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

operation_bp = Blueprint("operation_bp", __name__, url_prefix="/api/v1/operations")

register_error_handlers(operation_bp, logger)


def _messaging_gateway():
    try:
        return build_messaging_gateway(current_app.config)
    except MessagingConfigError as exc:
        raise CollaboratorError("messaging", str(exc)) from exc


def _document_gateway():
    return build_document_gateway(current_app.config)


@operation_bp.route("", methods=["GET"])
def list_operations():
    items = ops.list_operations(
        get_catalog(),
        status=request.args.get("status"),
        company_id=request.args.get("company_id"),
        date_from=request.args.get("date_from"),
        date_to=request.args.get("date_to"),
        q=request.args.get("q"),
    )
    page, total, limit, offset = paginate_list(items)
    return jsonify({"items": page, "total": total, "limit": limit, "offset": offset}), 200


@operation_bp.route("/<appointment_id>", methods=["GET"])
def get_operation(appointment_id):
    return jsonify(ops.get_operation_detail(get_catalog(), appointment_id)), 200


@operation_bp.route("/<appointment_id>", methods=["PUT"])
def update_operation(appointment_id):
    """Merge the body onto the stored operation.

    Body: any of company_id, title, date, start_time, end_time,
          duration_minutes, type, status, staff_ids, test_ids, equipment_ids
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body is required")
    return jsonify(ops.update_operation(get_catalog(), appointment_id, data)), 200


@operation_bp.route("/<appointment_id>", methods=["DELETE"])
def delete_operation(appointment_id):
    ops.delete_operation(get_catalog(), appointment_id)
    return jsonify({"deleted": True, "id": appointment_id}), 200


@operation_bp.route("/<appointment_id>/status", methods=["POST"])
def set_status(appointment_id):
    data = request.get_json(silent=True) or {}
    return jsonify(ops.set_status(get_catalog(), appointment_id, data.get("status"))), 200


@operation_bp.route("/<appointment_id>/toggle", methods=["POST"])
def toggle_selection(appointment_id):
    data = request.get_json(silent=True) or {}
    updated = ops.toggle_selection(get_catalog(), appointment_id, data.get("field"), data.get("id"))
    return jsonify(updated), 200


@operation_bp.route("/<appointment_id>/notify", methods=["POST"])
def notify_staff(appointment_id):
    """Send the operation message to the selected staff.

    Body: {staff_ids: [...], message?: str}
    Returns: per-recipient results. Individual failures do not fail the call.
    """
    data = request.get_json(silent=True) or {}
    staff_ids = data.get("staff_ids")
    if staff_ids is not None and not isinstance(staff_ids, list):
        raise ValidationError("staff_ids must be a list", details={"staff_ids": "invalid"})
    result = ops.notify_staff(
        get_catalog(), _messaging_gateway(), appointment_id, staff_ids, data.get("message"),
    )
    return jsonify(result), 200


@operation_bp.route("/<appointment_id>/message-template", methods=["GET"])
def message_template(appointment_id):
    catalog = get_catalog()
    appointment = ops.get_operation(catalog, appointment_id)
    return jsonify({"message": ops.build_message_template(catalog, appointment)}), 200


@operation_bp.route("/<appointment_id>/documents/<kind>", methods=["GET"])
def document(appointment_id, kind):
    pdf = ops.request_document(get_catalog(), _document_gateway(), appointment_id, kind)
    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{kind}_{appointment_id}.pdf"'},
    )


@operation_bp.route("/<appointment_id>/conflicts", methods=["GET"])
def conflicts(appointment_id):
    items = ops.operation_conflicts(get_catalog(), appointment_id)
    return jsonify({"items": items, "total": len(items)}), 200
