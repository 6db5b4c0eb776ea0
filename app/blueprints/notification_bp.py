"""
Field Screening Operations Platform
Notification Blueprint.

Activity feed written by the operation lifecycle (planned, completed,
deleted) and by inventory registration.

    GET   /api/v1/notifications                 ?recipient= ?unread_only= ?limit= ?offset=
    GET   /api/v1/notifications/unread-count
    POST  /api/v1/notifications/<id>/read
    POST  /api/v1/notifications/read-all
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from app.core.exceptions import NotFoundError
from app.services.notification import NotificationService
from app.utils.errors import register_error_handlers
from app.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

notification_bp = Blueprint("notification_bp", __name__, url_prefix="/api/v1")

register_error_handlers(notification_bp, logger)


@notification_bp.route("/notifications", methods=["GET"])
def list_notifications():
    """List notifications, newest first."""
    recipient = request.args.get("recipient", "all")
    unread_only = parse_bool(request.args.get("unread_only"), default=False)
    limit = min(request.args.get("limit", 50, type=int), 200)
    offset = request.args.get("offset", 0, type=int)

    items, total = NotificationService.list_for_recipient(
        recipient=recipient, unread_only=unread_only, limit=limit, offset=offset,
    )
    return jsonify({
        "items": [n.to_dict() for n in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@notification_bp.route("/notifications/unread-count", methods=["GET"])
def notification_unread_count():
    recipient = request.args.get("recipient", "all")
    return jsonify({"unread_count": NotificationService.unread_count(recipient=recipient)})


@notification_bp.route("/notifications/<int:nid>/read", methods=["POST"])
def mark_notification_read(nid):
    notif = NotificationService.mark_read(nid)
    if not notif:
        raise NotFoundError(resource="Notification", resource_id=nid)
    return jsonify(notif.to_dict())


@notification_bp.route("/notifications/read-all", methods=["POST"])
def mark_all_read():
    data = request.get_json(silent=True) or {}
    count = NotificationService.mark_all_read(recipient=data.get("recipient", "all"))
    return jsonify({"marked_read": count})
