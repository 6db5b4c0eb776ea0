"""
Operation Lifecycle Manager — post-creation handling of screening operations.

Operations on a persisted appointment:
    - get / list (status, company, date range, title search)
    - edit: partial merge, duration recomputed when both times are present
    - status transition: any → any within the enum, no guard
    - delete: delegated to the catalog
    - bulk staff notification through the messaging gateway
    - document requests through the document gateway

Every function takes the catalog (and gateway, where needed) as an argument.
Writes that raise in-app notifications accept a ``notifier``; it defaults to
``NotificationService``.
"""

import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.integrations.document_gateway import DOCUMENT_KINDS
from app.models.operation import APPOINTMENT_STATUSES, APPOINTMENT_TYPES, SELECTION_FIELDS
from app.services import search, selection
from app.services.conflicts import conflicts_for
from app.services.duration import calculate_duration, format_duration, normalize_time
from app.services.notification import NotificationService
from app.utils.helpers import parse_date, parse_date_input

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "company_id", "title", "date", "start_time", "end_time",
    "duration_minutes", "type", "status",
) + SELECTION_FIELDS

REQUIRED_FIELDS = ("company_id", "title", "date")

COMPLETED = "Completed"

MSG_MISSING_REQUIRED = "Zorunlu alanları doldurunuz."
MSG_NO_RECIPIENTS = "Lütfen en az bir personel seçin."

MESSAGE_TEMPLATE = (
    "Merhaba, *{company}* firması için planlanan *{title}* operasyonu "
    "{when} tarihinde gerçekleştirilecektir. Bilginize sunarız."
)


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════


def get_operation(catalog, appointment_id):
    """Return one appointment dict or raise NotFoundError."""
    appointment = catalog.get_appointment(appointment_id)
    if not appointment:
        raise NotFoundError(resource="Appointment", resource_id=appointment_id)
    return appointment


def list_operations(catalog, *, status=None, company_id=None,
                    date_from=None, date_to=None, q=None):
    """List appointments, newest date first, optionally filtered."""
    if status and status not in APPOINTMENT_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {sorted(APPOINTMENT_STATUSES)}",
            details={"status": status},
        )
    try:
        date_from = parse_date_input(date_from)
        date_to = parse_date_input(date_to)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    items = catalog.list_appointments(
        status=status, company_id=company_id, date_from=date_from, date_to=date_to,
    )
    return search.filter_items(items, ("title",), q)


def _resolve(records, ids):
    by_id = {r["id"]: r for r in records}
    return [by_id[i] for i in ids or [] if i in by_id]


def resolve_bundle(catalog, appointment):
    """Resolve the appointment's foreign identities against the catalog."""
    return {
        "appointment": appointment,
        "company": catalog.get_company(appointment.get("company_id")),
        "staff": _resolve(catalog.list_staff(), appointment.get("staff_ids")),
        "tests": _resolve(catalog.list_tests(), appointment.get("test_ids")),
        "equipment": _resolve(catalog.list_equipment(), appointment.get("equipment_ids")),
    }


def get_operation_detail(catalog, appointment_id):
    """Appointment plus resolved references, duration label and conflicts."""
    appointment = get_operation(catalog, appointment_id)
    detail = resolve_bundle(catalog, appointment)
    detail["duration_label"] = format_duration(appointment.get("duration_minutes"))
    detail["conflicts"] = conflicts_for(catalog, appointment)
    return detail


def operation_conflicts(catalog, appointment_id):
    return conflicts_for(catalog, get_operation(catalog, appointment_id))


# ═════════════════════════════════════════════════════════════════════════════
# Edit / status / delete
# ═════════════════════════════════════════════════════════════════════════════


def _clean_changes(changes):
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS) - {"id"})
    if unknown:
        raise ValidationError("Unknown fields", details={f: "not editable" for f in unknown})

    cleaned = {}
    for key, value in changes.items():
        if key == "id":
            continue
        if key in ("start_time", "end_time"):
            cleaned[key] = normalize_time(value)
        elif key == "date":
            try:
                parsed = parse_date_input(value)
            except ValueError as exc:
                raise ValidationError(str(exc), details={"date": value}) from exc
            cleaned[key] = parsed.isoformat() if parsed else None
        elif key == "type" and value not in APPOINTMENT_TYPES:
            raise ValidationError(
                f"Invalid type. Must be one of: {sorted(APPOINTMENT_TYPES)}",
                details={"type": value},
            )
        elif key == "status" and value not in APPOINTMENT_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {sorted(APPOINTMENT_STATUSES)}",
                details={"status": value},
            )
        elif key == "duration_minutes":
            try:
                minutes = int(value or 0)
            except (TypeError, ValueError) as exc:
                raise ValidationError("duration_minutes must be an integer",
                                      details={"duration_minutes": value}) from exc
            if minutes < 0:
                raise ValidationError("duration_minutes must be >= 0",
                                      details={"duration_minutes": value})
            cleaned[key] = minutes
        elif key in SELECTION_FIELDS:
            if value is not None and not isinstance(value, (list, tuple)):
                raise ValidationError(f"{key} must be a list", details={key: value})
            cleaned[key] = selection.normalize(value)
        elif key in ("company_id", "title"):
            cleaned[key] = "" if value is None else str(value).strip()
        else:
            cleaned[key] = value
    return cleaned


def _after_status_change(before, after, notifier):
    if after.get("status") == COMPLETED and before.get("status") != COMPLETED:
        notifier.notify_operation_completed(after)


def update_operation(catalog, appointment_id, changes, *, notifier=NotificationService):
    """Merge a partial field set onto the stored appointment and save it.

    Duration:
        both start_time and end_time present after the merge → recomputed;
        otherwise the stored value, or a directly supplied duration_minutes.

    Raises:
        NotFoundError: Unknown id.
        ValidationError: Bad values, or title/date/company_id empty after the
            merge. Nothing is written in either case.
    """
    stored = get_operation(catalog, appointment_id)
    cleaned = _clean_changes(changes or {})

    merged = {**stored, **cleaned, "id": stored["id"]}
    missing = [f for f in REQUIRED_FIELDS if not str(merged.get(f) or "").strip()]
    if missing:
        raise ValidationError(MSG_MISSING_REQUIRED, details={f: "required" for f in missing})

    if merged.get("start_time") and merged.get("end_time"):
        merged["duration_minutes"] = calculate_duration(merged["start_time"], merged["end_time"])

    updated = catalog.update_appointment(merged)
    _after_status_change(stored, updated, notifier)
    logger.info(
        "Operation updated",
        extra={"event_type": "operation_updated", "appointment_id": appointment_id,
               "fields": sorted(cleaned)},
    )
    return updated


def toggle_selection(catalog, appointment_id, field, item_id, *, notifier=NotificationService):
    """Toggle one id in a stored Selection Set (staff, tests or equipment)."""
    if field not in SELECTION_FIELDS:
        raise ValidationError(
            f"Invalid field. Must be one of: {list(SELECTION_FIELDS)}",
            details={"field": field},
        )
    if not item_id:
        raise ValidationError("id is required", details={"id": "required"})
    stored = get_operation(catalog, appointment_id)
    return update_operation(
        catalog, appointment_id, {field: selection.toggle(stored.get(field), str(item_id))},
        notifier=notifier,
    )


def set_status(catalog, appointment_id, status, *, notifier=NotificationService):
    """Set any enum status from any other."""
    if status not in APPOINTMENT_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {sorted(APPOINTMENT_STATUSES)}",
            details={"status": status},
        )
    stored = get_operation(catalog, appointment_id)
    updated = catalog.update_appointment({**stored, "status": status})
    _after_status_change(stored, updated, notifier)
    logger.info(
        "Operation status changed",
        extra={"event_type": "operation_status", "appointment_id": appointment_id,
               "from": stored.get("status"), "to": status},
    )
    return updated


def delete_operation(catalog, appointment_id, *, notifier=NotificationService):
    """Delete by identity; dependent records are the catalog's concern."""
    get_operation(catalog, appointment_id)
    catalog.delete_appointment(appointment_id)
    notifier.notify_operation_deleted(appointment_id)
    logger.info("Operation deleted",
                extra={"event_type": "operation_deleted", "appointment_id": appointment_id})


# ═════════════════════════════════════════════════════════════════════════════
# Messaging
# ═════════════════════════════════════════════════════════════════════════════


def format_schedule(appointment):
    """Return "dd.mm.yyyy HH:MM" (time omitted when no start time is set)."""
    parsed = parse_date(appointment.get("date"))
    if not parsed:
        return ""
    label = parsed.strftime("%d.%m.%Y")
    start = appointment.get("start_time")
    return f"{label} {normalize_time(start)}" if start else label


def build_message_template(catalog, appointment):
    company = catalog.get_company(appointment.get("company_id")) or {}
    return MESSAGE_TEMPLATE.format(
        company=company.get("name") or "",
        title=appointment.get("title") or "",
        when=format_schedule(appointment),
    )


def notify_staff(catalog, gateway, appointment_id, staff_ids, message=None):
    """Send one message per selected staff member's phone.

    Rejects an empty selection before any dispatch. Each dispatch is
    independent; a failure is recorded for that recipient only.

    Returns:
        {"appointment_id", "sent", "failed", "skipped", "results": [...]}
    """
    recipients = selection.normalize(staff_ids)
    if not recipients:
        raise ValidationError(MSG_NO_RECIPIENTS, details={"staff_ids": "required"})

    appointment = get_operation(catalog, appointment_id)
    text = (message or "").strip() or build_message_template(catalog, appointment)
    staff_by_id = {s["id"]: s for s in catalog.list_staff()}

    results = []
    for staff_id in recipients:
        member = staff_by_id.get(staff_id)
        if member is None:
            results.append({"staff_id": staff_id, "status": "skipped", "reason": "unknown staff"})
            continue
        if not member.get("phone"):
            results.append({"staff_id": staff_id, "name": member.get("name"),
                            "status": "skipped", "reason": "no phone"})
            continue
        try:
            outcome = gateway.send(member["phone"], text)
        except Exception as exc:
            logger.exception("Dispatch raised for staff_id=%s", staff_id)
            results.append({"staff_id": staff_id, "name": member.get("name"),
                            "status": "failed", "error": str(exc)[:500]})
            continue
        entry = {"staff_id": staff_id, "name": member.get("name"),
                 "status": "sent" if outcome.ok else "failed"}
        entry.update({k: v for k, v in outcome.to_dict().items() if k in ("phone", "link", "error")})
        results.append(entry)

    summary = {
        "appointment_id": appointment_id,
        "message": text,
        "sent": sum(1 for r in results if r["status"] == "sent"),
        "failed": sum(1 for r in results if r["status"] == "failed"),
        "skipped": sum(1 for r in results if r["status"] == "skipped"),
        "results": results,
    }
    logger.info(
        "Bulk staff notification",
        extra={"event_type": "operation_notify", "appointment_id": appointment_id,
               "sent": summary["sent"], "failed": summary["failed"],
               "skipped": summary["skipped"]},
    )
    return summary


# ═════════════════════════════════════════════════════════════════════════════
# Documents
# ═════════════════════════════════════════════════════════════════════════════


def request_document(catalog, gateway, appointment_id, kind):
    """Render one document kind for the operation.

    result_report is only available once the operation is Completed.

    Returns:
        PDF bytes from the document gateway.
    """
    if kind not in DOCUMENT_KINDS:
        raise ValidationError(
            f"Invalid document kind. Must be one of: {list(DOCUMENT_KINDS)}",
            details={"kind": kind},
        )
    appointment = get_operation(catalog, appointment_id)
    if kind == "result_report" and appointment.get("status") != COMPLETED:
        raise ValidationError(
            "Result report is only available for completed operations",
            details={"status": appointment.get("status")},
        )
    return gateway.render(kind, resolve_bundle(catalog, appointment))
