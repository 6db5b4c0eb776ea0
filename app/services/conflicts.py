"""
Resource conflict (double-booking) detection — advisory only.

Staff and equipment/vehicles may be assigned to overlapping operations;
nothing here blocks a save. The wizard review step, the confirm response and
the lifecycle view surface the overlaps as warnings.

Overlap rule:
    same date, other operation not Cancelled, time windows intersect,
    and at least one shared staff or equipment id.
An operation without a positive time window occupies the whole day.
"""

import logging

from app.services.duration import calculate_duration, parse_time
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)

_DAY_MINUTES = 24 * 60


def _window(record: dict) -> tuple[int, int]:
    if calculate_duration(record.get("start_time"), record.get("end_time")) <= 0:
        return 0, _DAY_MINUTES
    start = parse_time(record["start_time"])
    end = parse_time(record["end_time"])
    return start[0] * 60 + start[1], end[0] * 60 + end[1]


def windows_overlap(a: dict, b: dict) -> bool:
    a_start, a_end = _window(a)
    b_start, b_end = _window(b)
    return a_start < b_end and b_start < a_end


def find_resource_conflicts(candidate: dict, others: list[dict]) -> list[dict]:
    """Return one entry per other operation that double-books a resource.

    Args:
        candidate: Operation (draft or persisted) with date, times and ids.
        others: Operations to check against; the candidate itself is skipped.

    Returns:
        [{"appointment_id", "title", "date", "start_time", "end_time",
          "staff_ids", "equipment_ids"}] with only the shared ids listed.
    """
    cand_date = str(candidate.get("date") or "")
    cand_staff = set(candidate.get("staff_ids") or [])
    cand_equipment = set(candidate.get("equipment_ids") or [])
    if not cand_date or not (cand_staff or cand_equipment):
        return []

    conflicts = []
    for other in others:
        if other.get("id") and other.get("id") == candidate.get("id"):
            continue
        if other.get("status") == "Cancelled":
            continue
        if str(other.get("date") or "") != cand_date:
            continue
        shared_staff = cand_staff & set(other.get("staff_ids") or [])
        shared_equipment = cand_equipment & set(other.get("equipment_ids") or [])
        if not (shared_staff or shared_equipment):
            continue
        if not windows_overlap(candidate, other):
            continue
        conflicts.append({
            "appointment_id": other.get("id"),
            "title": other.get("title"),
            "date": other.get("date"),
            "start_time": other.get("start_time"),
            "end_time": other.get("end_time"),
            "staff_ids": sorted(shared_staff),
            "equipment_ids": sorted(shared_equipment),
        })

    if conflicts:
        logger.info(
            "Resource conflicts detected",
            extra={"event_type": "resource_conflict", "appointment_id": candidate.get("id")},
        )
    return conflicts


def conflicts_for(catalog, candidate: dict) -> list[dict]:
    """Load same-day operations from the catalog and check them."""
    on_date = parse_date(candidate.get("date"))
    if on_date is None:
        return []
    return find_resource_conflicts(candidate, catalog.list_appointments(on_date=on_date))
