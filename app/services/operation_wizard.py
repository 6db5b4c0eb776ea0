"""
Operation Wizard — 5-step screening-operation planner.

Steps:
    1 Details    company, title, date, times, type
    2 Scope      health tests            (picker: name + category)
    3 Team       staff                   (picker: name + role)
    4 Inventory  devices and vehicles    (picker: name + serial/plate, two tabs)
    5 Review     summary, advisory conflicts, confirm

The wizard is an explicit state record with a pure transition function:

    state = initial_state()
    state = apply_action(state, {"type": "set_field", "field": "company_id", "value": "c1"},
                         companies)
    state = apply_action(state, {"type": "next"})

The client holds the state between requests; nothing is persisted until
``confirm`` hands the draft to the catalog. Actions that write to the catalog
(``register_vehicle``, ``confirm``) live in the service half of this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date

from app.core.exceptions import ValidationError
from app.models.catalog import new_id
from app.models.operation import APPOINTMENT_TYPES, DEFAULT_STATUS
from app.services import search, selection
from app.services.conflicts import conflicts_for
from app.services.duration import calculate_duration, format_duration, normalize_time
from app.services.notification import NotificationService
from app.utils.helpers import parse_date_input

logger = logging.getLogger(__name__)


# ── Constants ────────────────────────────────────────────────────────────────

STEP_DETAILS = 1
STEP_SCOPE = 2
STEP_TEAM = 3
STEP_INVENTORY = 4
STEP_REVIEW = 5

STEP_NAMES = {
    STEP_DETAILS: "Details",
    STEP_SCOPE: "Scope",
    STEP_TEAM: "Team",
    STEP_INVENTORY: "Inventory",
    STEP_REVIEW: "Review",
}

# Entering one of these steps starts its picker unfiltered.
PICKER_STEPS = {STEP_SCOPE, STEP_TEAM, STEP_INVENTORY}

# Inventory tab → Equipment.equipment_type
INVENTORY_TABS = {"Equipment": "Device", "Vehicle": "Vehicle"}

DRAFT_FIELDS = ("company_id", "title", "date", "start_time", "end_time", "type")
REQUIRED_FIELDS = ("company_id", "title", "date")

TOGGLE_ACTIONS = {
    "toggle_test": "test_ids",
    "toggle_staff": "staff_ids",
    "toggle_equipment": "equipment_ids",
}

TITLE_SUFFIX = " - Sağlık Taraması"

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"

MSG_MISSING_BASICS = "Lütfen temel bilgileri eksiksiz doldurun."
MSG_MISSING_VEHICLE = "Lütfen araç adı ve plaka/seri no girin."


def derive_title(company_name: str) -> str:
    return f"{company_name}{TITLE_SUFFIX}"


# ═════════════════════════════════════════════════════════════════════════════
# State record
# ═════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class WizardState:
    """Snapshot of an in-progress operation draft.

    ``appointment_id`` is set once the draft has been confirmed; the wizard
    accepts no further actions after that.
    """

    step: int = STEP_DETAILS
    visited_steps: tuple[int, ...] = (STEP_DETAILS,)
    draft: dict = field(default_factory=dict)
    search_term: str = ""
    inventory_tab: str = "Equipment"
    title_edited: bool = False
    appointment_id: str | None = None

    @property
    def step_name(self) -> str:
        return STEP_NAMES[self.step]

    @property
    def is_confirmed(self) -> bool:
        return self.appointment_id is not None

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "step_name": self.step_name,
            "visited_steps": list(self.visited_steps),
            "draft": dict(self.draft),
            "search_term": self.search_term,
            "inventory_tab": self.inventory_tab,
            "title_edited": self.title_edited,
            "appointment_id": self.appointment_id,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "WizardState":
        """Rebuild a state sent back by the client, rejecting impossible ones."""
        if not data:
            return initial_state()
        try:
            step = int(data.get("step", STEP_DETAILS))
            visited = tuple(sorted({int(s) for s in data.get("visited_steps") or [step]}))
        except (TypeError, ValueError) as exc:
            raise ValidationError("Invalid wizard state", details={"step": data.get("step")}) from exc
        if step not in STEP_NAMES or any(s not in STEP_NAMES for s in visited):
            raise ValidationError("Invalid wizard step", details={"step": step})
        if step not in visited:
            raise ValidationError("Current step was never visited", details={"step": step})
        # Next only advances one step, so the visited steps are always 1..n.
        if visited != tuple(range(STEP_DETAILS, max(visited) + 1)):
            raise ValidationError("Wizard steps were skipped",
                                  details={"visited_steps": list(visited)})

        tab = data.get("inventory_tab") or "Equipment"
        if tab not in INVENTORY_TABS:
            raise ValidationError("Invalid inventory tab", details={"inventory_tab": tab})

        sent = data.get("draft") or {}
        if not isinstance(sent, dict):
            raise ValidationError("Invalid wizard draft", details={"draft": "invalid"})
        draft = _empty_draft()
        draft.update({k: v for k, v in sent.items() if k in draft})
        for key in DRAFT_FIELDS:
            draft[key] = _clean_field(key, draft.get(key))
        for key in selection_keys():
            value = draft.get(key)
            if value is not None and not isinstance(value, (list, tuple)):
                raise ValidationError(f"{key} must be a list", details={key: value})
            draft[key] = selection.normalize(value)

        return cls(
            step=step,
            visited_steps=visited,
            draft=draft,
            search_term=str(data.get("search_term") or ""),
            inventory_tab=tab,
            title_edited=bool(data.get("title_edited", False)),
            appointment_id=data.get("appointment_id") or None,
        )


def selection_keys() -> tuple[str, ...]:
    return tuple(TOGGLE_ACTIONS.values())


def _empty_draft(today: date | None = None) -> dict:
    return {
        "company_id": "",
        "title": "",
        "date": (today or date.today()).isoformat(),
        "start_time": DEFAULT_START_TIME,
        "end_time": DEFAULT_END_TIME,
        "type": "Screening",
        "test_ids": [],
        "staff_ids": [],
        "equipment_ids": [],
    }


def initial_state(today: date | None = None) -> WizardState:
    """Step 1, today's date, 09:00–17:00 Screening with empty selections."""
    return WizardState(draft=_empty_draft(today))


# ═════════════════════════════════════════════════════════════════════════════
# Pure transitions
# ═════════════════════════════════════════════════════════════════════════════


def _enter_step(state: WizardState, target: int) -> WizardState:
    visited = tuple(sorted(set(state.visited_steps) | {target}))
    search_term = "" if target in PICKER_STEPS else state.search_term
    return replace(state, step=target, visited_steps=visited, search_term=search_term)


def _next(state: WizardState) -> WizardState:
    if state.step >= STEP_REVIEW:
        raise ValidationError("Already at the final step", details={"step": state.step})
    return _enter_step(state, state.step + 1)


def _back(state: WizardState, target: int | None) -> WizardState:
    if target is None:
        target = state.step - 1
    try:
        target = int(target)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid target step", details={"step": target}) from exc
    if target < STEP_DETAILS or target > state.step or target not in state.visited_steps:
        raise ValidationError(
            "Can only go back to a visited step",
            details={"step": target, "current": state.step},
        )
    return _enter_step(state, target)


def _company_name(companies, company_id: str) -> str | None:
    for company in companies or ():
        if str(company.get("id")) == str(company_id):
            return company.get("name")
    return None


def _clean_field(name: str, value):
    if name in ("start_time", "end_time"):
        return normalize_time(value)
    if name == "date":
        try:
            parsed = parse_date_input(value)
        except ValueError as exc:
            raise ValidationError(str(exc), details={"date": value}) from exc
        return parsed.isoformat() if parsed else ""
    if name == "type":
        if value not in APPOINTMENT_TYPES:
            raise ValidationError(
                f"Invalid type. Must be one of: {sorted(APPOINTMENT_TYPES)}",
                details={"type": value},
            )
        return value
    return "" if value is None else str(value).strip()


def _set_field(state: WizardState, name: str, value, companies,
               preserve_manual_title: bool) -> WizardState:
    if name not in DRAFT_FIELDS:
        raise ValidationError(f"Unknown field: {name}", details={"field": name})
    value = _clean_field(name, value)
    draft = dict(state.draft)
    title_edited = state.title_edited

    if name == "title":
        # An emptied title goes back to being derived from the company.
        title_edited = bool(value)
    elif name == "company_id" and value and value != draft.get("company_id"):
        company_name = _company_name(companies, value)
        if company_name and not (preserve_manual_title and title_edited):
            draft["title"] = derive_title(company_name)

    draft[name] = value
    return replace(state, draft=draft, title_edited=title_edited)


def _toggle(state: WizardState, key: str, item_id) -> WizardState:
    if item_id in (None, ""):
        raise ValidationError("id is required", details={"id": "required"})
    draft = dict(state.draft)
    draft[key] = selection.toggle(draft.get(key), str(item_id))
    return replace(state, draft=draft)


def _switch_tab(state: WizardState, tab: str) -> WizardState:
    if tab not in INVENTORY_TABS:
        raise ValidationError(
            f"Invalid inventory tab. Must be one of: {sorted(INVENTORY_TABS)}",
            details={"inventory_tab": tab},
        )
    return replace(state, inventory_tab=tab, search_term="")


def apply_action(state: WizardState, action: dict, companies=None, *,
                 preserve_manual_title: bool = True) -> WizardState:
    """Return the state that results from one user action.

    Args:
        state: Current wizard state (never mutated).
        action: ``{"type": ..., ...}``; see the module docstring for types.
        companies: Company dicts used to derive the title on company change.
        preserve_manual_title: Keep a manually edited title on company change.

    Raises:
        ValidationError: Illegal transition, unknown action or bad field value.
    """
    if state.is_confirmed:
        raise ValidationError("Wizard already confirmed",
                              details={"appointment_id": state.appointment_id})

    kind = (action or {}).get("type")
    if kind == "next":
        return _next(state)
    if kind == "back":
        return _back(state, action.get("step"))
    if kind == "set_field":
        return _set_field(state, action.get("field"), action.get("value"),
                          companies, preserve_manual_title)
    if kind in TOGGLE_ACTIONS:
        return _toggle(state, TOGGLE_ACTIONS[kind], action.get("id"))
    if kind == "search":
        return replace(state, search_term=str(action.get("term") or ""))
    if kind == "set_inventory_tab":
        return _switch_tab(state, action.get("tab"))
    raise ValidationError(f"Unknown wizard action: {kind}", details={"type": kind})


def missing_required(draft: dict) -> list[str]:
    return [f for f in REQUIRED_FIELDS if not str(draft.get(f) or "").strip()]


def build_appointment(draft: dict) -> dict:
    """Turn a complete draft into a new Planned appointment record."""
    return {
        "id": new_id(),
        "company_id": draft["company_id"],
        "title": draft["title"].strip(),
        "date": draft["date"],
        "start_time": draft.get("start_time") or None,
        "end_time": draft.get("end_time") or None,
        "duration_minutes": calculate_duration(draft.get("start_time"), draft.get("end_time")),
        "type": draft.get("type") or "Screening",
        "status": DEFAULT_STATUS,
        "staff_ids": selection.normalize(draft.get("staff_ids")),
        "test_ids": selection.normalize(draft.get("test_ids")),
        "equipment_ids": selection.normalize(draft.get("equipment_ids")),
    }


# ═════════════════════════════════════════════════════════════════════════════
# Service layer (catalog reads/writes)
# ═════════════════════════════════════════════════════════════════════════════


def dispatch(catalog, state: WizardState, action: dict, *,
             preserve_manual_title: bool = True) -> WizardState:
    """Apply a pure action, resolving company names from the catalog."""
    companies = None
    if (action or {}).get("type") == "set_field" and action.get("field") == "company_id":
        companies = catalog.list_companies()
    return apply_action(state, action, companies, preserve_manual_title=preserve_manual_title)


def get_step_options(catalog, state: WizardState) -> dict:
    """Return what the current step lets the user pick from.

    Step 1 lists companies, steps 2-4 list filtered picker items with their
    selected flag, step 5 returns the review summary.
    """
    term = state.search_term
    draft = state.draft

    if state.step == STEP_DETAILS:
        items = search.filter_items(catalog.list_companies(), search.COMPANY_SEARCH_FIELDS, term)
        return {"step": state.step, "items": items}

    if state.step == STEP_SCOPE:
        chosen = selection.SelectionSet(draft.get("test_ids"))
        tests = catalog.list_tests()
        pool = [t for t in tests if t["id"] not in chosen]
        selected = [t for t in tests if t["id"] in chosen]
        return {
            "step": state.step,
            "items": search.filter_items(pool, search.TEST_SEARCH_FIELDS, term),
            "selected": selected,
        }

    if state.step == STEP_TEAM:
        chosen = selection.SelectionSet(draft.get("staff_ids"))
        items = search.filter_items(catalog.list_staff(), search.STAFF_SEARCH_FIELDS, term)
        return {
            "step": state.step,
            "items": [dict(s, selected=s["id"] in chosen) for s in items],
        }

    if state.step == STEP_INVENTORY:
        chosen = selection.SelectionSet(draft.get("equipment_ids"))
        equipment_type = INVENTORY_TABS[state.inventory_tab]
        active = [e for e in catalog.list_equipment(equipment_type) if e.get("status") == "Active"]
        items = search.filter_items(active, search.EQUIPMENT_SEARCH_FIELDS, term)
        return {
            "step": state.step,
            "inventory_tab": state.inventory_tab,
            "items": [dict(e, selected=e["id"] in chosen) for e in items],
            "selected_count": sum(1 for e in active if e["id"] in chosen),
        }

    return {"step": state.step, "summary": review_summary(catalog, state)}


def _resolve(records: list[dict], ids) -> list[dict]:
    by_id = {r["id"]: r for r in records}
    return [by_id[i] for i in ids or [] if i in by_id]


def review_summary(catalog, state: WizardState) -> dict:
    draft = state.draft
    duration = calculate_duration(draft.get("start_time"), draft.get("end_time"))
    return {
        "company": catalog.get_company(draft.get("company_id")),
        "title": draft.get("title"),
        "date": draft.get("date"),
        "start_time": draft.get("start_time"),
        "end_time": draft.get("end_time"),
        "type": draft.get("type"),
        "duration_minutes": duration,
        "duration_label": format_duration(duration),
        "tests": _resolve(catalog.list_tests(), draft.get("test_ids")),
        "staff": _resolve(catalog.list_staff(), draft.get("staff_ids")),
        "equipment": _resolve(catalog.list_equipment(), draft.get("equipment_ids")),
        "missing_fields": missing_required(draft),
        "conflicts": conflicts_for(catalog, draft) if draft.get("date") else [],
    }


def create_vehicle(catalog, name, serial_number, *, notifier=NotificationService) -> dict:
    """Create an Active Vehicle-subtype equipment record.

    Raises:
        ValidationError: Missing name or plate/serial; nothing is written.
    """
    name = (name or "").strip()
    serial_number = (serial_number or "").strip()
    missing = [f for f, v in (("name", name), ("serial_number", serial_number)) if not v]
    if missing:
        raise ValidationError(MSG_MISSING_VEHICLE, details={f: "required" for f in missing})

    vehicle = catalog.create_equipment({
        "name": name,
        "serial_number": serial_number,
        "equipment_type": "Vehicle",
        "status": "Active",
    })
    notifier.notify_equipment_added(vehicle)
    logger.info(
        "Vehicle registered",
        extra={"event_type": "vehicle_registered", "equipment_id": vehicle["id"]},
    )
    return vehicle


def register_vehicle(catalog, state: WizardState, name, serial_number, *,
                     notifier=NotificationService) -> dict:
    """Add a new vehicle from the Inventory step.

    Returns:
        The created equipment dict. The step's picker lists it right away.

    Raises:
        ValidationError: Wrong step or missing name/plate; nothing is written.
    """
    if state.is_confirmed:
        raise ValidationError("Wizard already confirmed")
    if state.step != STEP_INVENTORY:
        raise ValidationError(
            "Vehicles can only be registered from the Inventory step",
            details={"step": state.step},
        )
    return create_vehicle(catalog, name, serial_number, notifier=notifier)


def confirm(catalog, state: WizardState, *,
            notifier=NotificationService) -> tuple[WizardState, dict, list[dict]]:
    """Persist the draft as a new Planned appointment.

    Returns:
        (terminal state, created appointment, advisory conflicts)

    Raises:
        ValidationError: Not on Review, already confirmed, or company/title/date
            missing. No appointment is created.
    """
    if state.is_confirmed:
        raise ValidationError("Wizard already confirmed",
                              details={"appointment_id": state.appointment_id})
    if state.step != STEP_REVIEW:
        raise ValidationError("Confirm is only available on the Review step",
                              details={"step": state.step})
    missing = missing_required(state.draft)
    if missing:
        raise ValidationError(MSG_MISSING_BASICS, details={f: "required" for f in missing})

    record = build_appointment(state.draft)
    warnings = conflicts_for(catalog, record)
    appointment = catalog.create_appointment(record)
    notifier.notify_operation_planned(appointment)
    logger.info(
        "Operation planned",
        extra={
            "event_type": "operation_planned",
            "appointment_id": appointment["id"],
            "company_id": appointment["company_id"],
            "duration_minutes": appointment["duration_minutes"],
        },
    )
    return replace(state, appointment_id=appointment["id"]), appointment, warnings
