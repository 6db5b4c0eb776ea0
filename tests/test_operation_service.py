"""Tests for the operation lifecycle service.

Coverage:
  1. get / list with status, company, date-range and title filters
  2. edit: partial merge, duration recomputed when both times present
  3. edit: required fields enforced with nothing written
  4. status: any → any within the enum; Completed raises a notification
  5. delete by identity; unknown id → NotFoundError
  6. bulk notify: empty selection rejected before dispatch,
     per-recipient independence, skipped staff without phone
  7. message template wording and schedule label
  8. document requests: kind validation, result_report gated on Completed
  9. lifecycle notifications go through an injectable notifier
"""

from datetime import date

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.integrations.messaging_gateway import DispatchResult, LinkTransport, MessagingGateway
from app.models import db
from app.models.notification import Notification
from app.models.operation import Appointment
from app.services import operation_service as ops


def _make_operation(catalog, **overrides):
    record = {
        "id": "op-1",
        "company_id": "c-acme",
        "title": "Acme - Sağlık Taraması",
        "date": "2024-05-01",
        "start_time": "09:00",
        "end_time": "17:00",
        "duration_minutes": 480,
        "type": "Screening",
        "status": "Planned",
        "staff_ids": ["s-doc", "s-nurse"],
        "test_ids": ["t-hemo"],
        "equipment_ids": ["e-van"],
    }
    record.update(overrides)
    return catalog.create_appointment(record)


class _RecordingGateway:
    """Stands in for MessagingGateway; fails for the phones listed in fail_for."""

    def __init__(self, fail_for=(), raise_for=()):
        self.calls = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    def send(self, phone, text):
        self.calls.append((phone, text))
        if phone in self.raise_for:
            raise RuntimeError("transport exploded")
        if phone in self.fail_for:
            return DispatchResult(ok=False, phone=phone, error="HTTP 500: relay down")
        return DispatchResult(ok=True, phone=phone)


class _RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify_operation_completed(self, appointment):
        self.calls.append(("completed", appointment["id"]))

    def notify_operation_deleted(self, appointment_id):
        self.calls.append(("deleted", appointment_id))


class _RecordingDocuments:
    def __init__(self):
        self.calls = []

    def render(self, kind, bundle):
        self.calls.append((kind, bundle))
        return b"%PDF-fake"


def _notification_titles():
    rows = db.session.execute(db.select(Notification)).scalars().all()
    return [n.title for n in rows]


# ── Reads ────────────────────────────────────────────────────────────────────


class TestReads:
    def test_get_unknown_raises(self, catalog, demo):
        with pytest.raises(NotFoundError) as exc:
            ops.get_operation(catalog, "nope")
        assert exc.value.resource == "Appointment"

    def test_list_filters(self, catalog, demo):
        _make_operation(catalog)
        _make_operation(catalog, id="op-2", title="Beta Eğitim", company_id="c-beta",
                        date="2024-06-10", status="Completed")

        assert [a["id"] for a in ops.list_operations(catalog, status="Completed")] == ["op-2"]
        assert [a["id"] for a in ops.list_operations(catalog, company_id="c-acme")] == ["op-1"]
        assert [a["id"] for a in ops.list_operations(catalog, date_from="2024-06-01")] == ["op-2"]
        assert [a["id"] for a in ops.list_operations(catalog, date_to="01.05.2024")] == ["op-1"]
        assert [a["id"] for a in ops.list_operations(catalog, q="eğitim")] == ["op-2"]

    def test_list_newest_first(self, catalog, demo):
        _make_operation(catalog)
        _make_operation(catalog, id="op-2", date="2024-06-10")
        assert [a["id"] for a in ops.list_operations(catalog)] == ["op-2", "op-1"]

    def test_list_rejects_bad_filters(self, catalog):
        with pytest.raises(ValidationError):
            ops.list_operations(catalog, status="Done")
        with pytest.raises(ValidationError):
            ops.list_operations(catalog, date_from="yesterday")

    def test_detail_resolves_references(self, catalog, demo):
        _make_operation(catalog)
        detail = ops.get_operation_detail(catalog, "op-1")
        assert detail["company"]["name"] == "Acme"
        assert [s["id"] for s in detail["staff"]] == ["s-doc", "s-nurse"]
        assert [t["name"] for t in detail["tests"]] == ["Hemogram"]
        assert [e["id"] for e in detail["equipment"]] == ["e-van"]
        assert detail["duration_label"] == "8 sa"
        assert detail["conflicts"] == []

    def test_detail_skips_dangling_references(self, catalog, demo):
        _make_operation(catalog, staff_ids=["s-doc", "s-gone"])
        detail = ops.get_operation_detail(catalog, "op-1")
        assert [s["id"] for s in detail["staff"]] == ["s-doc"]

    def test_conflicts_report_shared_vehicle(self, catalog, demo):
        _make_operation(catalog)
        _make_operation(catalog, id="op-2", staff_ids=[], start_time="16:00", end_time="18:00")
        conflicts = ops.operation_conflicts(catalog, "op-2")
        assert len(conflicts) == 1
        assert conflicts[0]["appointment_id"] == "op-1"
        assert conflicts[0]["equipment_ids"] == ["e-van"]

    def test_cancelled_operations_do_not_conflict(self, catalog, demo):
        _make_operation(catalog, status="Cancelled")
        _make_operation(catalog, id="op-2")
        assert ops.operation_conflicts(catalog, "op-2") == []


# ── Edit ─────────────────────────────────────────────────────────────────────


class TestUpdateOperation:
    def test_partial_merge_keeps_other_fields(self, catalog, demo):
        _make_operation(catalog)
        updated = ops.update_operation(catalog, "op-1", {"title": "Yeni Başlık"})
        assert updated["title"] == "Yeni Başlık"
        assert updated["staff_ids"] == ["s-doc", "s-nurse"]
        assert updated["date"] == "2024-05-01"

    def test_time_change_recomputes_duration(self, catalog, demo):
        _make_operation(catalog)
        updated = ops.update_operation(catalog, "op-1", {"end_time": "12:30"})
        assert updated["duration_minutes"] == 210

    def test_supplied_duration_overwritten_when_times_present(self, catalog, demo):
        _make_operation(catalog)
        updated = ops.update_operation(catalog, "op-1", {"duration_minutes": 15})
        assert updated["duration_minutes"] == 480

    def test_supplied_duration_kept_without_times(self, catalog, demo):
        _make_operation(catalog, start_time=None, end_time=None, duration_minutes=0)
        updated = ops.update_operation(catalog, "op-1", {"duration_minutes": 90})
        assert updated["duration_minutes"] == 90

    def test_reversed_times_give_zero(self, catalog, demo):
        _make_operation(catalog)
        updated = ops.update_operation(catalog, "op-1", {"start_time": "18:00"})
        assert updated["duration_minutes"] == 0

    @pytest.mark.parametrize("field", ["title", "date", "company_id"])
    def test_required_fields_cannot_be_cleared(self, catalog, demo, field):
        _make_operation(catalog)
        with pytest.raises(ValidationError) as exc:
            ops.update_operation(catalog, "op-1", {field: ""})
        assert str(exc.value) == ops.MSG_MISSING_REQUIRED
        assert field in exc.value.details
        assert catalog.get_appointment("op-1")["title"] == "Acme - Sağlık Taraması"

    @pytest.mark.parametrize("changes", [
        {"status": "Done"},
        {"type": "Party"},
        {"start_time": "9am"},
        {"duration_minutes": -5},
        {"staff_ids": "s-doc"},
        {"created_at": "2020-01-01"},
    ])
    def test_invalid_values_rejected(self, catalog, demo, changes):
        _make_operation(catalog)
        with pytest.raises(ValidationError):
            ops.update_operation(catalog, "op-1", changes)

    def test_unknown_id(self, catalog, demo):
        with pytest.raises(NotFoundError):
            ops.update_operation(catalog, "missing", {"title": "x"})

    def test_selection_lists_deduplicated(self, catalog, demo):
        _make_operation(catalog)
        updated = ops.update_operation(catalog, "op-1", {"test_ids": ["t-audio", "t-audio"]})
        assert updated["test_ids"] == ["t-audio"]

    def test_toggle_selection(self, catalog, demo):
        _make_operation(catalog)
        updated = ops.toggle_selection(catalog, "op-1", "staff_ids", "s-driver")
        assert updated["staff_ids"] == ["s-doc", "s-nurse", "s-driver"]
        updated = ops.toggle_selection(catalog, "op-1", "staff_ids", "s-doc")
        assert updated["staff_ids"] == ["s-nurse", "s-driver"]

    def test_toggle_selection_bad_field(self, catalog, demo):
        _make_operation(catalog)
        with pytest.raises(ValidationError):
            ops.toggle_selection(catalog, "op-1", "company_id", "c-beta")


# ── Status / delete ──────────────────────────────────────────────────────────


class TestStatusAndDelete:
    @pytest.mark.parametrize("start,target", [
        ("Planned", "Completed"),
        ("Completed", "Planned"),
        ("Cancelled", "Completed"),
        ("Planned", "Planned"),
    ])
    def test_any_transition_allowed(self, catalog, demo, start, target):
        _make_operation(catalog, status=start)
        assert ops.set_status(catalog, "op-1", target)["status"] == target

    def test_invalid_status(self, catalog, demo):
        _make_operation(catalog)
        with pytest.raises(ValidationError):
            ops.set_status(catalog, "op-1", "Archived")

    def test_completion_notifies_once(self, catalog, demo):
        _make_operation(catalog)
        ops.set_status(catalog, "op-1", "Completed")
        ops.set_status(catalog, "op-1", "Completed")
        assert _notification_titles() == ["Tarama Tamamlandı"]

    def test_completion_via_edit_notifies(self, catalog, demo):
        _make_operation(catalog)
        ops.update_operation(catalog, "op-1", {"status": "Completed"})
        assert "Tarama Tamamlandı" in _notification_titles()

    def test_delete(self, catalog, demo):
        _make_operation(catalog)
        ops.delete_operation(catalog, "op-1")
        assert db.session.get(Appointment, "op-1") is None
        assert _notification_titles() == ["Randevu Silindi"]

    def test_delete_unknown(self, catalog, demo):
        with pytest.raises(NotFoundError):
            ops.delete_operation(catalog, "missing")

    def test_injected_notifier(self, catalog, demo):
        _make_operation(catalog)
        notifier = _RecordingNotifier()
        ops.set_status(catalog, "op-1", "Completed", notifier=notifier)
        ops.delete_operation(catalog, "op-1", notifier=notifier)
        assert notifier.calls == [("completed", "op-1"), ("deleted", "op-1")]
        assert _notification_titles() == []


# ── Messaging ────────────────────────────────────────────────────────────────


class TestMessageTemplate:
    def test_template_wording(self, catalog, demo):
        appointment = _make_operation(catalog, start_time="08:30")
        text = ops.build_message_template(catalog, appointment)
        assert text == (
            "Merhaba, *Acme* firması için planlanan *Acme - Sağlık Taraması* operasyonu "
            "01.05.2024 08:30 tarihinde gerçekleştirilecektir. Bilginize sunarız."
        )

    def test_schedule_without_start_time(self):
        assert ops.format_schedule({"date": "2024-05-01", "start_time": None}) == "01.05.2024"

    def test_schedule_accepts_date_objects(self):
        assert ops.format_schedule({"date": date(2024, 12, 31), "start_time": "9:05"}) == "31.12.2024 09:05"


class TestNotifyStaff:
    def test_empty_selection_rejected_before_dispatch(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway()
        for staff_ids in ([], None, ["", None]):
            with pytest.raises(ValidationError) as exc:
                ops.notify_staff(catalog, gateway, "op-1", staff_ids)
            assert str(exc.value) == "Lütfen en az bir personel seçin."
        assert gateway.calls == []

    def test_one_dispatch_per_recipient(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway()
        result = ops.notify_staff(catalog, gateway, "op-1", ["s-doc", "s-nurse"])
        assert [phone for phone, _ in gateway.calls] == ["0532 111 22 33", "+90 533 222 33 44"]
        assert result["sent"] == 2
        assert result["failed"] == 0
        assert gateway.calls[0][1] == result["message"]

    def test_duplicate_ids_dispatched_once(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway()
        ops.notify_staff(catalog, gateway, "op-1", ["s-doc", "s-doc"])
        assert len(gateway.calls) == 1

    def test_custom_message(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway()
        result = ops.notify_staff(catalog, gateway, "op-1", ["s-doc"], message="Yarın 08:00")
        assert gateway.calls[0][1] == "Yarın 08:00"
        assert result["message"] == "Yarın 08:00"

    def test_failures_are_independent(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway(fail_for={"0532 111 22 33"})
        result = ops.notify_staff(catalog, gateway, "op-1", ["s-doc", "s-nurse"])
        statuses = {r["staff_id"]: r["status"] for r in result["results"]}
        assert statuses == {"s-doc": "failed", "s-nurse": "sent"}
        assert result["results"][0]["error"] == "HTTP 500: relay down"

    def test_raising_gateway_recorded_as_failure(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway(raise_for={"0532 111 22 33"})
        result = ops.notify_staff(catalog, gateway, "op-1", ["s-doc", "s-nurse"])
        assert result["failed"] == 1
        assert result["sent"] == 1
        assert "transport exploded" in result["results"][0]["error"]

    def test_staff_without_phone_or_unknown_skipped(self, catalog, demo):
        _make_operation(catalog)
        gateway = _RecordingGateway()
        result = ops.notify_staff(catalog, gateway, "op-1", ["s-driver", "s-ghost", "s-doc"])
        assert result["skipped"] == 2
        assert result["sent"] == 1
        assert len(gateway.calls) == 1

    def test_link_transport_end_to_end(self, catalog, demo):
        _make_operation(catalog)
        gateway = MessagingGateway(LinkTransport())
        result = ops.notify_staff(catalog, gateway, "op-1", ["s-nurse"])
        entry = result["results"][0]
        assert entry["phone"] == "905332223344"
        assert entry["link"].startswith("https://wa.me/905332223344?text=Merhaba")

    def test_unknown_operation(self, catalog, demo):
        with pytest.raises(NotFoundError):
            ops.notify_staff(catalog, _RecordingGateway(), "missing", ["s-doc"])


# ── Documents ────────────────────────────────────────────────────────────────


class TestRequestDocument:
    @pytest.mark.parametrize("kind", ["task_order", "plan"])
    def test_available_for_planned(self, catalog, demo, kind):
        _make_operation(catalog)
        documents = _RecordingDocuments()
        assert ops.request_document(catalog, documents, "op-1", kind) == b"%PDF-fake"
        rendered_kind, bundle = documents.calls[0]
        assert rendered_kind == kind
        assert bundle["company"]["name"] == "Acme"
        assert [s["name"] for s in bundle["staff"]] == ["Dr. Selin Kaya", "Elif Şahin"]

    def test_result_report_requires_completed(self, catalog, demo):
        _make_operation(catalog)
        documents = _RecordingDocuments()
        with pytest.raises(ValidationError):
            ops.request_document(catalog, documents, "op-1", "result_report")
        assert documents.calls == []

        ops.set_status(catalog, "op-1", "Completed")
        assert ops.request_document(catalog, documents, "op-1", "result_report") == b"%PDF-fake"

    def test_unknown_kind(self, catalog, demo):
        _make_operation(catalog)
        with pytest.raises(ValidationError):
            ops.request_document(catalog, _RecordingDocuments(), "op-1", "invoice")
