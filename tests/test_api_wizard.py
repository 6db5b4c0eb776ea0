"""HTTP tests for the operation wizard blueprint.

Coverage:
  1. GET /new returns a step-1 state
  2. POST /actions applies one action; company choice derives the title
  3. illegal transitions and bad state payloads → 422
  4. POST /options per step
  5. POST /vehicles from the Inventory step → 201
  6. full walk-through ending in POST /confirm → 201 + Planned appointment
"""

from app.models import db
from app.models.operation import Appointment

BASE = "/api/v1/operation-wizard"


def _act(client, state, **action):
    res = client.post(f"{BASE}/actions", json={"state": state, "action": action})
    assert res.status_code == 200, res.get_json()
    return res.get_json()["state"]


def _new(client):
    return client.get(f"{BASE}/new").get_json()["state"]


class TestWizardActions:
    def test_new_state(self, client):
        state = _new(client)
        assert state["step"] == 1
        assert state["step_name"] == "Details"
        assert state["draft"]["start_time"] == "09:00"

    def test_company_derives_title(self, client, demo):
        state = _act(client, _new(client), type="set_field", field="company_id", value="c-acme")
        assert state["draft"]["title"] == "Acme - Sağlık Taraması"

    def test_missing_action(self, client):
        res = client.post(f"{BASE}/actions", json={"state": _new(client)})
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_next_past_review_rejected(self, client):
        state = _new(client)
        for _ in range(4):
            state = _act(client, state, type="next")
        res = client.post(f"{BASE}/actions", json={"state": state, "action": {"type": "next"}})
        assert res.status_code == 422

    def test_forged_state_rejected(self, client):
        res = client.post(f"{BASE}/actions", json={
            "state": {"step": 5, "visited_steps": [1]}, "action": {"type": "back"},
        })
        assert res.status_code == 422

    def test_skipped_steps_rejected(self, client, demo):
        res = client.post(f"{BASE}/confirm", json={"state": {
            "step": 5, "visited_steps": [5],
            "draft": {"company_id": "c-acme", "title": "T", "date": "2024-05-01"},
        }})
        assert res.status_code == 422
        assert db.session.query(Appointment).count() == 0

    def test_bad_draft_date_rejected(self, client, demo):
        state = _new(client)
        for _ in range(4):
            state = _act(client, state, type="next")
        state["draft"].update(company_id="c-acme", title="T", date="not-a-date")
        res = client.post(f"{BASE}/confirm", json={"state": state})
        assert res.status_code == 422
        assert res.get_json()["details"] == {"date": "not-a-date"}
        assert db.session.query(Appointment).count() == 0

    def test_non_object_state_rejected(self, client):
        res = client.post(f"{BASE}/options", json={"state": "step-3"})
        assert res.status_code == 422

    def test_form_body_rejected(self, client):
        res = client.post(f"{BASE}/actions", data="next", content_type="text/plain")
        assert res.status_code == 415


class TestWizardOptions:
    def test_details_step_companies(self, client, demo):
        res = client.post(f"{BASE}/options", json={"state": _new(client)})
        assert res.status_code == 200
        assert len(res.get_json()["items"]) == 2

    def test_team_step_search(self, client, demo):
        state = _act(client, _new(client), type="next")
        state = _act(client, state, type="next")
        state = _act(client, state, type="search", term="hekim")
        items = client.post(f"{BASE}/options", json={"state": state}).get_json()["items"]
        assert items == []

        state = _act(client, state, type="search", term="selin")
        items = client.post(f"{BASE}/options", json={"state": state}).get_json()["items"]
        assert [s["id"] for s in items] == ["s-doc"]


class TestWizardVehicles:
    def _inventory_state(self, client):
        state = _new(client)
        for _ in range(3):
            state = _act(client, state, type="next")
        return _act(client, state, type="set_inventory_tab", tab="Vehicle")

    def test_register_vehicle(self, client, demo):
        state = self._inventory_state(client)
        res = client.post(f"{BASE}/vehicles", json={
            "state": state, "name": "Yedek Araç", "serial_number": "06 YDK 06",
        })
        assert res.status_code == 201
        vehicle = res.get_json()["vehicle"]
        assert vehicle["equipment_type"] == "Vehicle"

        items = client.post(f"{BASE}/options", json={"state": state}).get_json()["items"]
        assert vehicle["id"] in [e["id"] for e in items]

    def test_register_vehicle_missing_plate(self, client, demo):
        res = client.post(f"{BASE}/vehicles", json={
            "state": self._inventory_state(client), "name": "Yedek Araç",
        })
        assert res.status_code == 422
        assert res.get_json()["error"] == "Lütfen araç adı ve plaka/seri no girin."

    def test_register_vehicle_wrong_step(self, client, demo):
        res = client.post(f"{BASE}/vehicles", json={
            "state": _new(client), "name": "Araç", "serial_number": "06 X 1",
        })
        assert res.status_code == 422


class TestWizardConfirm:
    def test_full_walkthrough(self, client, demo):
        state = _act(client, _new(client), type="set_field", field="company_id", value="c-acme")
        state = _act(client, state, type="set_field", field="date", value="2024-05-01")
        state = _act(client, state, type="next")
        state = _act(client, state, type="toggle_test", id="t-hemo")
        state = _act(client, state, type="next")
        state = _act(client, state, type="toggle_staff", id="s-doc")
        state = _act(client, state, type="toggle_staff", id="s-nurse")
        state = _act(client, state, type="next")
        state = _act(client, state, type="toggle_equipment", id="e-spiro")
        state = _act(client, state, type="next")

        summary = client.post(f"{BASE}/options", json={"state": state}).get_json()["summary"]
        assert summary["duration_label"] == "8 sa"
        assert summary["missing_fields"] == []

        res = client.post(f"{BASE}/confirm", json={"state": state})
        assert res.status_code == 201
        body = res.get_json()
        assert body["appointment"]["status"] == "Planned"
        assert body["appointment"]["test_ids"] == ["t-hemo"]
        assert body["appointment"]["staff_ids"] == ["s-doc", "s-nurse"]
        assert body["state"]["appointment_id"] == body["appointment"]["id"]
        assert db.session.query(Appointment).count() == 1

    def test_confirm_missing_basics(self, client, demo):
        state = _new(client)
        for _ in range(4):
            state = _act(client, state, type="next")
        res = client.post(f"{BASE}/confirm", json={"state": state})
        assert res.status_code == 422
        body = res.get_json()
        assert body["error"] == "Lütfen temel bilgileri eksiksiz doldurun."
        assert set(body["details"]) == {"company_id", "title"}
        assert db.session.query(Appointment).count() == 0

    def test_confirmed_state_cannot_confirm_again(self, client, demo):
        state = _act(client, _new(client), type="set_field", field="company_id", value="c-acme")
        for _ in range(4):
            state = _act(client, state, type="next")
        first = client.post(f"{BASE}/confirm", json={"state": state}).get_json()["state"]
        res = client.post(f"{BASE}/confirm", json={"state": first})
        assert res.status_code == 422
        assert db.session.query(Appointment).count() == 1
