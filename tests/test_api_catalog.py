"""HTTP tests for the resource catalog, notification feed and health probes.

Coverage:
  1. catalog lists with search and role/type/status filters
  2. invalid enum filters → 422
  3. POST /equipment/vehicles → 201, 422 on missing plate
  4. staff skills fall back to role defaults
  5. notification feed: list, unread count, mark read, read-all, unknown id 404
  6. demo catalog seeding is idempotent
  7. health ready/live and request-id headers
"""

import pytest

from app.models.catalog import ROLE_DEFAULT_SKILLS
from app.services.demo_catalog import seed_demo_catalog
from app.services.notification import NotificationService

API = "/api/v1"


class TestCatalogLists:
    def test_companies_search(self, client, demo):
        res = client.get(f"{API}/companies?search=lojistik")
        assert res.status_code == 200
        assert [c["id"] for c in res.get_json()["items"]] == ["c-beta"]

    def test_staff_role_filter(self, client, demo):
        res = client.get(f"{API}/staff?role=Nurse")
        assert [s["id"] for s in res.get_json()["items"]] == ["s-nurse"]

    def test_staff_default_skills(self, client, demo):
        items = client.get(f"{API}/staff?search=selin").get_json()["items"]
        assert items[0]["skills"] == ROLE_DEFAULT_SKILLS["Doctor"]

    def test_tests_search_by_category(self, client, demo):
        items = client.get(f"{API}/tests?search=şitme").get_json()["items"]
        assert [t["id"] for t in items] == ["t-audio"]

    def test_equipment_filters(self, client, demo):
        items = client.get(f"{API}/equipment?type=Device").get_json()["items"]
        assert {e["id"] for e in items} == {"e-spiro", "e-ekg"}

        items = client.get(f"{API}/equipment?type=Device&status=Active").get_json()["items"]
        assert [e["id"] for e in items] == ["e-spiro"]

        items = client.get(f"{API}/equipment?search=34%20abc").get_json()["items"]
        assert [e["id"] for e in items] == ["e-van"]

    @pytest.mark.parametrize("query", ["staff?role=Pilot", "equipment?type=Boat",
                                       "equipment?status=Lost"])
    def test_invalid_filters(self, client, query):
        assert client.get(f"{API}/{query}").status_code == 422


class TestVehicleRegistration:
    def test_create(self, client, demo):
        res = client.post(f"{API}/equipment/vehicles",
                          json={"name": " Yedek Araç ", "serial_number": "06 YDK 06"})
        assert res.status_code == 201
        body = res.get_json()
        assert body["name"] == "Yedek Araç"
        assert body["status"] == "Active"

        items = client.get(f"{API}/equipment?type=Vehicle").get_json()["items"]
        assert body["id"] in [e["id"] for e in items]

    def test_missing_plate(self, client, demo):
        res = client.post(f"{API}/equipment/vehicles", json={"name": "Yedek Araç"})
        assert res.status_code == 422
        assert res.get_json()["details"] == {"serial_number": "required"}


class TestNotificationFeed:
    def _make_notifications(self):
        NotificationService.create(title="Randevu Planlandı", category="operation")
        NotificationService.create(title="Envanter Eklendi", category="inventory")

    def test_list_and_unread_count(self, client):
        self._make_notifications()
        body = client.get(f"{API}/notifications").get_json()
        assert body["total"] == 2
        assert client.get(f"{API}/notifications/unread-count").get_json() == {"unread_count": 2}

    def test_mark_read(self, client):
        self._make_notifications()
        nid = client.get(f"{API}/notifications").get_json()["items"][0]["id"]
        res = client.post(f"{API}/notifications/{nid}/read")
        assert res.status_code == 200
        assert res.get_json()["is_read"] is True

        body = client.get(f"{API}/notifications?unread_only=true").get_json()
        assert body["total"] == 1

    def test_mark_read_unknown(self, client):
        res = client.post(f"{API}/notifications/999/read")
        assert res.status_code == 404
        assert "back" not in res.get_json()

    def test_read_all(self, client):
        self._make_notifications()
        res = client.post(f"{API}/notifications/read-all", json={})
        assert res.get_json() == {"marked_read": 2}
        assert client.get(f"{API}/notifications/unread-count").get_json()["unread_count"] == 0


class TestDemoCatalog:
    def test_seed_is_idempotent(self, client):
        created = seed_demo_catalog()
        assert created > 0
        assert seed_demo_catalog() == 0
        assert client.get(f"{API}/companies").get_json()["total"] == 3


class TestHealth:
    def test_ready(self, client):
        assert client.get(f"{API}/health/ready").get_json() == {"status": "ok"}

    def test_live(self, client, demo):
        res = client.get(f"{API}/health/live")
        assert res.status_code == 200
        checks = res.get_json()["checks"]
        assert checks["database"]["status"] == "ok"
        assert checks["catalog"]["counts"]["companies"] == 2
        assert checks["messaging"]["transport"] == "link"

    def test_request_id_headers(self, client):
        res = client.get(f"{API}/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_unknown_route(self, client):
        res = client.get(f"{API}/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["error"] == "Not found"
