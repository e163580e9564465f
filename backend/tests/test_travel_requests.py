"""API tests for /api/v1/travel-requests: envelope, status codes and scoping."""
from datetime import timedelta

from app.models.travel_request import TravelRequestStatus
from app.services.travel_request_service import local_today
from tests.conftest import admin_headers, create_travel_request, trip_payload, user_headers

BASE = "/api/v1/travel-requests"


class TestCreate:

    def test_create_travel_request(self, client):
        """Valid trip -> 201, status requested, owned by caller."""
        headers = user_headers(client)
        resp = client.post(f"{BASE}/", json=trip_payload(days_ahead=1, length=5), headers=headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Travel request created successfully"
        data = body["data"]
        assert data["status"] == {"value": "requested", "label": "Requested"}
        assert data["duration_days"] == 6
        assert data["owner"]["email"] == "user@example.com"

    def test_requires_authentication(self, client):
        resp = client.post(f"{BASE}/", json=trip_payload())
        assert resp.status_code == 401
        assert resp.json()["error_code"] == "TOKEN_NOT_PROVIDED"

    def test_departure_in_the_past(self, client):
        headers = user_headers(client)
        resp = client.post(f"{BASE}/", json=trip_payload(days_ahead=-1), headers=headers)
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "departure_date" in body["data"]["errors"]

    def test_return_same_as_departure(self, client):
        headers = user_headers(client)
        resp = client.post(f"{BASE}/", json=trip_payload(length=0), headers=headers)
        assert resp.status_code == 422
        assert resp.json()["data"]["errors"]["return_date"] == [
            "The return date must be different from the departure date."
        ]

    def test_missing_fields_use_the_envelope(self, client):
        headers = user_headers(client)
        resp = client.post(f"{BASE}/", json={"destination": "Nowhere"}, headers=headers)
        assert resp.status_code == 422
        errors = resp.json()["data"]["errors"]
        assert {"requester_name", "departure_date", "return_date"} <= set(errors)

    def test_notes_too_long(self, client):
        headers = user_headers(client)
        resp = client.post(f"{BASE}/", json=trip_payload(notes="x" * 1001), headers=headers)
        assert resp.status_code == 422
        assert "notes" in resp.json()["data"]["errors"]

    def test_blank_name_and_destination_rejected(self, client):
        headers = user_headers(client)
        resp = client.post(
            f"{BASE}/", json=trip_payload(requester_name="   ", destination="   "), headers=headers,
        )
        assert resp.status_code == 422
        errors = resp.json()["data"]["errors"]
        assert {"requester_name", "destination"} <= set(errors)

    def test_text_fields_are_trimmed(self, client):
        headers = user_headers(client)
        data = create_travel_request(client, headers, destination="  Recife, PE  ", notes="   ")
        assert data["destination"] == "Recife, PE"
        assert data["notes"] is None


class TestShow:

    def test_owner_can_view(self, client):
        headers = user_headers(client)
        tr = create_travel_request(client, headers)
        resp = client.get(f"{BASE}/{tr['request_id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["request_id"] == tr["request_id"]

    def test_other_user_forbidden(self, client):
        tr = create_travel_request(client, user_headers(client))
        other = user_headers(client, name="Other", email="other@example.com")
        resp = client.get(f"{BASE}/{tr['request_id']}", headers=other)
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "FORBIDDEN"

    def test_admin_can_view_any(self, client, db):
        tr = create_travel_request(client, user_headers(client))
        resp = client.get(f"{BASE}/{tr['request_id']}", headers=admin_headers(client, db))
        assert resp.status_code == 200

    def test_unknown_id(self, client):
        resp = client.get(f"{BASE}/missing", headers=user_headers(client))
        assert resp.status_code == 404
        assert resp.json() == {
            "success": False,
            "message": "Travel request not found",
            "error_code": "NOT_FOUND",
            "data": None,
        }


class TestUpdateStatus:

    def test_admin_approves(self, client, db, notifications):
        tr = create_travel_request(client, user_headers(client))
        resp = client.patch(
            f"{BASE}/{tr['request_id']}/status", json={"status": "approved"}, headers=admin_headers(client, db),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"]["value"] == "approved"
        assert len(notifications) == 1
        assert notifications[0].request_id == tr["request_id"]
        assert notifications[0].previous_status == TravelRequestStatus.requested
        assert notifications[0].new_status == TravelRequestStatus.approved

    def test_non_admin_forbidden_even_on_own_request(self, client, notifications):
        """Scenario: regular users can never use the status endpoint."""
        headers = user_headers(client)
        tr = create_travel_request(client, headers)
        resp = client.patch(f"{BASE}/{tr['request_id']}/status", json={"status": "approved"}, headers=headers)
        assert resp.status_code == 403
        assert notifications == []

    def test_invalid_status_value(self, client, db):
        tr = create_travel_request(client, user_headers(client))
        resp = client.patch(
            f"{BASE}/{tr['request_id']}/status", json={"status": "archived"}, headers=admin_headers(client, db),
        )
        assert resp.status_code == 422
        assert "status" in resp.json()["data"]["errors"]

    def test_unknown_id(self, client, db):
        resp = client.patch(f"{BASE}/missing/status", json={"status": "approved"}, headers=admin_headers(client, db))
        assert resp.status_code == 404


class TestCancel:

    def test_owner_cancels(self, client, notifications):
        headers = user_headers(client)
        tr = create_travel_request(client, headers)
        resp = client.patch(f"{BASE}/{tr['request_id']}/cancel", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"]["value"] == "cancelled"
        assert notifications[0].new_status == TravelRequestStatus.cancelled

    def test_other_user_forbidden(self, client):
        tr = create_travel_request(client, user_headers(client))
        other = user_headers(client, name="Other", email="other@example.com")
        resp = client.patch(f"{BASE}/{tr['request_id']}/cancel", headers=other)
        assert resp.status_code == 403

    def test_already_cancelled(self, client):
        headers = user_headers(client)
        tr = create_travel_request(client, headers)
        client.patch(f"{BASE}/{tr['request_id']}/cancel", headers=headers)
        resp = client.patch(f"{BASE}/{tr['request_id']}/cancel", headers=headers)
        assert resp.status_code == 422
        assert resp.json()["message"] == "This request is already cancelled."


class TestApprovalScenario:

    def test_approve_then_revert_then_cancel(self, client, db, notifications):
        """Approved requests stay approved: no revert, no owner cancellation."""
        owner = user_headers(client)
        admin = admin_headers(client, db)
        tr = create_travel_request(client, owner, days_ahead=1, length=5)
        url = f"{BASE}/{tr['request_id']}"

        assert client.patch(f"{url}/status", json={"status": "approved"}, headers=admin).status_code == 200

        resp = client.patch(f"{url}/status", json={"status": "requested"}, headers=admin)
        assert resp.status_code == 422
        assert resp.json()["data"]["errors"]["status"] == [
            "Approved requests can only be cancelled, not reverted or changed to another status."
        ]

        resp = client.patch(f"{url}/cancel", headers=owner)
        assert resp.status_code == 422
        assert resp.json()["message"] == "Approved requests cannot be cancelled."

        assert client.get(url, headers=owner).json()["data"]["status"]["value"] == "approved"
        assert len(notifications) == 1


class TestList:

    def test_regular_user_sees_only_own(self, client):
        """Scenario: list is forced to the caller's rows whatever the filters."""
        mine = user_headers(client)
        other = user_headers(client, name="Other", email="other@example.com")
        create_travel_request(client, mine, destination="Recife, PE")
        create_travel_request(client, other, destination="Recife, PE")
        create_travel_request(client, other, destination="Tokyo")

        resp = client.get(f"{BASE}/", headers=mine)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["owner"]["email"] == "user@example.com"

        resp = client.get(f"{BASE}/?destination=Tokyo", headers=mine)
        assert resp.json()["data"]["total"] == 0

    def test_admin_sees_all_newest_first(self, client, db):
        mine = user_headers(client)
        first = create_travel_request(client, mine, destination="First")
        second = create_travel_request(client, mine, destination="Second")
        resp = client.get(f"{BASE}/", headers=admin_headers(client, db))
        ids = [item["request_id"] for item in resp.json()["data"]["items"]]
        assert ids == [second["request_id"], first["request_id"]]

    def test_filters(self, client, db):
        headers = user_headers(client)
        admin = admin_headers(client, db)
        early = create_travel_request(client, headers, destination="Porto Alegre, RS", days_ahead=3)
        create_travel_request(client, headers, destination="Manaus, AM", days_ahead=30)
        client.patch(f"{BASE}/{early['request_id']}/status", json={"status": "approved"}, headers=admin)

        resp = client.get(f"{BASE}/?status=approved", headers=headers)
        assert [i["destination"] for i in resp.json()["data"]["items"]] == ["Porto Alegre, RS"]

        resp = client.get(f"{BASE}/?destination=manaus", headers=headers)
        assert [i["destination"] for i in resp.json()["data"]["items"]] == ["Manaus, AM"]

        date_to = (local_today() + timedelta(days=10)).isoformat()
        resp = client.get(f"{BASE}/?date_to={date_to}", headers=headers)
        assert [i["destination"] for i in resp.json()["data"]["items"]] == ["Porto Alegre, RS"]

        resp = client.get(f"{BASE}/?request_date_from=2000-01-01&request_date_to=2000-01-31", headers=headers)
        assert resp.json()["data"]["total"] == 0

    def test_pagination(self, client):
        headers = user_headers(client)
        for n in range(3):
            create_travel_request(client, headers, destination=f"City {n}")
        data = client.get(f"{BASE}/?per_page=2&page=2", headers=headers).json()["data"]
        assert data["total"] == 3
        assert data["page"] == 2
        assert data["per_page"] == 2
        assert data["last_page"] == 2
        assert len(data["items"]) == 1

    def test_invalid_status_filter(self, client):
        resp = client.get(f"{BASE}/?status=unknown", headers=user_headers(client))
        assert resp.status_code == 422


class TestStats:

    def test_stats_for_user_and_admin(self, client, db):
        mine = user_headers(client)
        other = user_headers(client, name="Other", email="other@example.com")
        tr = create_travel_request(client, mine)
        create_travel_request(client, mine)
        create_travel_request(client, other)
        client.patch(f"{BASE}/{tr['request_id']}/cancel", headers=mine)

        resp = client.get(f"{BASE}/stats", headers=mine)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"total": 2, "pending": 1, "approved": 0, "cancelled": 1}

        resp = client.get(f"{BASE}/stats", headers=admin_headers(client, db))
        assert resp.json()["data"] == {"total": 3, "pending": 2, "approved": 0, "cancelled": 1}
