import datetime as dt

from fastapi.testclient import TestClient

from reminder_app.models.event_model import Event
from reminder_app.utils.clock import utc_now


def _payload(**overrides) -> dict:
    reminder_time = utc_now() + dt.timedelta(hours=2)
    data = {
        "title": "Team sync",
        "description": "Weekly planning",
        "event_date": reminder_time.date().isoformat(),
        "reminder_time": reminder_time.isoformat(),
    }
    data.update(overrides)
    return data


class TestEventRoutes:
    """Test suite for the owner-facing event API."""

    def test_requires_authentication(self, client: TestClient):
        response = client.get("/api/v1/events")
        assert response.status_code == 401

    def test_rejects_invalid_token(self, client: TestClient):
        response = client.get("/api/v1/events", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_disabled_user_is_rejected(self, client: TestClient, make_user, headers_for, db_session):
        user = make_user("disabled@example.com")
        user.enabled = False
        db_session.commit()

        response = client.get("/api/v1/events", headers=headers_for(user))
        assert response.status_code == 401

    def test_create_event_starts_pending(self, client: TestClient, auth_headers, db_session):
        response = client.post("/api/v1/events", json=_payload(title="  Team sync  "), headers=auth_headers)

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["title"] == "Team sync"
        assert body["data"]["reminder_sent"] is False
        assert body["data"]["reminder_sent_time"] is None
        assert db_session.get(Event, body["data"]["id"]) is not None

    def test_create_event_normalizes_timezone(self, client: TestClient, auth_headers):
        payload = _payload(reminder_time="2030-05-01T12:30:45.123456+02:00", event_date="2030-05-01")
        response = client.post("/api/v1/events", json=payload, headers=auth_headers)

        assert response.status_code == 201, response.text
        assert response.json()["data"]["reminder_time"] == "2030-05-01T10:30:45"

    def test_create_event_blank_title(self, client: TestClient, auth_headers):
        response = client.post("/api/v1/events", json=_payload(title="   "), headers=auth_headers)
        assert response.status_code == 422

    def test_list_only_own_events(self, client: TestClient, auth_headers, sample_user, other_user, make_event):
        make_event(sample_user, title="Mine")
        make_event(other_user, title="Theirs")

        response = client.get("/api/v1/events", headers=auth_headers)

        assert response.status_code == 200
        titles = [e["title"] for e in response.json()["data"]]
        assert titles == ["Mine"]

    def test_get_event(self, client: TestClient, auth_headers, sample_user, make_event):
        event = make_event(sample_user, title="Dentist")

        response = client.get(f"/api/v1/events/{event.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Dentist"

    def test_get_event_of_other_user_is_forbidden(self, client: TestClient, auth_headers, other_user, make_event):
        event = make_event(other_user)

        response = client.get(f"/api/v1/events/{event.id}", headers=auth_headers)

        assert response.status_code == 403
        body = response.json()
        assert body["status"] == "error"
        assert body["data"]["error_code"] == "EVENT_ACCESS_DENIED"

    def test_get_missing_event(self, client: TestClient, auth_headers):
        response = client.get("/api/v1/events/999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["data"]["error_code"] == "EVENT_NOT_FOUND"

    def test_update_reschedules_sent_reminder(self, client: TestClient, auth_headers, sample_user, make_event):
        event = make_event(sample_user, reminder_sent=True)
        new_time = (utc_now() + dt.timedelta(days=1)).replace(microsecond=0)

        response = client.put(
            f"/api/v1/events/{event.id}",
            json=_payload(title="Moved", reminder_time=new_time.isoformat(), event_date=new_time.date().isoformat()),
            headers=auth_headers,
        )

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["title"] == "Moved"
        assert data["reminder_sent"] is False
        assert data["reminder_sent_time"] is None
        assert data["reminder_time"] == new_time.isoformat()

    def test_update_other_users_event_is_forbidden(self, client: TestClient, auth_headers, other_user, make_event):
        event = make_event(other_user, title="Theirs")

        response = client.put(f"/api/v1/events/{event.id}", json=_payload(), headers=auth_headers)

        assert response.status_code == 403
        assert event.title == "Theirs"

    def test_delete_event(self, client: TestClient, auth_headers, sample_user, make_event):
        event = make_event(sample_user, title="Gone soon")

        response = client.delete(f"/api/v1/events/{event.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Gone soon"
        assert client.get(f"/api/v1/events/{event.id}", headers=auth_headers).status_code == 404

    def test_paged_events(self, client: TestClient, auth_headers, sample_user, make_event):
        for title in ("alpha", "bravo", "charlie"):
            make_event(sample_user, title=title)

        response = client.get(
            "/api/v1/events/paged",
            params={"page": 0, "size": 2, "sort_by": "title", "direction": "desc"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        page = response.json()["data"]
        assert [e["title"] for e in page["content"]] == ["charlie", "bravo"]
        assert page["total_items"] == 3
        assert page["total_pages"] == 2
        assert page["size"] == 2

    def test_paged_events_unknown_sort_and_size_fall_back(self, client: TestClient, auth_headers, sample_user, make_event):
        first = make_event(sample_user, title="b")
        second = make_event(sample_user, title="a")

        response = client.get(
            "/api/v1/events/paged",
            params={"sort_by": "password", "size": 1000, "page": -3},
            headers=auth_headers,
        )

        page = response.json()["data"]
        assert [e["id"] for e in page["content"]] == [first.id, second.id]
        assert page["size"] == 10
        assert page["current_page"] == 0

    def test_paged_events_search(self, client: TestClient, auth_headers, sample_user, make_event):
        make_event(sample_user, title="Dentist", description="Bring X-RAYS")
        make_event(sample_user, title="Gym")

        response = client.get("/api/v1/events/paged", params={"search": "x-ray"}, headers=auth_headers)

        page = response.json()["data"]
        assert [e["title"] for e in page["content"]] == ["Dentist"]

    def test_upcoming_window(self, client: TestClient, auth_headers, sample_user, make_event):
        now = utc_now()
        make_event(sample_user, title="soon", reminder_time=now + dt.timedelta(minutes=3))
        make_event(sample_user, title="later", reminder_time=now + dt.timedelta(hours=3))
        make_event(sample_user, title="done", reminder_time=now + dt.timedelta(minutes=2), reminder_sent=True)

        response = client.get("/api/v1/events/upcoming", params={"minute": 10}, headers=auth_headers)

        assert response.status_code == 200
        assert [e["title"] for e in response.json()["data"]] == ["soon"]

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["scheduler_running"] is False
