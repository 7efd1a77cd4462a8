import datetime as dt
import inspect

from fastapi.testclient import TestClient

from reminder_app.api.v1.routers.admin_router import AdminRouter
from reminder_app.tasks.reminder_tasks import cycle_lock
from reminder_app.utils.clock import utc_now


class TestAdminRoutes:
    """Test suite for admin listings, stats and manual reminder dispatch."""

    def test_regular_user_is_forbidden(self, client: TestClient, auth_headers):
        response = client.get("/api/v1/admin/events", headers=auth_headers)
        assert response.status_code == 403

    def test_list_events_with_filters(self, client: TestClient, admin_auth_headers, sample_user, other_user, make_event):
        make_event(sample_user, title="pending-alice")
        make_event(sample_user, title="sent-alice", reminder_sent=True)
        make_event(other_user, title="pending-bob")

        response = client.get(
            "/api/v1/admin/events",
            params={"user_email": "ALICE@example.com", "reminder_sent": "false"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [e["title"] for e in data] == ["pending-alice"]
        assert data[0]["user_email"] == "alice@example.com"

    def test_pending_events(self, client: TestClient, admin_auth_headers, sample_user, make_event):
        make_event(sample_user, title="waiting")
        make_event(sample_user, title="done", reminder_sent=True)

        response = client.get("/api/v1/admin/events/pending", headers=admin_auth_headers)

        assert [e["title"] for e in response.json()["data"]] == ["waiting"]

    def test_paged_events_across_owners(self, client: TestClient, admin_auth_headers, sample_user, other_user, make_event):
        make_event(sample_user, title="one")
        make_event(other_user, title="two")

        response = client.get("/api/v1/admin/events/paged", params={"size": 1}, headers=admin_auth_headers)

        page = response.json()["data"]
        assert page["total_items"] == 2
        assert page["total_pages"] == 2
        assert page["content"][0]["user_email"] == "alice@example.com"

    def test_list_users_with_event_counts(self, client: TestClient, admin_auth_headers, sample_user, make_event):
        make_event(sample_user)
        make_event(sample_user)

        response = client.get("/api/v1/admin/users", headers=admin_auth_headers)

        users = {u["email"]: u["event_count"] for u in response.json()["data"]}
        assert users == {"alice@example.com": 2, "admin@example.com": 0}

    def test_send_reminder_now(self, client: TestClient, admin_auth_headers, sample_user, make_event, sender, db_session):
        event = make_event(sample_user, title="Dentist", reminder_time=utc_now() + dt.timedelta(days=2))

        response = client.post(f"/api/v1/admin/events/{event.id}/send-reminder", headers=admin_auth_headers)

        assert response.status_code == 200, response.text
        assert response.json()["status"] == "success"
        assert [d[0] for d in sender.delivered] == ["alice@example.com"]
        db_session.refresh(event)
        assert event.reminder_sent is True
        assert event.reminder_sent_time is not None

    def test_send_reminder_twice_is_rejected(self, client: TestClient, admin_auth_headers, sample_user, make_event, sender):
        event = make_event(sample_user)
        client.post(f"/api/v1/admin/events/{event.id}/send-reminder", headers=admin_auth_headers)

        response = client.post(f"/api/v1/admin/events/{event.id}/send-reminder", headers=admin_auth_headers)

        assert response.status_code == 400
        assert response.json()["data"]["error_code"] == "REMINDER_ALREADY_SENT"
        assert len(sender.delivered) == 1

    def test_send_reminder_missing_event(self, client: TestClient, admin_auth_headers, sender):
        response = client.post("/api/v1/admin/events/404/send-reminder", headers=admin_auth_headers)

        assert response.status_code == 404
        assert sender.delivered == []

    def test_send_reminder_delivery_failure(self, client: TestClient, admin_auth_headers, sample_user, make_event, sender, db_session):
        event = make_event(sample_user)
        sender.fail_for.add("alice@example.com")

        response = client.post(f"/api/v1/admin/events/{event.id}/send-reminder", headers=admin_auth_headers)

        assert response.status_code == 500
        assert response.json()["data"]["error_code"] == "DELIVERY_FAILED"
        db_session.refresh(event)
        assert event.reminder_sent is False

    def test_run_cycle_and_counters(self, client: TestClient, admin_auth_headers, sample_user, other_user, make_event, sender):
        now = utc_now()
        make_event(sample_user, reminder_time=now - dt.timedelta(hours=1))
        make_event(other_user, reminder_time=now - dt.timedelta(minutes=5))
        make_event(sample_user, reminder_time=now + dt.timedelta(hours=1))

        response = client.post("/api/v1/admin/reminders/run", headers=admin_auth_headers)

        assert response.status_code == 200, response.text
        report = response.json()["data"]
        assert report["due"] == 2
        assert report["sent"] == 2
        assert report["committed"] == 2
        assert len(sender.delivered) == 2

        counters = client.get("/api/v1/admin/reminders/counters", headers=admin_auth_headers).json()["data"]
        assert counters == {"sent": 2, "pending": 1}

    def test_run_cycle_conflicts_with_running_cycle(self, client: TestClient, admin_auth_headers, sample_user, make_event, sender, db_session):
        event = make_event(sample_user, reminder_time=utc_now() - dt.timedelta(minutes=5))

        assert cycle_lock.acquire(blocking=False)
        try:
            response = client.post("/api/v1/admin/reminders/run", headers=admin_auth_headers)
        finally:
            cycle_lock.release()

        assert response.status_code == 409
        assert response.json()["data"]["error_code"] == "CYCLE_ALREADY_RUNNING"
        assert sender.delivered == []
        db_session.refresh(event)
        assert event.reminder_sent is False

        assert client.post("/api/v1/admin/reminders/run", headers=admin_auth_headers).status_code == 200
        assert len(sender.delivered) == 1

    def test_delivering_handlers_run_in_threadpool(self):
        assert not inspect.iscoroutinefunction(AdminRouter._run_cycle)
        assert not inspect.iscoroutinefunction(AdminRouter._send_reminder_now)

    def test_stats(self, client: TestClient, admin_auth_headers, sample_user, make_event):
        now = utc_now()
        make_event(sample_user, reminder_time=now + dt.timedelta(hours=3))
        make_event(sample_user, reminder_time=now - dt.timedelta(days=1), reminder_sent=True)

        response = client.get("/api/v1/admin/stats", headers=admin_auth_headers)

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_users"] == 2
        assert stats["total_events"] == 2
        assert stats["total_reminders_sent"] == 1
        assert stats["total_pending_reminders"] == 1
        assert stats["count_upcoming_reminders_next_24_hours"] == 1
        assert len(stats["events_last_7_days"]) == 7
