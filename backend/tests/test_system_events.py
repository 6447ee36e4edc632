"""
System event log tests.

Verifies:
- Listing is newest first and paginated
- A failed audit write never fails the caller
"""

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from portal.models import SystemEvent
from portal.services import system_event_service
from portal.services.access_service import SYSTEM_USER_NAME

from .conftest import resolve


class TestRecord:
    def test_system_actor(self, seeded):
        event = system_event_service.record(None, "Nightly job ran")

        assert event.performed_by_id is None
        assert event.performed_by_name == SYSTEM_USER_NAME

    def test_user_actor(self, clerk):
        event = system_event_service.record(resolve(clerk), "Viewed payroll")

        assert event.performed_by_id == clerk.id
        assert event.performed_by_name == "Clerk Tester"

    def test_failed_write_returns_none(self, seeded, monkeypatch):
        def failing_commit(self):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(Session, "commit", failing_commit)

        assert system_event_service.record(None, "Will not stick") is None

        monkeypatch.undo()
        assert seeded.query(SystemEvent).filter_by(action="Will not stick").count() == 0


class TestListEvents:
    def test_newest_first_and_pagination(self, seeded):
        for i in range(25):
            system_event_service.record(None, f"event {i}")

        first = system_event_service.list_events(page=1, page_size=10)
        last = system_event_service.list_events(page=3, page_size=10)

        assert first["total_events"] == 25
        assert first["total_pages"] == 3
        assert first["events"][0]["action"] == "event 24"
        assert len(last["events"]) == 5
        assert last["events"][-1]["action"] == "event 0"

    def test_page_size_is_capped(self, seeded):
        assert system_event_service.list_events(page_size=1000)["page_size"] == 100

    def test_out_of_range_page_is_empty(self, seeded):
        system_event_service.record(None, "only one")

        assert system_event_service.list_events(page=5)["events"] == []

    def test_over_http(self, client, admin_headers):
        response = client.get('/system-events', headers=admin_headers, query_string={'page': 1, 'limit': 5})

        assert response.status_code == 200
        body = response.get_json()
        assert body['page_size'] == 5
        assert body['events'][0]['action'] == 'User logged in'
