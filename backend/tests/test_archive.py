"""
Archive folder generator tests.

Verifies:
- The target is one calendar month ahead, rolling over in December
- A second run in the same month creates nothing
- Scheduled runs are bracketed by system-attributed events
"""

from datetime import date

import pytest

from portal.models import Folder, SystemEvent
from portal.services import archive_service, folder_service
from portal.services.access_service import SYSTEM_USER_NAME
from portal.services.folder_service import FolderScope

from .conftest import resolve


class TestTargetPeriod:
    @pytest.mark.parametrize("today,expected", [
        (date(2026, 10, 18), (2026, 11)),
        (date(2026, 12, 31), (2027, 1)),
        (date(2026, 1, 31), (2026, 2)),
    ])
    def test_one_month_ahead(self, today, expected):
        assert archive_service.target_period(today) == expected


class TestGenerate:
    def test_first_run_creates_year_and_month(self, seeded):
        result = archive_service.generate(None, today=date(2026, 10, 18))

        assert result.created == ["2026", "November 2026"]
        assert result.skipped_count == 0

        year = folder_service.get_folder_by_page("/payroll-archive/2026")
        month = folder_service.get_folder_by_page("/payroll-archive/2026/November")
        assert year.group == "PayrollArchive"
        assert year.parent_path == "/payroll-archive"
        assert month.parent_path == year.page
        assert month.parent_folder_id == year.id
        assert month.required_permissions == ["payroll_view"]

    def test_second_run_is_idempotent(self, seeded):
        archive_service.generate(None, today=date(2026, 10, 18))

        result = archive_service.generate(None, today=date(2026, 10, 25))

        assert result.to_dict() == {"created": [], "skipped_count": 2}
        assert seeded.query(Folder).count() == 2

    def test_december_rolls_into_next_year(self, seeded):
        archive_service.generate(None, today=date(2026, 11, 5))

        result = archive_service.generate(None, today=date(2026, 12, 5))

        assert result.created == ["2027", "January 2027"]
        assert folder_service.get_folder_by_page("/payroll-archive/2027/January") is not None

    def test_existing_year_is_reused(self, seeded):
        archive_service.generate(None, today=date(2026, 10, 18))

        result = archive_service.generate(None, today=date(2026, 11, 18))

        assert result.created == ["December 2026"]
        assert result.skipped_count == 1

    def test_each_creation_is_audited(self, seeded):
        archive_service.generate(None, today=date(2026, 10, 18))

        actions = [e.action for e in seeded.query(SystemEvent).all()]
        assert len([a for a in actions if a.startswith("Archive folder created")]) == 2

    def test_archive_years_visible_to_payroll_viewers(self, seeded, clerk):
        archive_service.generate(None, today=date(2026, 10, 18))

        listed = folder_service.list_visible_folders(FolderScope.by_group("PayrollArchive"), resolve(clerk))

        assert [f.name for f in listed] == ["2026"]


class TestScheduledRun:
    def test_start_and_finish_events(self, seeded):
        archive_service.run_scheduled(today=date(2026, 10, 18))

        events = seeded.query(SystemEvent).order_by(SystemEvent.id).all()
        assert events[0].action == "Scheduled archive folder generation started"
        assert events[-1].action.startswith("Scheduled archive folder generation finished: 2 created")
        assert {e.performed_by_name for e in events} == {SYSTEM_USER_NAME}
        assert all(e.performed_by_id is None for e in events)

    def test_failure_is_recorded_and_raised(self, seeded, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(archive_service, "generate", boom)

        with pytest.raises(RuntimeError):
            archive_service.run_scheduled(today=date(2026, 10, 18))

        actions = [e.action for e in seeded.query(SystemEvent).order_by(SystemEvent.id)]
        assert actions[-1] == "Scheduled archive folder generation failed: store unavailable"

    def test_manual_trigger_over_http(self, client, admin_headers, seeded):
        response = client.post('/folders/generate-archive', headers=admin_headers)

        assert response.status_code == 200
        assert len(response.get_json()['created']) == 2
