# Overview: Service-layer operations for the payroll archive; encapsulates business logic and database work.

"""
Payroll Archive Folder Generator

WHY: Each month needs a year folder and a month folder under the archive root
before payroll PDFs for that month arrive. The target is always one calendar
month ahead of "today".

CONCURRENCY: generate() may run from the HTTP trigger, the CLI and the worker
at once, across instances. Creation is attempt-insert; a unique-index
rejection on page means another run won the race, and the existing folder
is re-read and counted as skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db
from ..models import Folder, FolderPermission
from ..time_utils import utcnow
from . import folder_service, system_event_service
from .access_service import ResolvedUser

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

YEAR_THEME = "blue"
MONTH_THEME = "green"


@dataclass
class ArchiveResult:
    created: list[str] = field(default_factory=list)
    skipped_count: int = 0

    def to_dict(self) -> dict:
        return {"created": list(self.created), "skipped_count": self.skipped_count}


def target_period(today: date) -> tuple[int, int]:
    """(year, month) one calendar month after today."""
    if today.month == 12:
        return today.year + 1, 1
    return today.year, today.month + 1


def _ensure_folder(
    *,
    page: str,
    name: str,
    parent_path: str,
    parent_folder_id: int | None,
    group: str,
    theme: str,
    subtitle: str,
    sort_order: int,
    required_permissions: list[str],
    actor: ResolvedUser | None,
) -> tuple[Folder, bool]:
    """Look up by exact page; create if absent. Returns (folder, created)."""
    existing = folder_service.get_folder_by_page(page)
    if existing is not None:
        return existing, False

    actor_id = actor.id if actor else None
    folder = Folder(
        name=name,
        page=page,
        parent_path=parent_path,
        parent_folder_id=parent_folder_id,
        group=group,
        theme=theme,
        subtitle=subtitle,
        sort_order=sort_order,
        is_active=True,
        created_by_user_id=actor_id,
        updated_by_user_id=actor_id,
    )
    for key in required_permissions:
        folder.permission_rows.append(FolderPermission(permission_key=key))

    db.session.add(folder)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raced = folder_service.get_folder_by_page(page)
        if raced is None:
            # Rejected for a reason other than a concurrent insert of the same page
            raise ConflictError(f"Archive folder '{page}' conflicts with an existing folder") from exc
        return raced, False
    return folder, True


def generate(actor: ResolvedUser | None, *, today: date | None = None) -> ArchiveResult:
    """
    Ensure the archive year and month folders for next month exist.

    Idempotent: a second call in the same month creates nothing and
    reports skipped_count == 2.
    """
    config = current_app.config
    root_path = config.get("ARCHIVE_ROOT_PATH", "/payroll-archive").rstrip("/")
    group = config.get("ARCHIVE_GROUP", "PayrollArchive")
    required = list(config.get("ARCHIVE_REQUIRED_PERMISSIONS", ["payroll_view"]))

    year, month = target_period(today or utcnow().date())
    month_name = MONTH_NAMES[month - 1]
    result = ArchiveResult()

    root = folder_service.get_folder_by_page(root_path)
    year_page = f"{root_path}/{year}"
    year_folder, created = _ensure_folder(
        page=year_page,
        name=str(year),
        parent_path=root_path,
        parent_folder_id=root.id if root else None,
        group=group,
        theme=YEAR_THEME,
        subtitle=f"Payroll files for year {year}",
        sort_order=year,
        required_permissions=required,
        actor=actor,
    )
    _tally(result, year_folder, created, actor)

    month_folder, created = _ensure_folder(
        page=f"{year_page}/{month_name}",
        name=f"{month_name} {year}",
        parent_path=year_page,
        parent_folder_id=year_folder.id,
        group=group,
        theme=MONTH_THEME,
        subtitle=f"Payroll files for {month_name} {year}",
        sort_order=month,
        required_permissions=required,
        actor=actor,
    )
    _tally(result, month_folder, created, actor)

    current_app.logger.info(
        "Archive generation for %s %s: created=%s skipped=%s",
        month_name, year, result.created, result.skipped_count,
    )
    return result


def _tally(result: ArchiveResult, folder: Folder, created: bool, actor: ResolvedUser | None) -> None:
    if created:
        result.created.append(folder.name)
        system_event_service.record(actor, f"Archive folder created: {folder.name} ({folder.page})")
    else:
        result.skipped_count += 1


def run_scheduled(*, today: date | None = None) -> ArchiveResult:
    """
    Scheduler entry point: same generate(), bracketed by start and
    end/failure system events attributed to the system user.
    """
    system_event_service.record(None, "Scheduled archive folder generation started")
    try:
        result = generate(None, today=today)
    except Exception as exc:
        db.session.rollback()
        system_event_service.record(None, f"Scheduled archive folder generation failed: {exc}")
        raise
    system_event_service.record(
        None,
        f"Scheduled archive folder generation finished: "
        f"{len(result.created)} created, {result.skipped_count} skipped",
    )
    return result
