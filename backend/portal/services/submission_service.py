# Overview: Service-layer operations for submissions; encapsulates business logic and database work.

"""
Submission Workflow Engine

WHY: Ministry payroll forms move through review folders under an audit trail.

STATE MACHINE:
    Submitted -> Pending | Approved | Rejected
    Pending   -> Pending | Approved | Rejected
    Approved  -> Approved | Processed
    Rejected  -> Rejected | Processed
    Processed: terminal
Keeping the current status while changing folder is a plain move; it leaves
the review and processing stamps untouched.

INVARIANTS:
- every transition appends exactly one history row; rows are never updated
- current_folder_id equals the to_folder_id of the latest history row
- submission numbers are SUB-YYYYMMDD-NNNN, sequenced per day and retried on
  a unique-index collision

ACCESS: non-admin callers only ever see their own submissions; the filter is
part of the query, not applied afterwards. Folder legality of a move is the
caller's responsibility.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Folder, Submission, SubmissionAttachment, SubmissionHistory
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import parse_int
from . import system_event_service
from .access_service import ResolvedUser, actor_identity, ensure_role_loaded
from .blob_service import BlobNotFoundError, get_blob_store
from .concurrency import run_with_retry

FORM_TYPES = ("NewHire", "EmployeeProfileUpdate", "PayrollDataChange")

STATUS_SUBMITTED = "Submitted"
STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"
STATUS_PROCESSED = "Processed"
STATUSES = (STATUS_SUBMITTED, STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_PROCESSED)

ALLOWED_TRANSITIONS = {
    STATUS_SUBMITTED: {STATUS_SUBMITTED, STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED},
    STATUS_PENDING: {STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED},
    STATUS_APPROVED: {STATUS_APPROVED, STATUS_PROCESSED},
    STATUS_REJECTED: {STATUS_REJECTED, STATUS_PROCESSED},
    STATUS_PROCESSED: set(),
}

ACTION_SUBMITTED = "Submitted"
ACTION_MOVED = "Moved"
# History action recorded for a transition into each status; anything else is a move
ACTION_FOR_STATUS = {
    STATUS_APPROVED: "Approved",
    STATUS_REJECTED: "Rejected",
    STATUS_PROCESSED: "Processed",
}

REVIEW_STATUSES = {STATUS_APPROVED, STATUS_REJECTED}

LIST_LIMIT = 100
MAX_NUMBER_ATTEMPTS = 5

ALLOWED_ATTACHMENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class SubmissionFilters(dict):
    """Accepted list filters: status, form_type, ministry, folder_id, start_date, end_date."""
    KEYS = ("status", "form_type", "ministry", "folder_id", "start_date", "end_date")

    @classmethod
    def from_mapping(cls, data) -> "SubmissionFilters":
        return cls({k: data.get(k) for k in cls.KEYS if data.get(k) not in (None, "")})


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def _require_actor(actor: ResolvedUser | None) -> ResolvedUser:
    if actor is None:
        raise ForbiddenError("An authenticated user is required")
    return actor


def _scoped_query(actor: ResolvedUser):
    ensure_role_loaded(actor)
    query = db.session.query(Submission)
    if not actor.is_admin:
        query = query.filter(Submission.submitted_by_id == actor.id)
    return query


def _require_folder(folder_id, field: str) -> Folder:
    folder = db.session.get(Folder, parse_int(folder_id, field))
    if folder is None:
        raise ValidationError(f"{field} does not reference an existing folder")
    return folder


def next_submission_number(moment: datetime, *, offset: int = 0) -> str:
    """
    SUB-YYYYMMDD-NNNN where NNNN is one past the highest number issued that day.

    Deleted submissions leave gaps; their numbers are never handed out again
    while a later number from the same day survives.
    """
    prefix = f"SUB-{moment:%Y%m%d}-"
    issued = db.session.query(Submission.submission_number).filter(
        Submission.submission_number.like(f"{prefix}%")
    )
    suffixes = (number[len(prefix):] for (number,) in issued)
    highest = max((int(suffix) for suffix in suffixes if suffix.isdigit()), default=0)
    return f"{prefix}{highest + 1 + offset:04d}"


def _parse_attachments(attachments) -> list[dict]:
    if attachments is None:
        return []
    if not isinstance(attachments, list):
        raise ValidationError("attachments must be a list")

    store = get_blob_store()
    parsed = []
    for item in attachments:
        if not isinstance(item, dict) or not item.get("file_id"):
            raise ValidationError("Each attachment needs a file_id")
        if not store.exists(item["file_id"]):
            raise ValidationError(f"Attachment file {item['file_id']} was not uploaded")
        parsed.append({
            "blob_id": item["file_id"],
            "filename": item.get("filename") or item["file_id"],
            "original_name": item.get("original_name") or item.get("filename") or item["file_id"],
            "mimetype": item.get("mimetype") or "application/octet-stream",
            "size_bytes": parse_int(item.get("size", 0), "size"),
        })
    return parsed


def upload_attachment(actor: ResolvedUser | None, *, original_name: str | None, content_type: str | None, data: bytes) -> dict:
    """Store an attachment ahead of the submission that will reference it."""
    _require_actor(actor)
    original_name = (original_name or "").strip()
    content_type = (content_type or "").split(";")[0].strip().lower()
    if not original_name:
        raise ValidationError("No file uploaded")
    if content_type not in ALLOWED_ATTACHMENT_TYPES:
        raise ValidationError("File type is not allowed")
    if not data:
        raise ValidationError("Uploaded file is empty")
    max_bytes = int(current_app.config.get("MAX_UPLOAD_BYTES", 10 * 1024 * 1024))
    if len(data) > max_bytes:
        raise ValidationError(f"File exceeds the maximum size of {max_bytes} bytes")

    blob_id = get_blob_store().put(data, content_type)
    extension = os.path.splitext(original_name)[1].lower()
    return {
        "file_id": blob_id,
        "filename": f"{blob_id}{extension}",
        "original_name": original_name,
        "mimetype": content_type,
        "size": len(data),
    }


def create_submission(
    actor: ResolvedUser | None,
    *,
    form_type: str | None,
    target_folder_id,
    form_data,
    attachments=None,
    now: datetime | None = None,
) -> Submission:
    actor = _require_actor(actor)
    if form_type not in FORM_TYPES:
        raise ValidationError(f"form_type must be one of: {', '.join(FORM_TYPES)}")
    if not isinstance(form_data, dict) or not form_data:
        raise ValidationError("form_data must be a non-empty object")
    if target_folder_id is None:
        raise ValidationError("target_folder_id is required")
    folder = _require_folder(target_folder_id, "target_folder_id")
    parsed_attachments = _parse_attachments(attachments)

    performed_by_id, performed_by_name = actor_identity(actor)

    for attempt in range(MAX_NUMBER_ATTEMPTS):
        moment = now or utcnow()
        submission = Submission(
            submission_number=next_submission_number(moment, offset=attempt),
            form_type=form_type,
            form_data=form_data,
            status=STATUS_SUBMITTED,
            target_folder_id=folder.id,
            current_folder_id=folder.id,
            submitted_by_id=actor.id,
            submitted_by_name=performed_by_name,
            ministry=actor.ministry,
            created_at=moment,
        )
        for meta in parsed_attachments:
            submission.attachments.append(SubmissionAttachment(uploaded_at=moment, **meta))
        submission.history.append(SubmissionHistory(
            action=ACTION_SUBMITTED,
            from_status=None,
            to_status=STATUS_SUBMITTED,
            from_folder_id=None,
            to_folder_id=folder.id,
            performed_by_id=performed_by_id,
            performed_by_name=performed_by_name,
            comments=None,
            occurred_at=moment,
        ))
        db.session.add(submission)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning(
                "Submission number collision on attempt %s; retrying", attempt + 1
            )
            continue

        system_event_service.record(
            actor, f"Submission created: {submission.submission_number} ({form_type})"
        )
        return submission

    raise ConflictError("Could not allocate a unique submission number; try again")


def transition_submission(
    actor: ResolvedUser | None,
    submission_id: int,
    *,
    new_status: str | None,
    comments: str | None = None,
    new_folder_id=None,
) -> Submission:
    """
    Change status (and optionally folder), appending one history row.

    Approved/Rejected stamp the review fields; Processed stamps the processing fields.
    The read-check-write runs again from a fresh read if the database is busy.
    """
    actor = _require_actor(actor)
    if new_status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
    performed_by_id, performed_by_name = actor_identity(actor)

    def _op():
        submission = db.session.get(Submission, submission_id)
        if submission is None:
            raise NotFoundError("Submission not found")
        if not can_transition(submission.status, new_status):
            raise ConflictError(f"Cannot move a submission from {submission.status} to {new_status}")

        from_status = submission.status
        from_folder_id = submission.current_folder_id
        to_folder_id = from_folder_id
        if new_folder_id is not None:
            to_folder_id = _require_folder(new_folder_id, "new_folder_id").id

        status_changed = new_status != from_status
        now = utcnow()
        submission.status = new_status
        submission.current_folder_id = to_folder_id
        submission.history.append(SubmissionHistory(
            action=ACTION_FOR_STATUS.get(new_status, ACTION_MOVED) if status_changed else ACTION_MOVED,
            from_status=from_status,
            to_status=new_status,
            from_folder_id=from_folder_id,
            to_folder_id=to_folder_id,
            performed_by_id=performed_by_id,
            performed_by_name=performed_by_name,
            comments=comments,
            occurred_at=now,
        ))

        if status_changed and new_status in REVIEW_STATUSES:
            submission.reviewed_by_id = actor.id
            submission.reviewed_at = now
            submission.review_notes = comments
        elif status_changed and new_status == STATUS_PROCESSED:
            submission.processed_by_id = actor.id
            submission.processed_at = now

        db.session.commit()
        return submission, from_status

    submission, from_status = run_with_retry(_op)
    system_event_service.record(
        actor, f"Submission {submission.submission_number}: {from_status} -> {new_status}"
    )
    return submission


def _parse_filter_date(value: str, field: str) -> datetime:
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date")
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO-8601 date")
    return parsed


def list_submissions(actor: ResolvedUser | None, filters: dict | None = None) -> list[Submission]:
    """Newest first, at most LIST_LIMIT rows, ownership-scoped for non-admins."""
    actor = _require_actor(actor)
    filters = filters or {}
    query = _scoped_query(actor)

    status = filters.get("status")
    if status:
        if status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        query = query.filter(Submission.status == status)
    if filters.get("form_type"):
        query = query.filter(Submission.form_type == filters["form_type"])
    if filters.get("ministry"):
        query = query.filter(Submission.ministry == filters["ministry"])
    if filters.get("folder_id") is not None:
        query = query.filter(Submission.current_folder_id == parse_int(filters["folder_id"], "folder_id"))
    if filters.get("start_date"):
        query = query.filter(Submission.created_at >= _parse_filter_date(filters["start_date"], "start_date"))
    if filters.get("end_date"):
        raw_end = filters["end_date"]
        end = _parse_filter_date(raw_end, "end_date")
        if len(raw_end.strip()) == 10:
            # A bare date includes that whole day
            query = query.filter(Submission.created_at < end + timedelta(days=1))
        else:
            query = query.filter(Submission.created_at <= end)

    return (
        query.order_by(Submission.created_at.desc(), Submission.id.desc())
        .limit(LIST_LIMIT)
        .all()
    )


def list_by_folder(actor: ResolvedUser | None, folder_id: int) -> list[Submission]:
    actor = _require_actor(actor)
    if db.session.get(Folder, folder_id) is None:
        raise NotFoundError("Folder not found")
    return list_submissions(actor, {"folder_id": folder_id})


def get_submission(actor: ResolvedUser | None, submission_id: int) -> Submission:
    actor = _require_actor(actor)
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")
    if not actor.is_admin and submission.submitted_by_id != actor.id:
        raise ForbiddenError("You can only view your own submissions")
    return submission


def open_attachment(actor: ResolvedUser | None, submission_id: int, file_id: str):
    """Returns (attachment, stream) for a file on a submission the actor may read."""
    submission = get_submission(actor, submission_id)
    attachment = next((a for a in submission.attachments if a.blob_id == file_id), None)
    if attachment is None:
        raise NotFoundError("Attachment not found")
    return attachment, get_blob_store().open(attachment.blob_id)


def delete_submission(actor: ResolvedUser | None, submission_id: int) -> None:
    """Hard delete with history and attachment content. Admin action."""
    actor = _require_actor(actor)
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")

    number = submission.submission_number
    blob_ids = [a.blob_id for a in submission.attachments]
    db.session.delete(submission)
    db.session.commit()

    store = get_blob_store()
    for blob_id in blob_ids:
        try:
            store.delete(blob_id)
        except BlobNotFoundError:
            current_app.logger.warning("Attachment content %s already missing", blob_id)

    system_event_service.record(actor, f"Submission deleted: {number}")
