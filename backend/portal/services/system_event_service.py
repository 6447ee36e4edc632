# Overview: Service-layer operations for system events; encapsulates business logic and database work.

"""
System Event Audit Log

WHY: Administrative actions (user, role, permission, folder, PDF changes and
archive runs) leave a human-readable trail.

DESIGN:
- record() is called after the business change has committed
- A failed audit write is logged and dropped; it never undoes or fails
  the business operation that triggered it
- Rows are append-only; list() is newest first
"""

from __future__ import annotations

import math

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SystemEvent
from ..time_utils import utcnow
from .access_service import ResolvedUser, actor_identity

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def record(actor: ResolvedUser | None, action: str) -> SystemEvent | None:
    """
    Append an audit entry. actor None means a system-initiated action.

    Returns the stored event, or None if the write failed.
    """
    performed_by_id, performed_by_name = actor_identity(actor)
    event = SystemEvent(
        performed_by_id=performed_by_id,
        performed_by_name=performed_by_name,
        action=action,
        occurred_at=utcnow(),
    )
    try:
        db.session.add(event)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to record system event: %s", action)
        return None
    return event


def list_events(page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> dict:
    """
    Page through events newest first.

    page is 1-based; out-of-range pages return an empty events list.
    """
    if page < 1:
        page = 1
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))

    total_events = db.session.query(SystemEvent).count()
    total_pages = math.ceil(total_events / page_size) if total_events else 0

    events = (
        db.session.query(SystemEvent)
        .order_by(SystemEvent.occurred_at.desc(), SystemEvent.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "events": [e.to_dict() for e in events],
        "current_page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "total_events": total_events,
    }

