from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SystemEvent(db.Model):
    """
    Administrative audit log entry.

    WHY: Records who did what to users, roles, folders, PDFs and the archive job.
    performed_by_id is null for system-initiated actions; performed_by_name is
    denormalized so entries stay readable after the user is deleted.

    Rows are append-only.
    """
    __tablename__ = "system_events"
    __table_args__ = (
        db.Index("ix_system_events_occurred_at", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    performed_by_id = db.Column(db.Integer, nullable=True, index=True)
    performed_by_name = db.Column(db.String(200), nullable=False)
    action = db.Column(db.Text, nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "performed_by_id": self.performed_by_id,
            "performed_by_name": self.performed_by_name,
            "action": self.action,
            "occurred_at": to_utc_z(self.occurred_at),
        }
