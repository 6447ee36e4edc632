from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Submission(db.Model):
    """
    Payroll form submission moving through review folders.

    WHY: Submissions are the unit of payroll change. Their history is append-only
    and current_folder_id always equals the to_folder_id of the latest history row.

    Submission numbers follow SUB-YYYYMMDD-NNNN (daily sequence).
    """
    __tablename__ = "submissions"
    __table_args__ = (
        db.Index("ix_submissions_submitter_created", "submitted_by_id", "created_at"),
        db.Index("ix_submissions_status_created", "status", "created_at"),
        db.Index("ix_submissions_current_folder", "current_folder_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    submission_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    form_type = db.Column(db.String(32), nullable=False, index=True)
    # Opaque payload; validated by the form owner, not here
    form_data = db.Column(db.JSON, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="Submitted", index=True)

    target_folder_id = db.Column(db.Integer, db.ForeignKey("folders.id"), nullable=False)
    current_folder_id = db.Column(db.Integer, db.ForeignKey("folders.id"), nullable=False)

    submitted_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    submitted_by_name = db.Column(db.String(200), nullable=False)
    ministry = db.Column(db.String(200), nullable=True)

    reviewed_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    review_notes = db.Column(db.Text, nullable=True)

    processed_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    target_folder = db.relationship("Folder", foreign_keys=[target_folder_id])
    current_folder = db.relationship("Folder", foreign_keys=[current_folder_id])
    submitted_by = db.relationship("User", foreign_keys=[submitted_by_id])

    history = db.relationship(
        "SubmissionHistory",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmissionHistory.id",
        lazy="selectin",
    )
    attachments = db.relationship(
        "SubmissionAttachment",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmissionAttachment.id",
        lazy="selectin",
    )

    def to_dict(self, include_history: bool = True) -> dict:
        data = {
            "id": self.id,
            "submission_number": self.submission_number,
            "form_type": self.form_type,
            "form_data": self.form_data,
            "status": self.status,
            "target_folder_id": self.target_folder_id,
            "current_folder_id": self.current_folder_id,
            "submitted_by_id": self.submitted_by_id,
            "submitted_by_name": self.submitted_by_name,
            "ministry": self.ministry,
            "reviewed_by_id": self.reviewed_by_id,
            "reviewed_at": to_utc_z(self.reviewed_at),
            "review_notes": self.review_notes,
            "processed_by_id": self.processed_by_id,
            "processed_at": to_utc_z(self.processed_at),
            "attachments": [a.to_dict() for a in self.attachments],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_history:
            data["workflow_history"] = [h.to_dict() for h in self.history]
        return data


class SubmissionHistory(db.Model):
    """
    Append-only workflow history entry.

    Rows are inserted, never updated. Ordered by id (insertion order).
    """
    __tablename__ = "submission_history"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer, db.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )

    action = db.Column(db.String(16), nullable=False)  # Submitted, Moved, Approved, Rejected, Processed
    from_status = db.Column(db.String(16), nullable=True)
    to_status = db.Column(db.String(16), nullable=False)
    from_folder_id = db.Column(db.Integer, nullable=True)
    to_folder_id = db.Column(db.Integer, nullable=False)

    performed_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    performed_by_name = db.Column(db.String(200), nullable=False)
    comments = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    submission = db.relationship("Submission", back_populates="history")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "from_folder_id": self.from_folder_id,
            "to_folder_id": self.to_folder_id,
            "performed_by_id": self.performed_by_id,
            "performed_by_name": self.performed_by_name,
            "comments": self.comments,
            "occurred_at": to_utc_z(self.occurred_at),
        }


class SubmissionAttachment(db.Model):
    """File attached to a submission; content lives in the blob store."""
    __tablename__ = "submission_attachments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer, db.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    blob_id = db.Column(db.String(32), nullable=False, index=True)
    filename = db.Column(db.String(255), nullable=False)
    original_name = db.Column(db.String(255), nullable=False)
    mimetype = db.Column(db.String(128), nullable=False)
    size_bytes = db.Column(db.Integer, nullable=False)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    submission = db.relationship("Submission", back_populates="attachments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "file_id": self.blob_id,
            "filename": self.filename,
            "original_name": self.original_name,
            "mimetype": self.mimetype,
            "size": self.size_bytes,
            "uploaded_at": to_utc_z(self.uploaded_at),
        }
