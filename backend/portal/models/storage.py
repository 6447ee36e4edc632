from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Blob(db.Model):
    """Opaque binary content keyed by a generated id."""
    __tablename__ = "blobs"

    id = db.Column(db.String(32), primary_key=True)
    content_type = db.Column(db.String(128), nullable=False)
    size_bytes = db.Column(db.Integer, nullable=False)
    content = db.Column(db.LargeBinary, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class PdfDocument(db.Model):
    """
    Uploaded payroll PDF.

    Metadata lives here; the bytes live in the blob store under blob_id.
    """
    __tablename__ = "pdf_documents"
    __table_args__ = (
        db.Index("ix_pdf_documents_uploaded_at", "uploaded_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    blob_id = db.Column(db.String(32), nullable=False, unique=True)
    filename = db.Column(db.String(255), nullable=False, unique=True)
    original_name = db.Column(db.String(255), nullable=False)
    content_type = db.Column(db.String(128), nullable=False)
    size_bytes = db.Column(db.Integer, nullable=False)

    uploaded_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    uploaded_by = db.relationship("User", foreign_keys=[uploaded_by_id])

    @property
    def uploader_display(self) -> str:
        if self.uploaded_by is None:
            return "Guest"
        return self.uploaded_by.display_name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "original_name": self.original_name,
            "content_type": self.content_type,
            "size": self.size_bytes,
            "uploaded_by_id": self.uploaded_by_id,
            "uploader_display": self.uploader_display,
            "uploaded_at": to_utc_z(self.uploaded_at),
        }
