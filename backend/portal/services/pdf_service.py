# Overview: Service-layer operations for payroll PDFs; encapsulates business logic and database work.

"""
Payroll PDF Documents

Upload accepts PDF content only, bounded by MAX_UPLOAD_BYTES. Bytes go to the
blob store; the pdf_documents row carries display metadata and the uploader.
"""

from __future__ import annotations

import uuid

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import PdfDocument
from ..time_utils import utcnow
from . import system_event_service
from .access_service import ResolvedUser
from .blob_service import BlobNotFoundError, get_blob_store

PDF_CONTENT_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF-"


def _max_upload_bytes() -> int:
    return int(current_app.config.get("MAX_UPLOAD_BYTES", 10 * 1024 * 1024))


def upload_pdf(actor: ResolvedUser | None, *, original_name: str | None, content_type: str | None, data: bytes) -> PdfDocument:
    original_name = (original_name or "").strip()
    if not original_name:
        raise ValidationError("No file uploaded")
    if (content_type or "").split(";")[0].strip().lower() != PDF_CONTENT_TYPE:
        raise ValidationError("Only PDF files are allowed")
    if not original_name.lower().endswith(".pdf"):
        raise ValidationError("Only PDF files are allowed")
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > _max_upload_bytes():
        raise ValidationError(f"File exceeds the maximum size of {_max_upload_bytes()} bytes")
    if not data.startswith(PDF_MAGIC):
        raise ValidationError("Uploaded file is not a valid PDF")

    store = get_blob_store()
    blob_id = store.put(data, PDF_CONTENT_TYPE)

    document = PdfDocument(
        blob_id=blob_id,
        filename=f"{uuid.uuid4().hex}.pdf",
        original_name=original_name,
        content_type=PDF_CONTENT_TYPE,
        size_bytes=len(data),
        uploaded_by_id=actor.id if actor else None,
        uploaded_at=utcnow(),
    )
    db.session.add(document)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        store.delete(blob_id)
        raise

    system_event_service.record(actor, f"Uploaded PDF: {original_name}")
    return document


def list_pdfs() -> list[PdfDocument]:
    return (
        db.session.query(PdfDocument)
        .order_by(PdfDocument.uploaded_at.desc(), PdfDocument.id.desc())
        .all()
    )


def get_pdf(pdf_id: int) -> PdfDocument:
    document = db.session.get(PdfDocument, pdf_id)
    if document is None:
        raise NotFoundError("PDF not found")
    return document


def open_pdf(pdf_id: int):
    """Returns (document, stream)."""
    document = get_pdf(pdf_id)
    return document, get_blob_store().open(document.blob_id)


def delete_pdf(actor: ResolvedUser | None, pdf_id: int) -> None:
    document = get_pdf(pdf_id)
    blob_id = document.blob_id
    name = document.original_name

    db.session.delete(document)
    db.session.commit()

    try:
        get_blob_store().delete(blob_id)
    except BlobNotFoundError:
        current_app.logger.warning("PDF %s had no stored content (blob %s)", pdf_id, blob_id)

    system_event_service.record(actor, f"Deleted PDF: {name}")
