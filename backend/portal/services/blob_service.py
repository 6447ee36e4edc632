# Overview: Service-layer blob storage; keyed byte storage behind a narrow interface.

"""
Blob Store

Uploaded bytes (payroll PDFs, submission attachments) live behind a three
operation interface: put(bytes) -> id, get(id) -> bytes, delete(id).
Callers keep their own metadata rows and refer to content only by id.

The application keeps one store instance in app.extensions; the default
DatabaseBlobStore keeps content in the blobs table.
"""

from __future__ import annotations

import abc
import io
import uuid
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import select

from ..errors import NotFoundError
from ..extensions import db
from ..models import Blob, PdfDocument, SubmissionAttachment
from ..time_utils import utcnow

EXTENSION_KEY = "portal_blob_store"


class BlobNotFoundError(NotFoundError):
    """No content stored under the requested id."""


class BlobStore(abc.ABC):
    @abc.abstractmethod
    def put(self, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store data in a single write and return its generated id."""

    @abc.abstractmethod
    def get(self, blob_id: str) -> bytes:
        """Return the stored bytes or raise BlobNotFoundError."""

    @abc.abstractmethod
    def delete(self, blob_id: str) -> None:
        """Remove the content or raise BlobNotFoundError."""

    def exists(self, blob_id: str) -> bool:
        try:
            self.get(blob_id)
        except BlobNotFoundError:
            return False
        return True

    def open(self, blob_id: str) -> io.BytesIO:
        """Readable stream over the stored bytes."""
        return io.BytesIO(self.get(blob_id))


class DatabaseBlobStore(BlobStore):
    def put(self, data: bytes, content_type: str = "application/octet-stream") -> str:
        blob_id = uuid.uuid4().hex
        db.session.add(Blob(
            id=blob_id,
            content_type=content_type,
            size_bytes=len(data),
            content=data,
            created_at=utcnow(),
        ))
        db.session.commit()
        return blob_id

    def get(self, blob_id: str) -> bytes:
        blob = db.session.get(Blob, blob_id) if blob_id else None
        if blob is None:
            raise BlobNotFoundError("File not found")
        return blob.content

    def exists(self, blob_id: str) -> bool:
        if not blob_id:
            return False
        return db.session.query(db.session.query(Blob.id).filter(Blob.id == blob_id).exists()).scalar()

    def delete(self, blob_id: str) -> None:
        blob = db.session.get(Blob, blob_id) if blob_id else None
        if blob is None:
            raise BlobNotFoundError("File not found")
        db.session.delete(blob)
        db.session.commit()


def get_blob_store() -> BlobStore:
    return current_app.extensions[EXTENSION_KEY]


def find_orphaned_blob_ids(older_than: datetime | None = None) -> list[str]:
    """
    Blobs referenced by no PDF document and no submission attachment.

    Attachment uploads are stored before the submission that references them,
    so only blobs older than older_than are considered.
    """
    query = db.session.query(Blob.id).filter(
        Blob.id.not_in(select(PdfDocument.blob_id)),
        Blob.id.not_in(select(SubmissionAttachment.blob_id)),
    )
    if older_than is not None:
        query = query.filter(Blob.created_at < older_than)
    return [row[0] for row in query.all()]


def purge_orphaned_blobs(*, max_age_hours: int = 24) -> int:
    """Maintenance: delete unreferenced blobs older than max_age_hours."""
    cutoff = utcnow() - timedelta(hours=max_age_hours)
    store = get_blob_store()
    removed = 0
    for blob_id in find_orphaned_blob_ids(cutoff):
        try:
            store.delete(blob_id)
        except BlobNotFoundError:
            continue
        removed += 1
    return removed
