# Overview: UTC clock and ISO-8601 conversions shared by models, services and routes.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

UTC = timezone.utc


def utcnow() -> datetime:
    """Current UTC time as a naive datetime; every stored timestamp uses this form."""
    return datetime.now(UTC).replace(tzinfo=None)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def parse_iso_datetime(text: Optional[str]) -> Optional[datetime]:
    """
    Read a client-supplied timestamp into the stored (naive UTC) form.

    Blank input gives None. Offsets and a trailing "Z" are honoured; values
    without an offset, including bare dates, are taken as UTC already.
    A ValueError from datetime.fromisoformat is left to the caller.
    """
    cleaned = (text or "").strip()
    if not cleaned:
        return None
    if cleaned[-1] in ("Z", "z"):
        cleaned = f"{cleaned[:-1]}+00:00"
    return _as_utc(datetime.fromisoformat(cleaned)).replace(tzinfo=None)


def to_utc_z(moment: Optional[datetime]) -> Optional[str]:
    # Second precision, "Z" suffix; naive values are UTC
    if moment is None:
        return None
    return _as_utc(moment).replace(microsecond=0, tzinfo=None).isoformat() + "Z"
