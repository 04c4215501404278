from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now': UTC, naive. Every stored timestamp uses this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 string -> naive UTC datetime; blank -> None.

    Accepts a trailing "Z" and explicit offsets. Raises ValueError on
    anything datetime.fromisoformat rejects.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render as "2026-01-31T18:30:00Z" (seconds precision)."""
    if dt is None:
        return None
    stamp = as_naive_utc(dt).replace(microsecond=0)
    return stamp.isoformat() + "Z"


def format_cents(cents: int) -> str:
    """Render cents as a plain amount: 5400 -> "54", 5450 -> "54.50"."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    if frac == 0:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac:02d}"
