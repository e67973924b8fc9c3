"""UTC helpers shared by schemas and namespace repositories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

# purpose: keep every instant crossing the API or the stores in UTC
# inputs: datetimes parsed by pydantic or read back from SQL rows
# outputs: timezone-aware UTC datetimes and their canonical text form
# status: active


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | str | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime.

    Naive values are tagged as UTC rather than interpreted in local time, which
    mirrors appending a ``Z`` to a timestamp string that lacks a zone marker.
    """

    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_utc(value: datetime | None) -> str | None:
    """Serialize an instant as ISO 8601 with a trailing ``Z``."""

    if value is None:
        return None
    normalized = ensure_utc(value)
    return normalized.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def describe_elapsed(started: datetime, finished: datetime) -> str:
    """Human readable summary of the time it took to complete a card."""

    elapsed = ensure_utc(finished) - ensure_utc(started)
    if elapsed < timedelta(0):
        return "Completed before the scheduled start"
    total_minutes = int(elapsed.total_seconds() // 60)
    if total_minutes == 0:
        return "Completed in less than a minute"
    days, remainder = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(remainder, 60)
    parts = []
    for amount, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")):
        if amount:
            parts.append(f"{amount} {unit}{'' if amount == 1 else 's'}")
    if len(parts) == 1:
        return f"Completed in {parts[0]}"
    return f"Completed in {', '.join(parts[:-1])} and {parts[-1]}"
