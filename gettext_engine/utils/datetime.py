"""Time utilities with timezone-aware defaults."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


def format_revision_date(moment: datetime) -> str:
    """Render a timestamp the way gettext headers expect (``2024-01-31 12:00+0000``)."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M%z")


__all__ = ["utc_now", "format_revision_date"]
