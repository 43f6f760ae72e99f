"""Time helpers shared by the ledger, job table and cooldown gate."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Naive UTC now, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today(tz: str) -> date:
    """Current calendar date in the configured timezone."""
    return datetime.now(ZoneInfo(tz)).date()
