"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def is_older_than(moment: datetime, hours: int, now: datetime | None = None) -> bool:
    """True when ``moment`` lies more than ``hours`` before ``now`` (naive = UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    reference = now or utc_now()
    return reference - moment > timedelta(hours=hours)


def to_iso(moment: datetime | None) -> str:
    return moment.isoformat() if moment else ""
