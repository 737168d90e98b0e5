"""Local-time helpers.

Calendar days (streaks, daily limits, ranking dates) follow the configured
application timezone rather than the host clock.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from haruup.core.config import settings


def local_now() -> datetime:
    """Return the current timezone-aware time in the application timezone."""

    return datetime.now(settings.app.tzinfo)


def local_today() -> date:
    return local_now().date()


def seconds_until_midnight(now: datetime) -> int:
    """Seconds from ``now`` until the start of the next calendar day.

    Always at least 1 so a key written just before midnight still gets a TTL.
    """

    midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), tzinfo=now.tzinfo)
    return max(1, int((midnight - now).total_seconds()))
