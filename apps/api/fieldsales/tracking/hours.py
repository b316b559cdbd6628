"""Working-hours gate for location sampling.

Times are compared at minute resolution against ``HH:MM`` bounds, both
inclusive. A window whose start is after its end (crossing midnight) is
never satisfied.
"""

from __future__ import annotations

from datetime import datetime, time


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for an ``HH:MM`` string.

    A trailing ``:SS`` (as Postgres renders a ``time`` column) is accepted and
    ignored, since the gate works at minute resolution.
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"invalid time of day: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"invalid time of day: {value!r}")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_since_midnight(moment: datetime | time) -> int:
    return moment.hour * 60 + moment.minute


def within_working_hours(now: datetime | time, start: str, end: str) -> bool:
    current = minutes_since_midnight(now)
    return parse_hhmm(start) <= current <= parse_hhmm(end)
