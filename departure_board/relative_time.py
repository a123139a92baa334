from __future__ import annotations

import math
from datetime import datetime


MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440
MINUTES_PER_ALMOST_TWO_DAYS = 2520
MINUTES_PER_MONTH = 43200
MINUTES_PER_TWO_MONTHS = 86400
MONTHS_PER_YEAR = 12


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_years(months: int) -> str:
    years = months // MONTHS_PER_YEAR
    remainder = months % MONTHS_PER_YEAR
    if remainder < 3:
        return f"about {_plural(years, 'year')}"
    if remainder < 9:
        return f"over {_plural(years, 'year')}"
    return f"almost {_plural(years + 1, 'year')}"


def format_distance(seconds: float) -> str:
    """Return an approximate, human-readable length for ``seconds``.

    Halves round up at every step, so 150 s reads "about 3 minutes".
    """

    seconds = abs(seconds)
    if seconds < 30:
        return "less than a minute"
    minutes = _round_half_up(seconds / 60)
    if minutes < 45:
        return f"about {_plural(max(1, minutes), 'minute')}"
    if minutes < 90:
        return "about 1 hour"
    if minutes < MINUTES_PER_DAY:
        return f"about {_plural(_round_half_up(minutes / MINUTES_PER_HOUR), 'hour')}"
    if minutes < MINUTES_PER_ALMOST_TWO_DAYS:
        return "1 day"
    if minutes < MINUTES_PER_MONTH:
        return _plural(_round_half_up(minutes / MINUTES_PER_DAY), "day")
    months = _round_half_up(minutes / MINUTES_PER_MONTH)
    if minutes < MINUTES_PER_TWO_MONTHS:
        return f"about {_plural(months, 'month')}"
    if months < MONTHS_PER_YEAR:
        return _plural(months, "month")
    return _format_years(months)


def format_relative(instant: datetime, now: datetime) -> str:
    delta = (instant - now).total_seconds()
    distance = format_distance(delta)
    if delta < 0:
        return f"{distance} ago"
    return f"in {distance}"
