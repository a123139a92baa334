from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterator, List, Mapping, Optional

from departure_board.relative_time import format_relative


@dataclass(frozen=True)
class DepartureEntry:
    update: Mapping[str, Any]
    departs_at: datetime


def _iter_stop_time_updates(feed: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    for entity in feed.get("entity") or []:
        if not isinstance(entity, Mapping):
            continue
        trip_update = entity.get("tripUpdate")
        if not isinstance(trip_update, Mapping):
            continue
        for update in trip_update.get("stopTimeUpdate") or []:
            if isinstance(update, Mapping):
                yield update


def departure_instant(update: Mapping[str, Any]) -> Optional[datetime]:
    """Return the departure time of a stop-time update, or None when unusable.

    64-bit times arrive as decimal strings from the protobuf JSON mapping, so
    both strings and integers are accepted.
    """

    departure = update.get("departure")
    if not isinstance(departure, Mapping):
        return None
    raw_time = departure.get("time")
    if raw_time is None or isinstance(raw_time, bool):
        return None
    try:
        timestamp = int(raw_time)
    except (TypeError, ValueError):
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def collect_departures(feed: Mapping[str, Any], stop_id: str) -> List[DepartureEntry]:
    entries: List[DepartureEntry] = []
    for update in _iter_stop_time_updates(feed):
        if update.get("stopId") != stop_id:
            continue
        departs_at = departure_instant(update)
        if departs_at is None:
            continue
        entries.append(DepartureEntry(update=update, departs_at=departs_at))
    # sorted() is stable, equal instants keep feed order.
    return sorted(entries, key=lambda entry: entry.departs_at)


def _as_aware(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def upcoming_departures(
    feed: Mapping[str, Any],
    stop_id: str,
    now: datetime,
) -> List[DepartureEntry]:
    now = _as_aware(now)
    return [entry for entry in collect_departures(feed, stop_id) if not entry.departs_at < now]


def extract(feed: Mapping[str, Any], stop_id: str, now: datetime) -> List[str]:
    """Render upcoming departures at ``stop_id`` relative to ``now``.

    Updates already departed before ``now`` are left out. ``now`` is used for
    every entry so the strings stay consistent with one another.
    """

    now = _as_aware(now)
    return [
        format_relative(entry.departs_at, now)
        for entry in upcoming_departures(feed, stop_id, now)
    ]
