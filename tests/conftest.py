from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from google.transit import gtfs_realtime_pb2

from departure_board.config import parse_settings
from departure_board.decoder import load_decoders


NOW = datetime(2024, 1, 15, 14, 30, 0, tzinfo=timezone.utc)
NOW_TS = int(NOW.timestamp())

StopUpdate = Tuple[str, Optional[int]]


def build_feed_message(
    trips: Sequence[Sequence[StopUpdate]],
    header_timestamp: int = NOW_TS,
) -> gtfs_realtime_pb2.FeedMessage:
    """Build a FeedMessage with one trip-update entity per item of ``trips``."""

    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    feed.header.incrementality = gtfs_realtime_pb2.FeedHeader.FULL_DATASET
    feed.header.timestamp = header_timestamp
    for idx, updates in enumerate(trips):
        entity = feed.entity.add()
        entity.id = f"entity-{idx}"
        entity.trip_update.trip.trip_id = f"T{idx}"
        entity.trip_update.trip.route_id = "R1"
        for sequence, (stop_id, departure_ts) in enumerate(updates, start=1):
            update = entity.trip_update.stop_time_update.add()
            update.stop_sequence = sequence
            update.stop_id = stop_id
            if departure_ts is not None:
                update.departure.time = departure_ts
    return feed


def build_feed_bytes(trips: Sequence[Sequence[StopUpdate]]) -> bytes:
    return build_feed_message(trips).SerializeToString()


def stop_time_update(stop_id: str, departure_ts: Optional[int], **extra: Any) -> Dict[str, Any]:
    update: Dict[str, Any] = {"stopId": stop_id}
    if departure_ts is not None:
        update["departure"] = {"time": str(departure_ts)}
    update.update(extra)
    return update


def decoded_feed(*trips: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Shape a feed the way the decoder returns it."""

    return {
        "header": {"gtfsRealtimeVersion": "2.0", "timestamp": str(NOW_TS)},
        "entity": [
            {
                "id": f"entity-{idx}",
                "tripUpdate": {"trip": {"tripId": f"T{idx}"}, "stopTimeUpdate": updates},
            }
            for idx, updates in enumerate(trips)
        ],
    }


@pytest.fixture(scope="session")
def decoders():
    return load_decoders()


@pytest.fixture
def settings():
    return parse_settings(
        {
            "stop_id": "51",
            "request_timeout_seconds": 5,
            "feeds": {
                "realtime": {
                    "url": "https://feeds.example/gtfsrealtime",
                    "message_type": "transit_realtime.FeedMessage",
                    "api_key_param": "apikey",
                },
                "proxy": {
                    "url": "https://feeds.example/gtfsrt-trips",
                    "message_type": "TripUpdate",
                    "api_key_header": "x-api-key",
                    "headers": {"Content-Type": "application/x-google-protobuf"},
                },
            },
        }
    )
