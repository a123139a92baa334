from __future__ import annotations

import time
from typing import List, Mapping, Optional, TypedDict

from departure_board.config import AppSettings
from departure_board.decoder import Decoder, FeedSchema


START_TIME = time.time()


class FeedHealth(TypedDict):
    name: str
    message_type: str
    status: str


class HealthStatus(TypedDict):
    status: str
    uptime_seconds: int
    stop_id: str
    schemas: List[str]
    feeds: List[FeedHealth]


def _feed_status(message_type: str, decoders: Mapping[FeedSchema, Decoder]) -> str:
    try:
        schema = FeedSchema(message_type)
    except ValueError:
        return "unsupported"
    return "ready" if schema in decoders else "error"


def get_health_status(
    decoders: Mapping[FeedSchema, Decoder],
    settings: AppSettings,
    now: Optional[float] = None,
) -> HealthStatus:
    now = time.time() if now is None else now
    feeds: List[FeedHealth] = [
        {
            "name": endpoint.name,
            "message_type": endpoint.message_type,
            "status": _feed_status(endpoint.message_type, decoders),
        }
        for endpoint in settings.feeds.values()
    ]

    overall_status = "healthy"
    if not feeds or any(feed["status"] != "ready" for feed in feeds):
        overall_status = "degraded"

    return {
        "status": overall_status,
        "uptime_seconds": int(now - START_TIME),
        "stop_id": settings.stop_id,
        "schemas": [schema.value for schema in decoders],
        "feeds": feeds,
    }
