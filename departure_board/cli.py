from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from departure_board.config import AppSettings, ConfigError, get_api_key, load_settings
from departure_board.decoder import DecodeError, FeedSchema, decode, load_decoders
from departure_board.extractor import DepartureEntry, upcoming_departures
from departure_board.fetchers.feed import RetrievalError, fetch_feed
from departure_board.relative_time import format_relative


def _render_output(stop_id: str, entries: Sequence[DepartureEntry], now: datetime) -> str:
    output_lines: List[str] = [f"STOP {stop_id}"]
    if not entries:
        output_lines.append("  (no upcoming departures)")
        return "\n".join(output_lines)
    for entry in entries:
        clock = entry.departs_at.strftime("%H:%M:%S UTC")
        output_lines.append(f"  {format_relative(entry.departs_at, now)}  ({clock})")
    return "\n".join(output_lines)


def _read_payload(args: argparse.Namespace, settings: AppSettings) -> tuple[bytes, str]:
    if args.file:
        message_type = args.message_type or FeedSchema.GTFS_REALTIME.value
        return Path(args.file).read_bytes(), message_type
    endpoint = settings.feed(args.feed)
    raw = fetch_feed(endpoint, get_api_key(), settings.request_timeout_seconds)
    return raw, args.message_type or endpoint.message_type


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show upcoming departures at the configured stop.")
    parser.add_argument("--feed", default="realtime", help="Configured feed to fetch.")
    parser.add_argument("--file", help="Decode a saved feed payload instead of fetching.")
    parser.add_argument("--stop", help="Stop id to look up (defaults to config stop_id).")
    parser.add_argument(
        "--message-type",
        choices=[schema.value for schema in FeedSchema],
        help="Message type of the payload.",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1

    stop_id = args.stop or settings.stop_id
    try:
        raw, message_type = _read_payload(args, settings)
        feed = decode(raw, load_decoders(), message_type)
    except (ConfigError, RetrievalError, OSError) as exc:
        print(f"[ERROR] {exc}")
        return 1
    except DecodeError as exc:
        print(f"[ERROR] Could not decode feed ({exc.kind}): {exc}")
        return 1

    now = datetime.now(timezone.utc)
    print(_render_output(stop_id, upcoming_departures(feed, stop_id, now), now))
    return 0


if __name__ == "__main__":
    sys.exit(main())
