from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Tuple

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS

from departure_board.config import AppSettings, ConfigError, get_api_key, load_settings
from departure_board.decoder import DecodeError, decode, load_decoders
from departure_board.extractor import extract
from departure_board.fetchers.feed import RetrievalError, fetch_feed
from departure_board.health import get_health_status


REALTIME_FEED = "realtime"
PROXY_FEED = "proxy"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

load_dotenv()

app = Flask(__name__)
CORS(app)

DECODERS = load_decoders()


def _error_response(message: str, status: int, **extra: Any) -> Tuple[Any, int]:
    body = {"success": False, "error": message}
    body.update(extra)
    return jsonify(body), status


def _fetch_and_decode(settings: AppSettings, feed_name: str) -> dict:
    endpoint = settings.feed(feed_name)
    raw = fetch_feed(endpoint, get_api_key(), settings.request_timeout_seconds)
    return decode(raw, DECODERS, endpoint.message_type)


@app.errorhandler(RetrievalError)
def handle_retrieval_error(exc: RetrievalError) -> Any:
    logger.error("Fetch error: %s", exc)
    return _error_response(f"Error fetching data: {exc}", 502)


@app.errorhandler(DecodeError)
def handle_decode_error(exc: DecodeError) -> Any:
    logger.error("Decode error (%s): %s", exc.kind, exc)
    return _error_response(f"Error decoding data: {exc}", 500, kind=exc.kind)


@app.errorhandler(ConfigError)
def handle_config_error(exc: ConfigError) -> Any:
    logger.error("Configuration error: %s", exc)
    return _error_response(f"Configuration error: {exc}", 500)


@app.route("/realtime")
def realtime() -> Any:
    settings = load_settings()
    feed = _fetch_and_decode(settings, REALTIME_FEED)
    now = datetime.now(timezone.utc)
    departures = extract(feed, settings.stop_id, now)
    logger.info("Realtime: %s upcoming departures at stop %s", len(departures), settings.stop_id)
    return jsonify({"success": True, "stop_id": settings.stop_id, "data": departures})


@app.route("/proxy")
def proxy() -> Any:
    settings = load_settings()
    message = _fetch_and_decode(settings, PROXY_FEED)
    return jsonify({"success": True, "data": message})


@app.route("/health")
def health_alias() -> Any:
    return api_health()


@app.route("/api/health")
def api_health() -> Any:
    return jsonify(get_health_status(DECODERS, load_settings()))


def main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Failed to load config: %s", exc)
        return

    status = get_health_status(DECODERS, settings)
    logger.info("Health status at startup: %s", status["status"])

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3000"))
    logger.info("Flask server starting on http://%s:%s", host, port)
    app.run(host=host, port=port)


if __name__ == "__main__":
    main()
