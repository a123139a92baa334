from __future__ import annotations

import logging
from typing import Dict, Optional

import requests

from departure_board.config import FeedEndpoint


logger = logging.getLogger(__name__)


class RetrievalError(RuntimeError):
    pass


def _build_request(
    endpoint: FeedEndpoint,
    api_key: Optional[str],
) -> tuple[Dict[str, str], Dict[str, str]]:
    headers = dict(endpoint.headers)
    params: Dict[str, str] = {}
    if api_key:
        if endpoint.api_key_header:
            headers[endpoint.api_key_header] = api_key
        if endpoint.api_key_param:
            params[endpoint.api_key_param] = api_key
    elif endpoint.api_key_header or endpoint.api_key_param:
        logger.info("API_KEY is not set; fetching %s without authentication.", endpoint.name)
    return headers, params


def fetch_feed(
    endpoint: FeedEndpoint,
    api_key: Optional[str],
    timeout_seconds: int,
) -> bytes:
    headers, params = _build_request(endpoint, api_key)
    try:
        response = requests.get(
            endpoint.url,
            headers=headers or None,
            params=params or None,
            timeout=timeout_seconds,
        )
    except requests.RequestException as exc:
        raise RetrievalError(f"Network error while fetching {endpoint.name}: {exc}") from exc

    if response.status_code in {401, 403}:
        logger.error(
            "Feed request unauthorized for %s (HTTP %s).",
            endpoint.name,
            response.status_code,
        )
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise RetrievalError(
            f"Network response was not ok for {endpoint.name}: {response.status_code} {response.reason}"
        ) from exc

    logger.debug("Fetched %s bytes from %s", len(response.content), endpoint.name)
    return response.content
