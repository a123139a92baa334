from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


ROOT_DIR = Path(__file__).resolve().parents[1]
CONFIG_PATH = ROOT_DIR / "config.yaml"

DEFAULT_STOP_ID = "51"
DEFAULT_TIMEOUT_SECONDS = 10

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class FeedEndpoint:
    name: str
    url: str
    message_type: str
    api_key_header: Optional[str] = None
    api_key_param: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AppSettings:
    stop_id: str
    request_timeout_seconds: int
    feeds: Dict[str, FeedEndpoint]

    def feed(self, name: str) -> FeedEndpoint:
        endpoint = self.feeds.get(name)
        if endpoint is None:
            raise ConfigError(f"Feed '{name}' is not configured.")
        return endpoint


def get_config_path() -> Path:
    override = os.environ.get("DEPARTURE_BOARD_CONFIG")
    return Path(override) if override else CONFIG_PATH


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    path = config_path or get_config_path()
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    logger.debug("Loading config from %s", path)
    with path.open() as handle:
        data = yaml.safe_load(handle)
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping.")
    return data


def _safe_int(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_feed(name: str, raw: Any) -> FeedEndpoint:
    if not isinstance(raw, dict):
        raise ValueError(f"Feed {name} must be a mapping.")
    url = _optional_str(raw.get("url"))
    message_type = _optional_str(raw.get("message_type"))
    if url is None:
        raise ValueError(f"Feed {name} missing url.")
    if message_type is None:
        raise ValueError(f"Feed {name} missing message_type.")
    headers_raw = raw.get("headers", {})
    if not isinstance(headers_raw, dict):
        raise ValueError(f"Feed {name} headers must be a mapping.")
    return FeedEndpoint(
        name=name,
        url=url,
        message_type=message_type,
        api_key_header=_optional_str(raw.get("api_key_header")),
        api_key_param=_optional_str(raw.get("api_key_param")),
        headers={str(key): str(value) for key, value in headers_raw.items()},
    )


def parse_settings(config: Dict[str, Any]) -> AppSettings:
    stop_id = config.get("stop_id", DEFAULT_STOP_ID)
    # YAML reads an unquoted 51 as an int; stop ids are compared as strings.
    if isinstance(stop_id, bool) or not isinstance(stop_id, (str, int)):
        raise ValueError("Config stop_id must be a string.")
    stop_id = str(stop_id).strip()
    if not stop_id:
        raise ValueError("Config stop_id cannot be empty.")

    timeout = max(1, _safe_int(config.get("request_timeout_seconds"), DEFAULT_TIMEOUT_SECONDS))

    feeds_raw = config.get("feeds", {})
    if not isinstance(feeds_raw, dict):
        raise ValueError("Config feeds must be a mapping.")
    feeds = {str(name): _parse_feed(str(name), raw) for name, raw in feeds_raw.items()}

    return AppSettings(stop_id=stop_id, request_timeout_seconds=timeout, feeds=feeds)


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    try:
        return parse_settings(load_config(config_path))
    except (FileNotFoundError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc


def get_api_key() -> Optional[str]:
    return os.environ.get("API_KEY") or None
