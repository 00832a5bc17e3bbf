"""Defaults and settings resolution for the NWS observation collector."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
import re
from urllib.parse import urlsplit

from noaa_weather import __version__
from noaa_weather.errors import ConfigError
from noaa_weather.ingest.units import UnitSystem

logger = logging.getLogger(__name__)

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DB_PATH = DATA_DIR / "noaa_weather.duckdb"
SETTINGS_JSON = DATA_DIR / "settings.json"

# NWS API (https://www.weather.gov/documentation/services-web-api)
DEFAULT_BASE_URL = "https://api.weather.gov/"
OBSERVATION_PATH = "/stations/{station}/observations/latest"
OBSERVATION_MEDIA_TYPE = "application/ld+json"

DEFAULT_RESPONSE_TIMEOUT = 5.0
MIN_RESPONSE_TIMEOUT = 1.0
DEFAULT_UNITS = UnitSystem.METRIC
DEFAULT_USER_AGENT = f"noaa-weather/{__version__}"
DEFAULT_INTERVAL = 600.0

# Emitted measurement
MEASUREMENT_NAME = "weather"
FIELDS = ["pressure", "dewpoint", "temperature", "humidity", "visibility", "wind_degrees", "wind_speed"]


@dataclass(frozen=True)
class Settings:
    station_ids: tuple[str, ...]
    base_url: str = DEFAULT_BASE_URL
    response_timeout: float = DEFAULT_RESPONSE_TIMEOUT
    units: UnitSystem = DEFAULT_UNITS
    user_agent: str = DEFAULT_USER_AGENT
    interval: float = DEFAULT_INTERVAL


def init_settings(
    station_ids,
    base_url: str | None = None,
    response_timeout: float | str | None = None,
    units: str | None = None,
    user_agent: str | None = None,
    interval: float | str | None = None,
) -> Settings:
    """Resolve and validate settings once, before the first gather cycle.

    Raises ConfigError for an unusable base URL, unknown units or a missing
    station list. A timeout below one second is replaced by the default
    rather than rejected.
    """
    if isinstance(station_ids, str):
        station_ids = [station_ids]
    stations = tuple(station_ids or ())
    if not stations:
        raise ConfigError("at least one station_id is required")
    for station in stations:
        if not isinstance(station, str) or not station.strip():
            raise ConfigError(f"invalid station_id: {station!r}")

    return Settings(
        station_ids=stations,
        base_url=_resolve_base_url(base_url or DEFAULT_BASE_URL),
        response_timeout=_resolve_timeout(response_timeout),
        units=_resolve_units(units),
        user_agent=DEFAULT_USER_AGENT if user_agent is None else user_agent,
        interval=DEFAULT_INTERVAL if interval is None else parse_duration(interval),
    )


def load_settings(json_path: Path | str = SETTINGS_JSON, **overrides) -> Settings:
    """Load settings from a JSON file, then apply non-None overrides.

    Keys: station_id, base_url, response_timeout, units, user_agent, interval.
    """
    try:
        with open(json_path) as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"settings file not found: {json_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"settings file {json_path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"settings file {json_path} must contain a JSON object")

    params = {
        "station_ids": raw.get("station_id", []),
        "base_url": raw.get("base_url"),
        "response_timeout": raw.get("response_timeout"),
        "units": raw.get("units"),
        "user_agent": raw.get("user_agent"),
        "interval": raw.get("interval"),
    }
    params.update({k: v for k, v in overrides.items() if v is not None})
    logger.debug("Loaded settings from %s", json_path)
    return init_settings(**params)


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_SCALE = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: float | int | str) -> float:
    """Parse ``5``, ``"5s"``, ``"500ms"``, ``"10m"`` or ``"1h"`` into seconds."""
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if match is None:
        raise ConfigError(f"invalid duration: {value!r}")
    number, unit = match.groups()
    return float(number) * _DURATION_SCALE[unit or "s"]


def _resolve_base_url(base_url: str) -> str:
    try:
        parts = urlsplit(base_url)
    except ValueError as e:
        raise ConfigError(f"invalid base_url {base_url!r}: {e}") from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigError(f"base_url must be an absolute http(s) URL: {base_url!r}")
    return base_url


def _resolve_timeout(response_timeout: float | str | None) -> float:
    if response_timeout is None:
        return DEFAULT_RESPONSE_TIMEOUT
    timeout = parse_duration(response_timeout)
    if timeout < MIN_RESPONSE_TIMEOUT:
        return DEFAULT_RESPONSE_TIMEOUT
    return timeout


def _resolve_units(units: str | None) -> UnitSystem:
    if not units:
        return DEFAULT_UNITS
    try:
        return UnitSystem(units)
    except ValueError:
        raise ConfigError(f"unknown units: {units}") from None
