"""NOAA Weather - latest station observations from the NWS API, normalized to one unit system."""

__version__ = "0.1.0"

from noaa_weather.config import Settings, init_settings, load_settings
from noaa_weather.errors import ConfigError, DecodeError, FetchError
from noaa_weather.ingest.orchestrator import GatherResult, Metric, gather
from noaa_weather.ingest.units import UnitSystem, convert

__all__ = [
    "ConfigError",
    "DecodeError",
    "FetchError",
    "GatherResult",
    "Metric",
    "Settings",
    "UnitSystem",
    "convert",
    "gather",
    "init_settings",
    "load_settings",
]
