"""Exception types raised by the collector."""

from __future__ import annotations


class NOAAWeatherError(Exception):
    """Base class for all collector errors."""


class ConfigError(NOAAWeatherError, ValueError):
    """Invalid settings. Raised once at startup and fatal."""


class DecodeError(NOAAWeatherError):
    """Observation body is not well-formed JSON or has the wrong shape."""


class InvalidTimestamp(NOAAWeatherError, ValueError):
    """Observation timestamp is not RFC 3339."""


class FetchError(NOAAWeatherError):
    """A single station could not be fetched.

    Non-fatal: reported to the sink and the rest of the cycle carries on.
    """

    def __init__(self, station_id: str, url: str, reason: str, detail: str = "") -> None:
        self.station_id = station_id
        self.url = url
        self.reason = reason
        self.detail = detail
        message = f"{station_id}: {reason} ({url})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
