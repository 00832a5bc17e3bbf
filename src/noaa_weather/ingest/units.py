"""Unit normalization for NWS quantitative values.

Values arrive tagged with a WMO unit code (``wmoUnit:degC``). Only the codes
listed in ``_IMPERIAL`` are converted; everything else is passed through as-is,
including pressure in Pa.
"""

from __future__ import annotations

from enum import Enum


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


def _celsius_to_fahrenheit(value: float) -> float:
    return value * 9.0 / 5.0 + 32


def _kmh_to_mph(value: float) -> float:
    return value / 1.609


def _meters_to_miles(value: float) -> float:
    return value / 1609.0


_IMPERIAL = {
    "wmoUnit:degC": _celsius_to_fahrenheit,
    "degC": _celsius_to_fahrenheit,
    "wmoUnit:km_h-1": _kmh_to_mph,
    "km_h-1": _kmh_to_mph,
    "wmoUnit:m": _meters_to_miles,
    "m": _meters_to_miles,
}


def convert(value: float, unit_code: str, units: UnitSystem) -> float:
    """Convert ``value`` tagged with ``unit_code`` into ``units``.

    Metric output is the wire value unchanged (NWS already reports metric).
    Unknown unit codes are never an error.
    """
    if units != UnitSystem.IMPERIAL:
        return value
    fn = _IMPERIAL.get(unit_code)
    if fn is None:
        return value
    return fn(value)
