"""Decoding of NWS ``/observations/latest`` JSON-LD documents."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from noaa_weather.errors import DecodeError, InvalidTimestamp


class ApiValue(BaseModel):
    """A quantitative value as served by the API: unit code, value, QC flag."""

    model_config = ConfigDict(frozen=True)

    unitCode: str = ""
    value: float | None = None
    qualityControl: str = ""

    @property
    def magnitude(self) -> float:
        # null readings are common (e.g. missing visibility) and read as zero
        return 0.0 if self.value is None else self.value


class Observation(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: ApiValue = Field(default_factory=ApiValue)
    dewpoint: ApiValue = Field(default_factory=ApiValue)
    humidity: ApiValue = Field(default_factory=ApiValue, alias="relativeHumidity")
    barometric_pressure: ApiValue = Field(default_factory=ApiValue, alias="barometricPressure")
    visibility: ApiValue = Field(default_factory=ApiValue)
    wind_speed: ApiValue = Field(default_factory=ApiValue, alias="windSpeed")
    wind_direction: ApiValue = Field(default_factory=ApiValue, alias="windDirection")
    timestamp: str = ""

    @field_validator(
        "temperature",
        "dewpoint",
        "humidity",
        "barometric_pressure",
        "visibility",
        "wind_speed",
        "wind_direction",
        mode="before",
    )
    @classmethod
    def _null_quantity(cls, v):
        return {} if v is None else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _null_timestamp(cls, v):
        return "" if v is None else v


def parse_observation(body: bytes | str) -> Observation:
    """Decode one station's response body.

    Raises DecodeError on malformed JSON or a wrong-shaped quantity. Absent
    quantities decode to an empty ApiValue.
    """
    try:
        return Observation.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(f"error while decoding JSON response: {e}") from e


_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(?:(Z)|([+-])(\d{2}):(\d{2}))",
    re.ASCII,
)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp such as ``2021-11-07T18:50:00+00:00``.

    The UTC offset (or ``Z``) is mandatory. Fractional seconds of any length
    are accepted and truncated to microseconds.
    """
    match = _RFC3339_RE.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise InvalidTimestamp(f"invalid timestamp {value!r}: not RFC 3339")

    year, month, day, hour, minute, second, frac, zulu, sign, off_h, off_m = match.groups()
    try:
        if zulu:
            tz = timezone.utc
        else:
            offset = timedelta(hours=int(off_h), minutes=int(off_m))
            tz = timezone(-offset if sign == "-" else offset)
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second),
            int((frac or "0")[:6].ljust(6, "0")),
            tzinfo=tz,
        )
    except ValueError as e:
        raise InvalidTimestamp(f"invalid timestamp {value!r}: {e}") from e
