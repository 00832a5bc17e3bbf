"""Gather orchestrator: one concurrent fetch per station, one metric per success.

A gather cycle never raises for a single station. Fetch failures are reported
through ``acc.add_error``; an unparsable timestamp drops the station's metric
with only a log line.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from noaa_weather.config import MEASUREMENT_NAME, Settings
from noaa_weather.errors import FetchError, InvalidTimestamp
from noaa_weather.ingest.nws_api import WeatherClient, create_client
from noaa_weather.ingest.observation import Observation, parse_timestamp
from noaa_weather.ingest.units import UnitSystem, convert

if TYPE_CHECKING:
    from noaa_weather.sinks import Accumulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metric:
    """One station observation. Tags and fields are read-only copies."""

    name: str
    tags: Mapping[str, str]
    fields: Mapping[str, float]
    timestamp: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass
class GatherResult:
    metrics: list[Metric] = field(default_factory=list)
    errors: list[FetchError] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)


def build_fields(observation: Observation, units: UnitSystem) -> dict[str, float]:
    """Convert the unit-bearing quantities; everything else is emitted raw."""
    return {
        "pressure": observation.barometric_pressure.magnitude,
        "dewpoint": observation.dewpoint.magnitude,
        "temperature": convert(
            observation.temperature.magnitude, observation.temperature.unitCode, units
        ),
        "humidity": observation.humidity.magnitude,
        "visibility": convert(
            observation.visibility.magnitude, observation.visibility.unitCode, units
        ),
        "wind_degrees": observation.wind_direction.magnitude,
        "wind_speed": convert(
            observation.wind_speed.magnitude, observation.wind_speed.unitCode, units
        ),
    }


def build_metric(station_id: str, observation: Observation, units: UnitSystem) -> Metric:
    """Assemble the metric for one station.

    Raises InvalidTimestamp when the observation timestamp is not RFC 3339.
    """
    return Metric(
        name=MEASUREMENT_NAME,
        tags={"station": station_id},
        fields=build_fields(observation, units),
        timestamp=parse_timestamp(observation.timestamp),
    )


def gather(
    settings: Settings,
    client: WeatherClient | None = None,
    acc: Accumulator | None = None,
) -> GatherResult:
    """Run one gather cycle over every configured station.

    Stations are fetched concurrently, one worker per station (duplicates
    included). Returns once every fetch has settled. Results are reported to
    ``acc`` from the calling thread, in completion order.
    """
    result = GatherResult()
    stations = list(settings.station_ids)
    if not stations:
        return result

    own_client = client is None
    if own_client:
        client = create_client(settings)

    try:
        with ThreadPoolExecutor(max_workers=len(stations), thread_name_prefix="nws") as pool:
            futures = {pool.submit(client.fetch, station): station for station in stations}
            for future in as_completed(futures):
                station = futures[future]
                try:
                    observation = future.result()
                except FetchError as e:
                    logger.warning("Fetch failed: %s", e)
                    _report_error(result, acc, e)
                    continue
                except Exception as e:
                    logger.exception("Unexpected error fetching %s", station)
                    err = FetchError(station, client.observation_url(station), "unexpected error", str(e))
                    err.__cause__ = e
                    _report_error(result, acc, err)
                    continue

                try:
                    metric = build_metric(station, observation, settings.units)
                except InvalidTimestamp as e:
                    logger.warning("Dropping observation for %s: %s", station, e)
                    result.dropped.append(station)
                    continue

                result.metrics.append(metric)
                if acc is not None:
                    acc.add_fields(metric.name, metric.fields, metric.tags, metric.timestamp)
    finally:
        if own_client:
            client.close()

    logger.info(
        "Gathered %d station(s): %d metrics, %d errors, %d dropped",
        len(stations), len(result.metrics), len(result.errors), len(result.dropped),
    )
    return result


def _report_error(result: GatherResult, acc: Accumulator | None, err: FetchError) -> None:
    result.errors.append(err)
    if acc is not None:
        acc.add_error(err)
