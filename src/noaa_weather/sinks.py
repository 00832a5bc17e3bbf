"""Destinations for emitted metrics and per-station errors."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Mapping, Protocol

import duckdb

from noaa_weather.db.queries import upsert_observations
from noaa_weather.ingest.orchestrator import Metric

logger = logging.getLogger(__name__)


class Accumulator(Protocol):
    """Receives the output of a gather cycle."""

    def add_fields(
        self,
        measurement: str,
        fields: Mapping[str, float],
        tags: Mapping[str, str],
        timestamp: datetime,
    ) -> None:
        ...

    def add_error(self, err: Exception) -> None:
        ...


class MemoryAccumulator:
    """Keeps everything in lists. Used by tests and the CLI."""

    def __init__(self) -> None:
        self.metrics: list[Metric] = []
        self.errors: list[Exception] = []

    def add_fields(self, measurement, fields, tags, timestamp) -> None:
        self.metrics.append(Metric(name=measurement, tags=dict(tags), fields=dict(fields), timestamp=timestamp))

    def add_error(self, err: Exception) -> None:
        self.errors.append(err)


class DuckDBAccumulator(MemoryAccumulator):
    """Buffers metrics and writes them to fact_station_observation on flush()."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        super().__init__()
        self.conn = conn

    def add_error(self, err: Exception) -> None:
        super().add_error(err)
        logger.warning("Gather error: %s", err)

    def flush(self) -> int:
        count = upsert_observations(self.conn, self.metrics)
        logger.info("Stored %d observations", count)
        self.metrics = []
        return count
