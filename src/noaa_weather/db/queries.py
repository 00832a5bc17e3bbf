"""Typed query functions for stored observations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

import duckdb
import pandas as pd

from noaa_weather.config import FIELDS

if TYPE_CHECKING:
    from noaa_weather.ingest.orchestrator import Metric

_COLUMNS = ["station_id", "observed_at", "measurement", "temperature", "dewpoint", "humidity",
            "pressure", "visibility", "wind_speed", "wind_degrees"]


def metrics_to_frame(metrics: Iterable[Metric]) -> pd.DataFrame:
    """Flatten metrics into one row per station observation.

    ``observed_at`` is naive UTC, matching the TIMESTAMP column.
    """
    rows = []
    for metric in metrics:
        row = {
            "station_id": metric.tags.get("station"),
            "observed_at": metric.timestamp.astimezone(timezone.utc).replace(tzinfo=None),
            "measurement": metric.name,
        }
        for name in FIELDS:
            row[name] = metric.fields.get(name)
        rows.append(row)
    return pd.DataFrame(rows, columns=_COLUMNS)


def upsert_observations(conn: duckdb.DuckDBPyConnection, metrics: Iterable[Metric]) -> int:
    """Insert or replace observations. Returns count of rows upserted."""
    records = metrics_to_frame(metrics)
    if records.empty:
        return 0

    # The same station can appear twice in one cycle
    records = records.drop_duplicates(subset=["station_id", "observed_at"], keep="last")
    records["ingested_at"] = datetime.now()

    conn.execute(f"""
        INSERT OR REPLACE INTO fact_station_observation ({", ".join(_COLUMNS)}, ingested_at)
        SELECT * FROM records
    """)
    return len(records)


def get_latest_observations(
    conn: duckdb.DuckDBPyConnection,
    station_id: str | None = None,
) -> pd.DataFrame:
    """Most recent stored observation per station, optionally for one station."""
    sql = """
        SELECT * EXCLUDE (rn) FROM (
            SELECT *, ROW_NUMBER() OVER (
                PARTITION BY station_id ORDER BY observed_at DESC
            ) AS rn
            FROM fact_station_observation
        )
        WHERE rn = 1
    """
    params: list = []
    if station_id is not None:
        sql += " AND station_id = ?"
        params.append(station_id)
    sql += " ORDER BY station_id"
    return conn.execute(sql, params).fetchdf()


def count_observations(conn: duckdb.DuckDBPyConnection, station_id: str) -> int:
    row = conn.execute(
        "SELECT COUNT(*) FROM fact_station_observation WHERE station_id = ?", [station_id]
    ).fetchone()
    return row[0] if row else 0
