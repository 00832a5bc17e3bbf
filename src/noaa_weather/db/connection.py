"""DuckDB connections for the observation store, schema included."""

from __future__ import annotations

from pathlib import Path
import logging

import duckdb

from noaa_weather.config import DB_PATH
from noaa_weather.db.schema import create_all_tables

logger = logging.getLogger(__name__)


def get_connection(db_path: Path | str = DB_PATH) -> duckdb.DuckDBPyConnection:
    """Open (or create) the observation store at ``db_path``, tables ready."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = duckdb.connect(str(path))
    create_all_tables(conn)
    logger.debug("Opened observation store %s", path)
    return conn


def get_memory_connection() -> duckdb.DuckDBPyConnection:
    """Throwaway in-memory store with the same schema."""
    conn = duckdb.connect(":memory:")
    create_all_tables(conn)
    return conn
