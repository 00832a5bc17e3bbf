"""DDL for stored observations."""

import duckdb


def create_all_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Create all tables if they don't already exist."""

    conn.execute("""
        CREATE TABLE IF NOT EXISTS fact_station_observation (
            station_id   VARCHAR NOT NULL,
            observed_at  TIMESTAMP NOT NULL,
            measurement  VARCHAR NOT NULL,
            temperature  DOUBLE,
            dewpoint     DOUBLE,
            humidity     DOUBLE,
            pressure     DOUBLE,
            visibility   DOUBLE,
            wind_speed   DOUBLE,
            wind_degrees DOUBLE,
            ingested_at  TIMESTAMP DEFAULT current_timestamp,
            PRIMARY KEY (station_id, observed_at)
        )
    """)
