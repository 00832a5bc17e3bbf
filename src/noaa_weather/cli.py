"""CLI entry point for noaa-weather."""

from __future__ import annotations

import argparse
import logging
import sys
import time

from noaa_weather.config import init_settings, load_settings
from noaa_weather.errors import ConfigError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="noaa-weather",
        description="Latest NWS station observations, normalized to metric or imperial units",
    )
    parser.add_argument("--config", help="JSON settings file (station_id, base_url, units, ...)")
    parser.add_argument("--station", action="append", dest="stations", help="Station ID (e.g. KSUA), repeatable")
    parser.add_argument("--base-url", help="API root (default: https://api.weather.gov/)")
    parser.add_argument("--units", help='Unit system: "metric" (default) or "imperial"')
    parser.add_argument("--timeout", help="HTTP response timeout, e.g. 5s")
    parser.add_argument("--user-agent", help="User-Agent sent to the API")
    parser.add_argument("--db", help="Store observations in this DuckDB file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("gather", help="Run a single gather cycle")

    poll_parser = subparsers.add_parser("poll", help="Gather repeatedly on an interval")
    poll_parser.add_argument("--interval", help="Time between cycles, e.g. 10m")
    poll_parser.add_argument("--cycles", type=int, default=0, help="Stop after N cycles (0 = forever)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        settings = _settings_from_args(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "gather":
        return _gather_once(settings, args.db)
    return _poll(settings, args.db, args.cycles)


def _settings_from_args(args: argparse.Namespace):
    overrides = {
        "station_ids": args.stations,
        "base_url": args.base_url,
        "response_timeout": args.timeout,
        "units": args.units,
        "user_agent": args.user_agent,
        "interval": getattr(args, "interval", None),
    }
    if args.config:
        return load_settings(args.config, **overrides)
    return init_settings(**overrides)


def _gather_once(settings, db_path: str | None) -> int:
    from noaa_weather.ingest.orchestrator import gather
    from noaa_weather.sinks import DuckDBAccumulator, MemoryAccumulator

    conn = None
    if db_path:
        from noaa_weather.db.connection import get_connection

        conn = get_connection(db_path)
        acc = DuckDBAccumulator(conn)
    else:
        acc = MemoryAccumulator()

    try:
        result = gather(settings, acc=acc)
        for metric in result.metrics:
            print(_format_metric(metric))
        for err in result.errors:
            print(f"error: {err}", file=sys.stderr)
        if conn is not None:
            acc.flush()
    finally:
        if conn is not None:
            conn.close()

    if result.errors and not result.metrics:
        return 1
    return 0


def _poll(settings, db_path: str | None, cycles: int) -> int:
    logger.info(
        "Polling %d station(s) every %.0fs", len(settings.station_ids), settings.interval
    )
    status = 0
    n = 0
    while True:
        t0 = time.monotonic()
        status = _gather_once(settings, db_path)
        n += 1
        if cycles and n >= cycles:
            return status
        time.sleep(max(0.0, settings.interval - (time.monotonic() - t0)))


def _format_metric(metric) -> str:
    tags = ",".join(f"{k}={v}" for k, v in sorted(metric.tags.items()))
    fields = ",".join(f"{k}={v:g}" for k, v in sorted(metric.fields.items()))
    return f"{metric.name},{tags} {fields} {int(metric.timestamp.timestamp())}"


if __name__ == "__main__":
    sys.exit(main())
