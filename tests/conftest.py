"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from noaa_weather.config import init_settings
from noaa_weather.db.connection import get_memory_connection

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def db():
    """In-memory DuckDB with all tables created."""
    conn = get_memory_connection()
    yield conn
    conn.close()


@pytest.fixture
def sample_body() -> bytes:
    """Latest observation for KSUA, 2021-11-07T18:50:00+00:00."""
    return (FIXTURES / "ksua_latest.json").read_bytes()


@pytest.fixture
def make_response():
    """Build a fake requests.Response."""
    def _make(body: bytes = b"{}", status_code: int = 200, content_type: str | None = "application/ld+json"):
        resp = MagicMock()
        resp.status_code = status_code
        resp.reason = "OK" if status_code == 200 else "Error"
        resp.headers = {} if content_type is None else {"Content-Type": content_type}
        resp.content = body
        return resp
    return _make


@pytest.fixture
def session(make_response, sample_body):
    """A fake requests.Session answering every GET with the KSUA sample."""
    s = MagicMock()
    s.get.return_value = make_response(sample_body)
    return s


@pytest.fixture
def metric_settings():
    return init_settings(["KSUA"], base_url="http://foo.com", units="metric")


@pytest.fixture
def imperial_settings():
    return init_settings(["KSUA"], base_url="http://foo.com", units="imperial")
