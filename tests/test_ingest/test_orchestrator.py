"""Tests for the gather orchestrator."""

import json
from unittest.mock import MagicMock

import pytest

from noaa_weather.config import init_settings
from noaa_weather.errors import FetchError
from noaa_weather.ingest.nws_api import WeatherClient
from noaa_weather.ingest.orchestrator import gather
from noaa_weather.sinks import MemoryAccumulator


def _by_url(mapping: dict, default):
    """side_effect routing session.get by station in the URL."""
    def _get(url, **kwargs):
        for station, resp in mapping.items():
            if f"/stations/{station}/" in url:
                if isinstance(resp, Exception):
                    raise resp
                return resp
        return default
    return _get


def test_gather_metric(metric_settings, session):
    acc = MemoryAccumulator()

    result = gather(metric_settings, client=WeatherClient(metric_settings, session=session), acc=acc)

    assert len(result.metrics) == 1
    assert result.errors == []
    metric = result.metrics[0]
    assert metric.name == "weather"
    assert metric.tags == {"station": "KSUA"}
    assert metric.fields == {
        "temperature": 21.0,
        "humidity": 52.802638324228,
        "pressure": 101520.0,
        "visibility": 16090.0,
        "dewpoint": 11.0,
        "wind_speed": 22.32,
        "wind_degrees": 340.0,
    }
    assert all(isinstance(v, float) for v in metric.fields.values())
    assert metric.timestamp.timestamp() == 1636311000
    assert acc.metrics == result.metrics
    assert acc.errors == []


def test_gather_imperial(imperial_settings, session):
    result = gather(imperial_settings, client=WeatherClient(imperial_settings, session=session))

    fields = result.metrics[0].fields
    assert fields["temperature"] == pytest.approx(69.8)
    assert fields["visibility"] == 10.0
    assert fields["wind_speed"] == pytest.approx(13.871970167806092)
    # not unit-converted
    assert fields["dewpoint"] == 11.0
    assert fields["pressure"] == 101520.0
    assert fields["humidity"] == 52.802638324228
    assert fields["wind_degrees"] == 340.0


def test_gather_duplicate_stations(session):
    settings = init_settings(["KSUA", "KSUA"], base_url="http://foo.com", units="imperial")

    result = gather(settings, client=WeatherClient(settings, session=session))

    assert len(result.metrics) == 2
    assert result.metrics[0] == result.metrics[1]
    assert session.get.call_count == 2


def test_gather_tags_each_metric_with_its_station(make_response, sample_body):
    settings = init_settings(["KSUA", "KMIA"], base_url="http://foo.com")
    session = MagicMock()
    session.get.side_effect = lambda url, **kw: make_response(sample_body)

    result = gather(settings, client=WeatherClient(settings, session=session))

    assert sorted(m.tags["station"] for m in result.metrics) == ["KMIA", "KSUA"]


def test_gather_bad_content_type_isolated(make_response, sample_body):
    settings = init_settings(["KSUA", "KBAD"], base_url="http://foo.com")
    session = MagicMock()
    session.get.side_effect = _by_url(
        {"KBAD": make_response(sample_body, content_type=None)},
        default=make_response(sample_body),
    )
    acc = MemoryAccumulator()

    result = gather(settings, client=WeatherClient(settings, session=session), acc=acc)

    assert [m.tags["station"] for m in result.metrics] == ["KSUA"]
    assert len(result.errors) == 1
    assert result.errors[0].station_id == "KBAD"
    assert result.errors[0].reason == "bad content-type header"
    assert acc.errors == result.errors


def test_gather_network_error_isolated(make_response, sample_body):
    import requests

    settings = init_settings(["KSUA", "KDOWN"], base_url="http://foo.com")
    session = MagicMock()
    session.get.side_effect = _by_url(
        {"KDOWN": requests.ConnectionError("refused")},
        default=make_response(sample_body),
    )

    result = gather(settings, client=WeatherClient(settings, session=session))

    assert len(result.metrics) == 1
    assert [e.reason for e in result.errors] == ["request failed"]


def test_gather_bad_timestamp_dropped_silently(make_response, sample_body):
    doc = json.loads(sample_body)
    doc["timestamp"] = "not a time"
    settings = init_settings(["KSUA", "KOLD"], base_url="http://foo.com")
    session = MagicMock()
    session.get.side_effect = _by_url(
        {"KOLD": make_response(json.dumps(doc).encode())},
        default=make_response(sample_body),
    )
    acc = MemoryAccumulator()

    result = gather(settings, client=WeatherClient(settings, session=session), acc=acc)

    assert [m.tags["station"] for m in result.metrics] == ["KSUA"]
    assert result.errors == []
    assert acc.errors == []
    assert result.dropped == ["KOLD"]


def test_gather_unexpected_exception_reported(metric_settings):
    client = MagicMock()
    client.fetch.side_effect = RuntimeError("boom")
    client.observation_url.return_value = "http://foo.com/stations/KSUA/observations/latest?require_qc=false"
    acc = MemoryAccumulator()

    result = gather(metric_settings, client=client, acc=acc)

    assert result.metrics == []
    assert len(acc.errors) == 1
    assert isinstance(acc.errors[0], FetchError)
    assert acc.errors[0].reason == "unexpected error"


def test_gather_all_failed_returns_normally(make_response):
    settings = init_settings(["A", "B", "C"], base_url="http://foo.com")
    session = MagicMock()
    session.get.side_effect = lambda url, **kw: make_response(b"", status_code=404)

    result = gather(settings, client=WeatherClient(settings, session=session))

    assert result.metrics == []
    assert sorted(e.station_id for e in result.errors) == ["A", "B", "C"]


def test_gather_does_not_close_caller_client(metric_settings, session):
    gather(metric_settings, client=WeatherClient(metric_settings, session=session))

    session.close.assert_not_called()


def test_metric_tags_and_fields_are_read_only(metric_settings, session):
    metric = gather(metric_settings, client=WeatherClient(metric_settings, session=session)).metrics[0]

    with pytest.raises(TypeError):
        metric.fields["temperature"] = 0.0
    with pytest.raises(TypeError):
        metric.tags["station"] = "KMIA"


def test_metric_copies_caller_mappings():
    from datetime import datetime, timezone

    from noaa_weather.ingest.orchestrator import Metric

    tags = {"station": "KSUA"}
    fields = {"temperature": 21.0}
    metric = Metric("weather", tags, fields, datetime(2021, 11, 7, 18, 50, tzinfo=timezone.utc))
    tags["station"] = "KMIA"
    fields["temperature"] = 0.0

    assert metric.tags == {"station": "KSUA"}
    assert metric.fields == {"temperature": 21.0}
