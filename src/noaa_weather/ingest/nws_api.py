"""NWS API fetcher for the latest observation of a station.

https://www.weather.gov/documentation/services-web-api#/default/station_observation_latest
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote, urlencode, urljoin

import requests

from noaa_weather.config import OBSERVATION_MEDIA_TYPE, OBSERVATION_PATH, Settings
from noaa_weather.errors import DecodeError, FetchError
from noaa_weather.ingest.observation import Observation, parse_observation

logger = logging.getLogger(__name__)

_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")
_PARAM_RE = re.compile(rf'[ \t]*;[ \t]*{_TOKEN}[ \t]*=[ \t]*(?:{_TOKEN}|"(?:[^"\\]|\\.)*")')


def parse_media_type(header: str | None) -> str:
    """Return the lower-cased ``type/subtype`` of a Content-Type header.

    Parameters must be well formed (``token=token`` or ``token="quoted"``)
    but their values are not used. A single trailing ``;`` is allowed.
    Raises ValueError for anything else.
    """
    if not header:
        raise ValueError("no media type")
    media_type, sep, params = header.partition(";")
    media_type = media_type.strip()
    if not _MEDIA_TYPE_RE.match(media_type):
        raise ValueError(f"malformed media type {media_type!r}")

    rest = sep + params
    pos = 0
    while rest[pos:].strip():
        match = _PARAM_RE.match(rest, pos)
        if match is None:
            if rest[pos:].strip() == ";":
                break
            raise ValueError(f"invalid media parameter {rest[pos:].strip()!r}")
        pos = match.end()
    return media_type.lower()


class WeatherClient:
    """Fetches observations from the NWS API.

    One requests.Session is shared by every fetch; it is never mutated after
    construction, so concurrent fetches from a thread pool are fine.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session if session is not None else requests.Session()

    def observation_url(self, station_id: str) -> str:
        relative = OBSERVATION_PATH.format(station=quote(station_id, safe=""))
        query = urlencode({"require_qc": "false"})
        return urljoin(self.settings.base_url, f"{relative}?{query}")

    def fetch(self, station_id: str) -> Observation:
        """Fetch and decode the latest observation for one station.

        Raises FetchError, with ``reason`` naming the failed step.
        """
        url = self.observation_url(station_id)
        headers = {
            "Accept": OBSERVATION_MEDIA_TYPE,
            "User-Agent": self.settings.user_agent,
        }

        logger.debug("Fetching %s", url)
        try:
            resp = self.session.get(url, headers=headers, timeout=self.settings.response_timeout)
        except requests.RequestException as e:
            raise FetchError(station_id, url, "request failed", str(e)) from e

        try:
            if resp.status_code != 200:
                raise FetchError(
                    station_id, url, "unexpected status", f"HTTP {resp.status_code} {resp.reason}"
                )

            content_type = resp.headers.get("Content-Type")
            try:
                media_type = parse_media_type(content_type)
            except ValueError as e:
                raise FetchError(station_id, url, "bad content-type header", str(e)) from e
            if media_type != OBSERVATION_MEDIA_TYPE:
                raise FetchError(station_id, url, "unexpected content type", media_type)

            try:
                return parse_observation(resp.content)
            except DecodeError as e:
                raise FetchError(station_id, url, "decode failed", str(e)) from e
        finally:
            resp.close()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> WeatherClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def create_client(settings: Settings) -> WeatherClient:
    return WeatherClient(settings)
