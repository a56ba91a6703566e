"""HTTP JSON sources polled by the collector."""

import logging

import httpx

from .config import EntrySelection
from .errors import FetchError
from .mapping import map_avtech, map_weather_stations
from .models import FieldSet, decode_avtech, decode_weather_stations

_LOGGER = logging.getLogger(__name__)


def fetch(url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> bytes:
    """
    Perform a single GET and return the raw body.
    Transport failures and non-success statuses raise FetchError. No retry.
    """
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.get(url, headers={"Accept": "application/json"})
            response.raise_for_status()
            return response.content
    except httpx.HTTPStatusError as e:
        raise FetchError(f"GET {url} returned HTTP {e.response.status_code}") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"GET {url} failed: {e}") from e


class HTTPSource:
    """Base class: fetch a URL, decode the body, map it to field sets."""

    name = "http"

    def __init__(self, url: str, location: str, measurement: str,
                 selection: EntrySelection = EntrySelection.FIRST,
                 timeout: float = 10.0,
                 transport: httpx.BaseTransport | None = None):
        self.url = url
        self.location = location
        self.measurement = measurement
        self.selection = selection
        self.timeout = timeout
        self._transport = transport

    def fetch(self):
        """Fetch and decode one payload. Raises FetchError or DecodeError."""
        body = fetch(self.url, self.timeout, self._transport)
        _LOGGER.debug("[%s] fetched %d bytes from %s", self.name, len(body), self.url)
        return self.decode(body)

    def decode(self, body: bytes):
        raise NotImplementedError()

    def map(self, payload) -> list[FieldSet]:
        raise NotImplementedError()

    def read(self) -> list[FieldSet]:
        """Fetch, decode and map. Raises any CollectorError along the way."""
        return self.map(self.fetch())


class AvtechSource(HTTPSource):
    """Avtech room alert device exposing its sensors as JSON."""

    name = "avtech"

    def decode(self, body: bytes):
        return decode_avtech(body)

    def map(self, payload) -> list[FieldSet]:
        return map_avtech(payload, self.location, self.selection)


class WeatherStationSource(HTTPSource):
    """Ambient Weather REST API returning a list of stations."""

    name = "weather_station"

    def decode(self, body: bytes):
        return decode_weather_stations(body)

    def map(self, payload) -> list[FieldSet]:
        return map_weather_stations(payload, self.location, self.selection)
