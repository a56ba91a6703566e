import logging
import time
from datetime import datetime, timezone

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from .config import InfluxConfig, WritePolicy
from .errors import WriteError
from .models import TimeSeriesPoint

_LOGGER = logging.getLogger(__name__)

TAG_KEY = "sensor_location"


def build_point(data: TimeSeriesPoint) -> Point:
    point = (Point(data.measurement)
             .tag(TAG_KEY, data.location)
             .time(data.timestamp, WritePrecision.NS))
    for name, value in data.fields.items():
        point.field(name, value)
    return point


class PointWriter:
    """
    Writes points to InfluxDB with a blocking call.
    A fresh client is opened for every write and closed right after it.
    Failures are handled according to the configured WritePolicy.

    `sleep` is called with each retry delay. A truthy return, as from
    `threading.Event.wait` on a set event, abandons the remaining retries.
    `time.sleep` returns None and never does.
    """

    def __init__(self, config: InfluxConfig,
                 policy: WritePolicy = WritePolicy.FATAL,
                 retry_attempts: int = 3,
                 retry_backoff: float = 1.0,
                 client_factory=InfluxDBClient,
                 sleep=time.sleep):
        self.config = config
        self.policy = policy
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff
        self._client_factory = client_factory
        self._sleep = sleep

        if config.insecure_skip_verify:
            _LOGGER.warning("TLS certificate verification is DISABLED for %s", config.url)

    def _write_once(self, point: TimeSeriesPoint) -> None:
        try:
            with self._client_factory(url=self.config.url,
                                      token=self.config.token,
                                      org=self.config.org,
                                      verify_ssl=not self.config.insecure_skip_verify) as client:
                write_api = client.write_api(write_options=SYNCHRONOUS)
                write_api.write(bucket=self.config.bucket, org=self.config.org, record=build_point(point))
        except Exception as e:
            raise WriteError(f"Writing {point.measurement} point failed: {e}") from e

    def write(self, measurement: str, location: str, fields: dict[str, float]) -> bool:
        """
        Write one point stamped with the current time.
        Returns True if written, False if dropped. Raises WriteError under the fatal policy.
        """
        point = TimeSeriesPoint(
            measurement=measurement,
            location=location,
            fields=dict(fields),
            timestamp=datetime.now(timezone.utc),
        )

        attempts = 1 + (self.retry_attempts if self.policy is WritePolicy.RETRY else 0)
        error = None
        for attempt in range(1, attempts + 1):
            try:
                self._write_once(point)
                _LOGGER.debug("Wrote %s %s=%s %s", measurement, TAG_KEY, location, point.fields)
                return True
            except WriteError as e:
                error = e
            if attempt < attempts:
                delay = self.retry_backoff * 2 ** (attempt - 1)
                _LOGGER.warning("%s, retrying in %.1fs (%d/%d)", error, delay, attempt, attempts - 1)
                if self._sleep(delay):
                    break

        if self.policy is WritePolicy.FATAL:
            raise error
        _LOGGER.error("%s, dropping point", error)
        return False
