import json

import pytest

from sensor_collector.config import InfluxConfig

ENV_KEYS = (
    "MQTT_BROKER_IP", "MQTT_BROKER_PORT", "MQTT_SUB_TOPIC", "MQTT_CLIENT_ID",
    "MQTT_PUBLISH_TEST_MESSAGE", "AVTECH_URL", "AMBIENT_FULL_URL",
    "INFLUXDB_URL", "INFLUXDB_API_TOKEN", "INFLUXDB_BUCKET", "INFLUXDB_ORG",
    "INFLUXDB_INSECURE_SKIP_VERIFY", "POLL_INTERVAL_SECS", "HTTP_TIMEOUT_SECS",
    "ENTRY_SELECTION", "AVTECH_LOCATION", "WEATHER_STATION_LOCATION",
    "AVTECH_MEASUREMENT", "WEATHER_STATION_MEASUREMENT", "RPI_MEASUREMENT",
    "WRITE_FAILURE_POLICY", "WRITE_RETRY_ATTEMPTS", "WRITE_RETRY_BACKOFF_SECS",
    "LOG_LEVEL",
)


class FakeInfluxClient:
    """Stands in for InfluxDBClient: records written points, can fail a number of times."""

    def __init__(self, recorder, **kwargs):
        self.recorder = recorder
        self.kwargs = kwargs
        recorder.opened.append(kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.recorder.closed += 1
        return False

    def write_api(self, write_options=None):
        return self

    def write(self, bucket, org, record):
        if self.recorder.failures > 0:
            self.recorder.failures -= 1
            raise ConnectionError("database unreachable")
        self.recorder.writes.append((bucket, org, record))


class InfluxRecorder:
    def __init__(self):
        self.opened = []
        self.closed = 0
        self.writes = []
        self.failures = 0

    def factory(self, **kwargs):
        return FakeInfluxClient(self, **kwargs)

    @property
    def lines(self):
        return [record.to_line_protocol() for _, _, record in self.writes]


@pytest.fixture
def influx():
    return InfluxRecorder()


@pytest.fixture
def influx_config():
    return InfluxConfig(url="https://influx.local:8086", token="secret", org="home", bucket="sensors")


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so the keys are removed again at teardown, even if a .env file set them
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def avtech_payload():
    return {
        "sensor": [
            {"label": "A", "tempf": "70.5", "tempc": "21.4",
             "highf": "", "highc": "", "lowf": "", "lowc": ""},
        ]
    }


def make_station(mac="00:0E:C6:20:0F:7B", name="Backyard", **overrides):
    last_data = {
        "dateutc": 1700000000000,
        "tempinf": 71.2,
        "humidityin": 38,
        "baromrelin": 29.92,
        "baromabsin": 29.5,
        "tempf": 45.3,
        "battout": 1,
        "humidity": 80,
        "winddir": 270,
        "windspeedmph": 3.4,
        "windgustmph": 5.8,
        "maxdailygust": 12.1,
        "hourlyrainin": 0.0,
        "eventrainin": 0.12,
        "dailyrainin": 0.12,
        "weeklyrainin": 0.5,
        "monthlyrainin": 1.7,
        "totalrainin": 30.2,
        "solarradiation": 120.5,
        "uv": 1,
        "batt_co2": 1,
        "feelsLike": 44.1,
        "dewPoint": 39.6,
        "feelsLikein": 70.8,
        "dewPointin": 44.0,
        "lastRain": "2023-11-14T20:00:00.000Z",
        "tz": "America/New_York",
        "date": "2023-11-14T22:13:20.000Z",
    }
    last_data.update(overrides)
    return {"macAddress": mac, "lastData": last_data, "info": {"name": name}}


@pytest.fixture
def weather_payload():
    return [make_station()]


@pytest.fixture
def rpi_payload():
    return {"sensorLocation": "attic", "temp_F": 68.0, "temp_C": 20.0, "humidity": 45}


def to_bytes(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")
