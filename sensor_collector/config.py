import logging
import os
from dataclasses import dataclass
from enum import Enum

from dotenv import load_dotenv

from .errors import ConfigError


class EntrySelection(Enum):
    """Which entries of a multi-sensor / multi-station response are written."""
    FIRST = "first"
    ALL = "all"


class WritePolicy(Enum):
    """What to do when a point cannot be written."""
    FATAL = "fatal"     # stop the whole collector
    RETRY = "retry"     # retry with exponential backoff, then drop
    DROP = "drop"       # log and continue


@dataclass
class InfluxConfig:
    """Connection settings for the time-series store."""
    url: str
    token: str
    org: str
    bucket: str
    # Self-signed deployments only. Never on unless explicitly requested.
    insecure_skip_verify: bool = False


@dataclass
class MQTTConfig:
    """Connection settings for the message bus listener."""
    broker_address: str
    topic: str
    broker_port: int = 1883
    client_id: str = "sensorDataCollector"
    qos: int = 1
    publish_test_message: bool = False


@dataclass
class Config:
    """Configuration for the collector."""
    influx: InfluxConfig
    mqtt: MQTTConfig | None = None

    # HTTP sources, a worker is started only for configured URLs
    avtech_url: str | None = None
    weather_station_url: str | None = None

    # Timing configuration
    poll_interval: float = 60.0         # seconds between polls
    http_timeout: float = 10.0          # seconds per HTTP request

    entry_selection: EntrySelection = EntrySelection.FIRST

    # Tags and measurements
    avtech_location: str = "basement_rack"
    weather_station_location: str = "ambient_weather_station"
    avtech_measurement: str = "temp_sensor_data"
    weather_station_measurement: str = "weather_station_data"
    rpi_measurement: str = "rpi_sensor_data"

    # Write failure handling
    write_policy: WritePolicy = WritePolicy.FATAL
    write_retry_attempts: int = 3
    write_retry_backoff: float = 1.0    # seconds, doubled on every attempt

    log_level: str = "INFO"

    @property
    def has_sources(self) -> bool:
        return bool(self.avtech_url or self.weather_station_url or self.mqtt)


def _get_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _require(name: str) -> str:
    value = _get_str(name)
    if value is None:
        raise ConfigError(f"Missing required environment variable {name}")
    return value


def _get_number(name: str, default, cast):
    value = _get_str(name)
    if value is None:
        return default
    try:
        parsed = cast(value)
    except ValueError:
        raise ConfigError(f"{name}={value!r} is not a valid {cast.__name__}") from None
    if parsed <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return parsed


def _get_bool(name: str, default: bool = False) -> bool:
    value = _get_str(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name}={value!r} is not a boolean")


def _get_enum(name: str, enum_cls, default):
    value = _get_str(name)
    if value is None:
        return default
    try:
        return enum_cls(value.lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(f"{name}={value!r} must be one of: {choices}") from None


def _get_log_level(name: str, default: str) -> str:
    value = _get_str(name, default).upper()
    if not isinstance(logging.getLevelName(value), int):
        raise ConfigError(f"{name}={value!r} is not a logging level")
    return value


def load_config(env_file: str | None = None) -> Config:
    """
    Build the configuration from environment variables.
    Values from a .env file are loaded first but never override the real environment.
    """
    load_dotenv(env_file)

    influx = InfluxConfig(
        url=_require("INFLUXDB_URL"),
        token=_require("INFLUXDB_API_TOKEN"),
        org=_require("INFLUXDB_ORG"),
        bucket=_require("INFLUXDB_BUCKET"),
        insecure_skip_verify=_get_bool("INFLUXDB_INSECURE_SKIP_VERIFY"),
    )

    mqtt = None
    broker = _get_str("MQTT_BROKER_IP")
    topic = _get_str("MQTT_SUB_TOPIC")
    if broker and topic:
        mqtt = MQTTConfig(
            broker_address=broker,
            topic=topic,
            broker_port=_get_number("MQTT_BROKER_PORT", 1883, int),
            client_id=_get_str("MQTT_CLIENT_ID", "sensorDataCollector"),
            publish_test_message=_get_bool("MQTT_PUBLISH_TEST_MESSAGE"),
        )
    elif broker or topic:
        raise ConfigError("MQTT_BROKER_IP and MQTT_SUB_TOPIC must be set together")

    config = Config(
        influx=influx,
        mqtt=mqtt,
        avtech_url=_get_str("AVTECH_URL"),
        weather_station_url=_get_str("AMBIENT_FULL_URL"),
        poll_interval=_get_number("POLL_INTERVAL_SECS", 60.0, float),
        http_timeout=_get_number("HTTP_TIMEOUT_SECS", 10.0, float),
        entry_selection=_get_enum("ENTRY_SELECTION", EntrySelection, EntrySelection.FIRST),
        avtech_location=_get_str("AVTECH_LOCATION", "basement_rack"),
        weather_station_location=_get_str("WEATHER_STATION_LOCATION", "ambient_weather_station"),
        avtech_measurement=_get_str("AVTECH_MEASUREMENT", "temp_sensor_data"),
        weather_station_measurement=_get_str("WEATHER_STATION_MEASUREMENT", "weather_station_data"),
        rpi_measurement=_get_str("RPI_MEASUREMENT", "rpi_sensor_data"),
        write_policy=_get_enum("WRITE_FAILURE_POLICY", WritePolicy, WritePolicy.FATAL),
        write_retry_attempts=_get_number("WRITE_RETRY_ATTEMPTS", 3, int),
        write_retry_backoff=_get_number("WRITE_RETRY_BACKOFF_SECS", 1.0, float),
        log_level=_get_log_level("LOG_LEVEL", "INFO"),
    )

    if not config.has_sources:
        raise ConfigError("No data source configured (set AVTECH_URL, AMBIENT_FULL_URL or MQTT_*)")
    return config
