"""Payload schemas for every input path and the point emitted to the store."""

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import DecodeError


class AvtechSensor(BaseModel):
    """One sensor entry of an Avtech device. Temperatures are transmitted as text."""
    label: str = ""
    tempf: str
    tempc: str
    highf: str = ""
    highc: str = ""
    lowf: str = ""
    lowc: str = ""


class AvtechResponse(BaseModel):
    sensor: list[AvtechSensor]


class WeatherSnapshot(BaseModel):
    """The `lastData` record of an Ambient Weather station."""
    model_config = ConfigDict(populate_by_name=True, strict=True, allow_inf_nan=False)

    date_utc: int | None = Field(default=None, alias="dateutc")
    inside_temp_f: float = Field(alias="tempinf")
    inside_humidity: int = Field(alias="humidityin")
    barometric_pressure_rel_in: float = Field(alias="baromrelin")
    barometric_pressure_abs_in: float = Field(alias="baromabsin")
    outside_temp_f: float = Field(alias="tempf")
    outside_battery_status: int = Field(alias="battout")
    outside_humidity: int = Field(alias="humidity")
    wind_direction: int = Field(alias="winddir")
    wind_speed_mph: float = Field(alias="windspeedmph")
    wind_gust_mph: float = Field(alias="windgustmph")
    max_daily_gust: float = Field(alias="maxdailygust")
    hourly_rain_in: float = Field(alias="hourlyrainin")
    event_rain_in: float = Field(alias="eventrainin")
    daily_rain_in: float = Field(alias="dailyrainin")
    weekly_rain_in: float | None = Field(default=None, alias="weeklyrainin")
    monthly_rain_in: float | None = Field(default=None, alias="monthlyrainin")
    total_rain_in: float = Field(alias="totalrainin")
    solar_radiation: float = Field(alias="solarradiation")
    uv_index: float = Field(alias="uv")
    co2_battery_status: int = Field(alias="batt_co2")
    feels_like_outside: float = Field(alias="feelsLike")
    dew_point_outside: float = Field(alias="dewPoint")
    feels_like_inside: float | None = Field(default=None, alias="feelsLikein")
    dew_point_inside: float | None = Field(default=None, alias="dewPointin")
    last_rain: str | None = Field(default=None, alias="lastRain")
    tz: str | None = None
    date: str | None = None


class StationInfo(BaseModel):
    name: str = ""


class WeatherStation(BaseModel):
    """One physical station, identified by its hardware address."""
    model_config = ConfigDict(populate_by_name=True)

    mac_address: str = Field(alias="macAddress")
    last_data: WeatherSnapshot = Field(alias="lastData")
    info: StationInfo = Field(default_factory=StationInfo)


class RpiSensorData(BaseModel):
    """Message published by a Raspberry Pi sensor node."""
    model_config = ConfigDict(populate_by_name=True, strict=True, allow_inf_nan=False)

    sensor_location: str = Field(alias="sensorLocation")
    temp_f: float = Field(alias="temp_F")
    temp_c: float = Field(alias="temp_C")
    humidity: float


_WEATHER_STATIONS = TypeAdapter(list[WeatherStation])


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{exc.error_count()} error(s), first at {location}: {first['msg']}"


def decode_avtech(raw: bytes | str) -> AvtechResponse:
    try:
        return AvtechResponse.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid Avtech payload: {_describe(e)}") from e


def decode_weather_stations(raw: bytes | str) -> list[WeatherStation]:
    try:
        return _WEATHER_STATIONS.validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid weather station payload: {_describe(e)}") from e


def decode_rpi(raw: bytes | str) -> RpiSensorData:
    try:
        return RpiSensorData.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid sensor message: {_describe(e)}") from e


@dataclass
class FieldSet:
    """Mapped fields of one reading plus the value of its `sensor_location` tag."""
    location: str
    fields: dict[str, float] = field(default_factory=dict)


@dataclass
class TimeSeriesPoint:
    """A point as handed to the store."""
    measurement: str
    location: str
    fields: dict[str, float]
    timestamp: datetime
