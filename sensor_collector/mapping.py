"""
Field mappers.

Pure functions turning decoded payloads into field sets ready for the store.
Every measurement has a fixed set of field names.
"""

import math
from typing import Sequence, TypeVar

from .config import EntrySelection
from .errors import EmptyPayloadError, FieldParseError
from .models import AvtechResponse, FieldSet, RpiSensorData, WeatherSnapshot, WeatherStation

T = TypeVar("T")

AVTECH_FIELDS = ("temperature_f", "temperature_c")

WEATHER_STATION_FIELDS = (
    "inside_temp_f",
    "inside_humidity",
    "outside_temp_f",
    "outside_humidity",
    "barometric_pressure_rel_in",
    "barometric_pressure_abs_in",
    "wind_direction",
    "wind_speed_mph",
    "wind_gust_mph",
    "max_daily_gust_mph",
    "hourly_rain_in",
    "event_rain_in",
    "daily_rain_in",
    "total_rain_in",
    "solar_radiation",
    "uv_index",
    "feels_like_outside_f",
    "dew_point_outside_f",
    "outside_battery_status",
    "co2_battery_status",
)

RPI_FIELDS = ("temperature_f", "temperature_c", "humidity")


def parse_number(field_name: str, raw: str) -> float:
    """Parse a textual reading, raising FieldParseError instead of defaulting to zero."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise FieldParseError(field_name, raw) from None
    if not math.isfinite(value):
        raise FieldParseError(field_name, raw)
    return value


def select_entries(entries: Sequence[T], selection: EntrySelection, source: str) -> Sequence[T]:
    if not entries:
        raise EmptyPayloadError(f"{source} response contains no entries")
    if selection is EntrySelection.ALL:
        return entries
    return entries[:1]


def map_avtech(payload: AvtechResponse, location: str,
               selection: EntrySelection = EntrySelection.FIRST) -> list[FieldSet]:
    result = []
    for sensor in select_entries(payload.sensor, selection, "Avtech"):
        tag = location
        if selection is EntrySelection.ALL:
            tag = sensor.label.strip() or location
        result.append(FieldSet(
            location=tag,
            fields={
                "temperature_f": parse_number("tempf", sensor.tempf),
                "temperature_c": parse_number("tempc", sensor.tempc),
            },
        ))
    return result


def weather_snapshot_fields(data: WeatherSnapshot) -> dict[str, float]:
    """The fixed 20-key field set. Integer counters are stored as floats."""
    return {
        "inside_temp_f": float(data.inside_temp_f),
        "inside_humidity": float(data.inside_humidity),
        "outside_temp_f": float(data.outside_temp_f),
        "outside_humidity": float(data.outside_humidity),
        "barometric_pressure_rel_in": float(data.barometric_pressure_rel_in),
        "barometric_pressure_abs_in": float(data.barometric_pressure_abs_in),
        "wind_direction": float(data.wind_direction),
        "wind_speed_mph": float(data.wind_speed_mph),
        "wind_gust_mph": float(data.wind_gust_mph),
        "max_daily_gust_mph": float(data.max_daily_gust),
        "hourly_rain_in": float(data.hourly_rain_in),
        "event_rain_in": float(data.event_rain_in),
        "daily_rain_in": float(data.daily_rain_in),
        "total_rain_in": float(data.total_rain_in),
        "solar_radiation": float(data.solar_radiation),
        "uv_index": float(data.uv_index),
        "feels_like_outside_f": float(data.feels_like_outside),
        "dew_point_outside_f": float(data.dew_point_outside),
        "outside_battery_status": float(data.outside_battery_status),
        "co2_battery_status": float(data.co2_battery_status),
    }


def map_weather_stations(stations: Sequence[WeatherStation], location: str,
                         selection: EntrySelection = EntrySelection.FIRST) -> list[FieldSet]:
    result = []
    for station in select_entries(stations, selection, "Weather station"):
        tag = location
        if selection is EntrySelection.ALL:
            tag = station.mac_address or location
        result.append(FieldSet(location=tag, fields=weather_snapshot_fields(station.last_data)))
    return result


def map_rpi(payload: RpiSensorData) -> FieldSet:
    return FieldSet(
        location=payload.sensor_location,
        fields={
            "temperature_f": payload.temp_f,
            "temperature_c": payload.temp_c,
            "humidity": payload.humidity,
        },
    )
