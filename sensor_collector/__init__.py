"""Environmental sensor collector: HTTP and MQTT readings into InfluxDB."""

from .config import Config, EntrySelection, WritePolicy, load_config
from .models import FieldSet, TimeSeriesPoint

__all__ = [
    "Config",
    "EntrySelection",
    "WritePolicy",
    "load_config",
    "FieldSet",
    "TimeSeriesPoint",
]
