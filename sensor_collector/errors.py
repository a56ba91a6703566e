"""Exceptions raised along the fetch -> decode -> map -> write pipeline."""


class CollectorError(Exception):
    """Base class for all collector errors."""


class ConfigError(CollectorError):
    """Missing or invalid configuration."""


class FetchError(CollectorError):
    """HTTP transport failure or non-success status."""


class DecodeError(CollectorError):
    """Payload is not valid JSON or does not match the expected schema."""


class MappingError(CollectorError):
    """Decoded payload cannot be turned into a field set."""


class EmptyPayloadError(MappingError):
    """Payload decoded fine but carries no entries."""


class FieldParseError(MappingError):
    """A textual numeric field could not be parsed."""

    def __init__(self, field_name: str, raw_value):
        super().__init__(f"Cannot parse {field_name}={raw_value!r} as a number")
        self.field_name = field_name
        self.raw_value = raw_value


class WriteError(CollectorError):
    """Writing a point to the time-series store failed."""
