"""Custom exceptions for Buyer Radar.

Only caller programming errors surface from the core. Malformed external data
is absorbed into empty or default results instead.
"""

from __future__ import annotations


class BuyerRadarError(Exception):
    """Base exception for all Buyer Radar errors."""

    pass


class InvalidKeyError(BuyerRadarError, ValueError):
    """Raised when an identity key is empty or cannot be normalised."""

    def __init__(self, raw_key: object) -> None:
        self.raw_key = raw_key
        super().__init__(f"Invalid identity key: {raw_key!r}. Expected a non-empty host or id.")


class SourceUnavailableError(BuyerRadarError):
    """Raised when a whole ingestion source cannot be parsed.

    The catalog merger catches this and treats the source as empty.
    """

    def __init__(self, source_index: int, detail: str) -> None:
        self.source_index = source_index
        self.detail = detail
        super().__init__(f"Catalog source #{source_index} is unavailable: {detail}")


class ThresholdOrderError(BuyerRadarError, ValueError):
    """Raised when hot thresholds are looser than warm thresholds."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(
            f"Hot threshold '{field_name}' must be at least as strict as the warm threshold."
        )


class ConfigFileNotFoundError(BuyerRadarError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(BuyerRadarError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is not valid TOML: {detail}")


class ConfigFileValidationError(BuyerRadarError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} failed validation: {detail}")


class PromotionRequiredError(BuyerRadarError, ValueError):
    """Raised when a plain update tries to raise a lead's temperature."""

    def __init__(self, host: str, current: str, requested: str) -> None:
        self.host = host
        self.current = current
        self.requested = requested
        super().__init__(
            f"Lead {host} is {current}; use promote to raise it to {requested}."
        )


class InvalidTemperatureError(BuyerRadarError, ValueError):
    """Raised when a lifecycle temperature is not one of cold, warm or hot."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Unknown temperature {value!r}. Use one of: cold, warm, hot.")
