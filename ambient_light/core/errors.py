from __future__ import annotations

from typing import Optional


class SensorError(Exception):
    """Base class for everything the sensor core raises."""


class ConfigError(SensorError):
    """Malformed accessory configuration."""


class TransportError(SensorError):
    """The fetch failed or returned a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(SensorError):
    """The status pattern did not yield a numeric value."""


class UnsupportedChannelError(SensorError):
    """A push message named a characteristic this sensor does not expose."""
