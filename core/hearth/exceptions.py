"""
Hearth exceptions.

Collaborator failures (sensor, relay board, weather service) are raised as
their own error type so the control loop can log them and carry on. A
ConfigurationError is the only one that stops startup.
"""


class HearthError(Exception):
    """Base exception for Hearth."""


class ConfigurationError(HearthError):
    """The config file parses but cannot be used.

    Raised while loading for invalid values (unknown switch type or mode,
    pin index below 1, duplicate pins). The file is left untouched so the
    operator can correct it.
    """


class SensorError(HearthError):
    """No usable reading. Raised when the sensor cannot be reached or its
    payload lacks a finite temperature or a parseable `lastSeen`.

    The periodic cycle skips its evaluation when this is raised.
    """


class RelayError(HearthError):
    """The relay board did not accept a command for one pin."""

    def __init__(self, message: str, pin_index: int | None = None):
        super().__init__(message)
        self.pin_index = pin_index


class WeatherError(HearthError):
    """Current conditions could not be fetched; the last forecast is kept."""
