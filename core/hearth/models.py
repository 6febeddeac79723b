"""
Hearth Data Models

Thermostat state and the enums shared by the control loop, the relay set
and the API.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional


class HeatingCoolingState(IntEnum):
    """What the system is doing (current) or should be doing (target)."""

    OFF = 0
    HEAT = 1
    COOL = 2
    AUTO = 3

    @classmethod
    def parse(cls, value) -> "HeatingCoolingState":
        """Accept an enum member, its integer value or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid heating/cooling state: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name.isdigit():
                return cls(int(name))
            try:
                return cls[name]
            except KeyError:
                pass
        raise ValueError(f"Invalid heating/cooling state: {value!r}")


class TemperatureDisplayUnits(IntEnum):
    """Display units. Control logic always works in Celsius."""

    CELSIUS = 0
    FAHRENHEIT = 1


class SwitchType(str, Enum):
    """Relay switch types. NONE matches no switch and turns everything off."""

    HEAT = "HEAT"
    COOL = "COOL"
    VENT = "VENT"
    NONE = "NONE"


class SwitchState(str, Enum):
    """Relay command path segment."""

    ON = "on"
    OFF = "off"


@dataclass
class ThermostatState:
    """Mutable thermostat state, persisted with the config."""

    current_temperature: Optional[float] = None  # None until the first sensor reading
    target_temperature: float = 20.0
    current_relative_humidity: Optional[float] = None
    current_heating_cooling_state: HeatingCoolingState = HeatingCoolingState.OFF
    target_heating_cooling_state: HeatingCoolingState = HeatingCoolingState.OFF
    temperature_display_units: TemperatureDisplayUnits = TemperatureDisplayUnits.CELSIUS

    def __post_init__(self):
        self.current_heating_cooling_state = HeatingCoolingState.parse(self.current_heating_cooling_state)
        self.target_heating_cooling_state = HeatingCoolingState.parse(self.target_heating_cooling_state)
        self.temperature_display_units = TemperatureDisplayUnits(self.temperature_display_units)

        # AUTO is a target-only mode
        if self.current_heating_cooling_state == HeatingCoolingState.AUTO:
            self.current_heating_cooling_state = HeatingCoolingState.OFF


@dataclass
class SensorReading:
    """A single reading from the remote temperature sensor."""

    temperature: float
    humidity: Optional[float]
    last_seen: datetime


@dataclass
class Forecast:
    """Current outdoor conditions from the weather service."""

    temperature: float  # °C
    humidity: float  # %
    wind_speed: float  # m/s
    fetched_at: datetime
    location: str = ""
