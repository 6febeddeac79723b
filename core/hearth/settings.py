"""
Hearth Configuration Settings

The config document is the single owner of the thermostat state and the
relay switch list. It is built once at startup and handed by reference to
the relay set, the thermostat and the config store.
"""

from dataclasses import dataclass, field
import re

from .exceptions import ConfigurationError
from .models import SwitchType, ThermostatState


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def _snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _to_camel_dict(data: dict) -> dict:
    return {_snake_to_camel(k): v for k, v in data.items()}


@dataclass
class RelaySwitch:
    """A single network-addressable relay."""

    pin_index: int
    type: SwitchType
    active: bool = False

    def __post_init__(self):
        self.type = SwitchType(self.type)
        if self.pin_index < 1:
            raise ValueError(f"pin_index must be >= 1, got {self.pin_index}")

    @classmethod
    def from_dict(cls, data: dict) -> "RelaySwitch":
        """Create from dictionary."""
        converted = {_camel_to_snake(k): v for k, v in data.items()}
        return cls(
            pin_index=int(converted["pin_index"]),
            type=SwitchType(converted["type"]),
            active=bool(converted.get("active", False)),
        )

    def to_dict(self) -> dict:
        return {"pinIndex": self.pin_index, "type": self.type.value, "active": self.active}


@dataclass
class RelaySettings:
    """Relay controller host and its switches (in controller order)."""

    hostname: str = "localhost"
    secure: bool = False
    switches: list[RelaySwitch] = field(default_factory=list)

    def __post_init__(self):
        pins = [s.pin_index for s in self.switches]
        duplicates = sorted({p for p in pins if pins.count(p) > 1})
        if duplicates:
            raise ConfigurationError(f"Relay pins configured more than once: {duplicates}")

    @classmethod
    def from_dict(cls, data: dict) -> "RelaySettings":
        """Create from dictionary."""
        return cls(
            hostname=data.get("hostname", "localhost"),
            secure=bool(data.get("secure", False)),
            switches=[RelaySwitch.from_dict(s) for s in data.get("switches", [])],
        )

    def to_dict(self) -> dict:
        return {
            "hostname": self.hostname,
            "secure": self.secure,
            "switches": [s.to_dict() for s in self.switches],
        }


@dataclass
class TemperatureRange:
    """Accepted range for user-set target temperatures (°C)."""

    min: float = 5.0
    max: float = 30.0

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass
class HearthConfig:
    """Persisted controller configuration and state."""

    version: int = 3
    hostname: str = "0.0.0.0"
    port: int = 8080
    temperature_sensor: str = ""  # Sensor device URL
    weather_map_api_key: str = ""
    weather_location: str = "Hasselt,be"
    target_temperature_range: TemperatureRange = field(default_factory=TemperatureRange)
    relay: RelaySettings = field(default_factory=RelaySettings)
    thermostat_state: ThermostatState = field(default_factory=ThermostatState)

    @classmethod
    def from_dict(cls, data: dict) -> "HearthConfig":
        """Create from dictionary (camelCase or snake_case keys)."""
        converted = {_camel_to_snake(k): v for k, v in data.items()}

        # Handle legacy "relais" section
        if "relais" in converted:
            converted["relay"] = converted.pop("relais")

        state_data = converted.get("thermostat_state") or {}
        state = ThermostatState(**{
            _camel_to_snake(k): v for k, v in state_data.items()
            if _camel_to_snake(k) in ThermostatState.__dataclass_fields__
        })

        range_data = converted.get("target_temperature_range") or {}

        return cls(
            version=int(converted.get("version", cls.version)),
            hostname=converted.get("hostname", cls.hostname),
            port=int(converted.get("port", cls.port)),
            temperature_sensor=converted.get("temperature_sensor", ""),
            weather_map_api_key=converted.get("weather_map_api_key", "") or "",
            weather_location=converted.get("weather_location", cls.weather_location),
            target_temperature_range=TemperatureRange(
                min=float(range_data.get("min", 5.0)),
                max=float(range_data.get("max", 30.0)),
            ),
            relay=RelaySettings.from_dict(converted.get("relay") or {}),
            thermostat_state=state,
        )

    def to_dict(self) -> dict:
        """Serialize to the camelCase JSON document."""
        state = self.thermostat_state
        return {
            "version": self.version,
            "hostname": self.hostname,
            "port": self.port,
            "temperatureSensor": self.temperature_sensor,
            "weatherMapApiKey": self.weather_map_api_key,
            "weatherLocation": self.weather_location,
            "targetTemperatureRange": {
                "min": self.target_temperature_range.min,
                "max": self.target_temperature_range.max,
            },
            "relay": self.relay.to_dict(),
            "thermostatState": _to_camel_dict({
                "current_temperature": state.current_temperature,
                "current_relative_humidity": state.current_relative_humidity,
                "target_temperature": state.target_temperature,
                "current_heating_cooling_state": int(state.current_heating_cooling_state),
                "target_heating_cooling_state": int(state.target_heating_cooling_state),
                "temperature_display_units": int(state.temperature_display_units),
            }),
        }


def default_config() -> HearthConfig:
    """Default config: one COOL relay on pin 1, one HEAT relay on pin 2."""
    return HearthConfig(
        relay=RelaySettings(
            hostname="localhost",
            secure=False,
            switches=[
                RelaySwitch(pin_index=1, type=SwitchType.COOL),
                RelaySwitch(pin_index=2, type=SwitchType.HEAT),
            ],
        ),
        thermostat_state=ThermostatState(current_relative_humidity=50.0),
    )
