"""Hearth thermostat controller package."""

# Define public API
__all__ = [
    "HearthConfig",
    "HeatingCoolingState",
    "SwitchType",
    "ThermostatState",
    "TemperatureHistory",
    "RelaySet",
    "ThresholdCalculator",
    "Thermostat",
    "ThermostatService",
]

# Import settings
from .settings import HearthConfig

# Import models
from .models import HeatingCoolingState, SwitchType, ThermostatState

# Import control loop
from .history import TemperatureHistory
from .relay import RelaySet
from .thresholds import ThresholdCalculator
from .thermostat import Thermostat
from .thermostat_service import ThermostatService
