"""Shared fixtures for Hearth tests."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from core.hearth.history import TemperatureHistory, TemperatureHistoryEntry
from core.hearth.models import HeatingCoolingState, SwitchType, ThermostatState
from core.hearth.relay import RelaySet
from core.hearth.settings import HearthConfig, RelaySettings, RelaySwitch
from core.hearth.thermostat import Thermostat

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def session():
    """requests.Session stand-in; every GET succeeds unless configured otherwise."""
    return Mock()


@pytest.fixture
def config():
    return HearthConfig(
        relay=RelaySettings(
            hostname="relay.local",
            switches=[
                RelaySwitch(pin_index=1, type=SwitchType.COOL),
                RelaySwitch(pin_index=2, type=SwitchType.HEAT),
            ],
        ),
        thermostat_state=ThermostatState(
            current_temperature=20.0,
            target_temperature=20.0,
            current_relative_humidity=45.0,
        ),
    )


@pytest.fixture
def relays(config, session):
    return RelaySet(config.relay, session=session)


@pytest.fixture
def history():
    return TemperatureHistory()


@pytest.fixture
def thermostat(config, relays, history):
    return Thermostat(config, relays, history)


@pytest.fixture
def requested_urls(session):
    """URLs passed to session.get, in call order."""
    return lambda: [c.args[0] for c in session.get.call_args_list]


def set_state(thermostat, *, target, current, temperature, now=NOW, seed_history=True):
    """Put the thermostat into a given state with one history sample at `now`."""
    state = thermostat.state
    state.target_heating_cooling_state = HeatingCoolingState(target)
    state.current_heating_cooling_state = HeatingCoolingState(current)
    state.current_temperature = temperature
    if seed_history:
        thermostat.history.append(TemperatureHistoryEntry(date=now, temperature=temperature))


@pytest.fixture
def prepare(thermostat, now):
    """Bind set_state to the thermostat fixture."""
    def _prepare(**kwargs):
        kwargs.setdefault("now", now)
        set_state(thermostat, **kwargs)
        return thermostat
    return _prepare
