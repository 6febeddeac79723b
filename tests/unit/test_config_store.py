"""Tests for config loading, defaults and persistence."""

import json

import pytest

from core.hearth.config_store import ConfigStore
from core.hearth.exceptions import ConfigurationError
from core.hearth.models import HeatingCoolingState, SwitchType
from core.hearth.settings import HearthConfig, RelaySwitch


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.json")


class TestLoad:
    """Tests for ConfigStore.load."""

    def test_missing_file_creates_default(self, config_path):
        store = ConfigStore(config_path)

        config = store.load()

        assert [(s.pin_index, s.type) for s in config.relay.switches] == [
            (1, SwitchType.COOL),
            (2, SwitchType.HEAT),
        ]
        assert config.relay.hostname == "localhost"
        assert config.thermostat_state.target_heating_cooling_state == HeatingCoolingState.OFF
        assert config.thermostat_state.current_relative_humidity == 50.0

        with open(config_path) as f:
            written = json.load(f)
        assert written["relay"]["switches"][0] == {"pinIndex": 1, "type": "COOL", "active": False}

    def test_corrupt_file_falls_back_to_default(self, config_path):
        with open(config_path, "w") as f:
            f.write("{not json")

        config = ConfigStore(config_path).load()

        assert len(config.relay.switches) == 2
        with open(config_path) as f:
            assert json.load(f)["version"] == 3

    def test_defaults_seeded_from_yaml_options(self, tmp_path, config_path):
        defaults = tmp_path / "config.yaml"
        defaults.write_text(
            "options:\n"
            "  temperatureSensor: http://sensor.local/api\n"
            "  weatherLocation: Gent,be\n"
            "  port: 9090\n"
        )

        config = ConfigStore(config_path, defaults_path=str(defaults)).load()

        assert config.temperature_sensor == "http://sensor.local/api"
        assert config.weather_location == "Gent,be"
        assert config.port == 9090
        # Keys not in the options keep their defaults
        assert len(config.relay.switches) == 2

    def test_invalid_yaml_is_ignored(self, tmp_path, config_path):
        defaults = tmp_path / "config.yaml"
        defaults.write_text("options: [unclosed\n")

        config = ConfigStore(config_path, defaults_path=str(defaults)).load()

        assert config.port == 8080

    def test_existing_file_is_not_overwritten_by_defaults(self, tmp_path, config_path):
        with open(config_path, "w") as f:
            json.dump({"port": 1234, "relay": {"hostname": "board", "switches": []}}, f)
        defaults = tmp_path / "config.yaml"
        defaults.write_text("options:\n  port: 9090\n")

        config = ConfigStore(config_path, defaults_path=str(defaults)).load()

        assert config.port == 1234
        assert config.relay.hostname == "board"
        assert config.relay.switches == []

    @pytest.mark.parametrize("document", [
        {"weatherMapApiKey": "secret", "relay": {"switches": [{"pinIndex": 0, "type": "HEAT"}]}},
        {"weatherMapApiKey": "secret", "relay": {"switches": [{"pinIndex": 1, "type": "FAN"}]}},
        {"weatherMapApiKey": "secret", "thermostatState": {"targetHeatingCoolingState": 9}},
        {"weatherMapApiKey": "secret", "relay": {"switches": [{"type": "HEAT"}]}},
        {"weatherMapApiKey": "secret", "relay": ["board"]},
        ["not", "an", "object"],
    ])
    def test_invalid_values_raise_and_keep_file(self, config_path, document):
        with open(config_path, "w") as f:
            json.dump(document, f)

        with pytest.raises(ConfigurationError):
            ConfigStore(config_path).load()

        with open(config_path) as f:
            assert json.load(f) == document

    def test_invalid_yaml_values_raise(self, tmp_path, config_path):
        defaults = tmp_path / "config.yaml"
        defaults.write_text("options:\n  port: eighty\n")

        with pytest.raises(ConfigurationError):
            ConfigStore(config_path, defaults_path=str(defaults)).load()


class TestSave:
    """Tests for ConfigStore.save."""

    def test_round_trip(self, config, config_path):
        store = ConfigStore(config_path)
        config.thermostat_state.target_heating_cooling_state = HeatingCoolingState.HEAT
        config.thermostat_state.current_heating_cooling_state = HeatingCoolingState.HEAT
        config.thermostat_state.target_temperature = 21.5
        config.relay.switches[1].active = True

        assert store.save(config)
        loaded = store.load()

        assert loaded == config

    def test_state_written_as_camel_case_integers(self, config, config_path):
        config.thermostat_state.target_heating_cooling_state = HeatingCoolingState.COOL

        ConfigStore(config_path).save(config)

        with open(config_path) as f:
            state = json.load(f)["thermostatState"]
        assert state["targetHeatingCoolingState"] == 2
        assert state["currentRelativeHumidity"] == 45.0
        assert "target_temperature" not in state

    def test_unwritable_path_returns_false(self, config, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")

        assert ConfigStore(str(blocker / "config.json")).save(config) is False

    def test_no_temporary_file_left_behind(self, config, tmp_path, config_path):
        ConfigStore(config_path).save(config)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["config.json"]


class TestHearthConfig:
    """Tests for config parsing."""

    def test_legacy_relais_key(self):
        config = HearthConfig.from_dict({
            "relais": {
                "hostname": "old-board",
                "switches": [{"pinIndex": 3, "type": "HEAT", "active": True}],
            }
        })

        assert config.relay.hostname == "old-board"
        assert config.relay.switches == [RelaySwitch(pin_index=3, type=SwitchType.HEAT, active=True)]

    def test_snake_case_keys_are_accepted(self):
        config = HearthConfig.from_dict({
            "temperature_sensor": "http://sensor",
            "thermostat_state": {"target_temperature": 18.0},
        })

        assert config.temperature_sensor == "http://sensor"
        assert config.thermostat_state.target_temperature == 18.0

    def test_persisted_auto_current_state_becomes_off(self):
        config = HearthConfig.from_dict({
            "thermostatState": {"currentHeatingCoolingState": 3, "targetHeatingCoolingState": 3}
        })

        assert config.thermostat_state.current_heating_cooling_state == HeatingCoolingState.OFF
        assert config.thermostat_state.target_heating_cooling_state == HeatingCoolingState.AUTO

    def test_unknown_state_keys_are_ignored(self):
        config = HearthConfig.from_dict({"thermostatState": {"targetTemperature": 19, "legacyField": 1}})

        assert config.thermostat_state.target_temperature == 19

    def test_target_temperature_range(self):
        config = HearthConfig.from_dict({"targetTemperatureRange": {"min": 10, "max": 25}})

        assert config.target_temperature_range.contains(10.0)
        assert not config.target_temperature_range.contains(25.5)

    @pytest.mark.parametrize("pin_index", [0, -1])
    def test_invalid_pin_index(self, pin_index):
        with pytest.raises(ValueError):
            RelaySwitch(pin_index=pin_index, type=SwitchType.HEAT)

    def test_invalid_switch_type(self):
        with pytest.raises(ValueError):
            RelaySwitch.from_dict({"pinIndex": 1, "type": "FAN"})

    def test_duplicate_pins_are_rejected(self):
        with pytest.raises(ConfigurationError):
            HearthConfig.from_dict({
                "relay": {"switches": [{"pinIndex": 1, "type": "HEAT"}, {"pinIndex": 1, "type": "COOL"}]}
            })

    def test_invalid_existing_config_is_not_replaced(self, config_path):
        document = {"relay": {"switches": [{"pinIndex": 2, "type": "HEAT"}, {"pinIndex": 2, "type": "COOL"}]}}
        with open(config_path, "w") as f:
            json.dump(document, f)

        with pytest.raises(ConfigurationError):
            ConfigStore(config_path).load()

        with open(config_path) as f:
            assert json.load(f) == document
