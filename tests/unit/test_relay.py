"""Tests for the relay set."""

from unittest.mock import Mock

import pytest
import requests

from core.hearth.exceptions import RelayError
from core.hearth.models import SwitchState, SwitchType
from core.hearth.relay import RelaySet


def fail_for(pin_index):
    """session.get side effect failing only for one pin."""
    def _get(url, timeout=None):
        if f"/{pin_index}/" in url:
            raise requests.exceptions.ConnectionError("relay unreachable")
        return Mock()
    return _get


class TestActivate:
    """Tests for bulk activation."""

    def test_activate_heat_turns_on_heat_switches(self, relays, requested_urls):
        result = relays.activate(SwitchType.HEAT)

        assert requested_urls() == ["http://relay.local/2/on"]
        assert result.ok
        assert result.switched_on == [2]
        assert relays.switches[1].active is True
        assert relays.switches[0].active is False

    def test_off_commands_are_sent_before_on_commands(self, relays, requested_urls):
        relays.switches[0].active = True  # COOL running

        relays.activate(SwitchType.HEAT)

        assert requested_urls() == ["http://relay.local/1/off", "http://relay.local/2/on"]

    def test_second_activation_sends_nothing(self, relays, session):
        relays.activate(SwitchType.COOL)
        session.get.reset_mock()

        result = relays.activate(SwitchType.COOL)

        session.get.assert_not_called()
        assert result.commands_sent == 0

    def test_none_turns_everything_off(self, relays, requested_urls):
        for switch in relays.switches:
            switch.active = True

        result = relays.activate(SwitchType.NONE)

        assert requested_urls() == ["http://relay.local/1/off", "http://relay.local/2/off"]
        assert result.switched_off == [1, 2]
        assert not any(s.active for s in relays.switches)

    def test_requests_use_timeout(self, relays, session):
        relays.activate(SwitchType.HEAT)

        assert session.get.call_args.kwargs["timeout"] == 5

    def test_failure_is_collected_per_switch(self, relays, session):
        relays.switches[0].active = True
        session.get.side_effect = fail_for(1)

        result = relays.activate(SwitchType.HEAT)

        assert not result.ok
        assert list(result.failures) == [1]
        assert result.switched_on == [2]
        assert relays.switches[0].active is True  # state unknown, still assumed on
        assert relays.switches[1].active is True

    def test_http_error_status_is_a_failure(self, relays, session):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        session.get.return_value = response

        result = relays.activate(SwitchType.HEAT)

        assert 2 in result.failures
        assert relays.switches[1].active is False

    def test_secure_relay_uses_https(self, relays, requested_urls):
        relays.settings.secure = True

        relays.activate(SwitchType.HEAT)

        assert requested_urls() == ["https://relay.local/2/on"]

    def test_any_active(self, relays):
        assert not relays.any_active(SwitchType.HEAT)
        relays.switches[1].active = True
        assert relays.any_active(SwitchType.HEAT)
        assert not relays.any_active(SwitchType.COOL)


class TestSend:
    """Tests for single commands."""

    def test_send_raises_relay_error(self, relays, session):
        session.get.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(RelayError) as exc_info:
            relays.send(relays.switches[1], SwitchState.ON)

        assert exc_info.value.pin_index == 2
        assert relays.switches[1].active is False


class TestRefresh:
    """Tests for resynchronizing state from the board."""

    def test_refresh_updates_flags(self, relays, session, requested_urls):
        session.get.return_value.json.return_value = {"status": [True, False]}
        relays.switches[1].active = True

        assert relays.refresh() is True
        assert requested_urls() == ["http://relay.local/state"]
        assert relays.switches[0].active is True
        assert relays.switches[1].active is False

    def test_refresh_failure_keeps_flags(self, relays, session):
        session.get.side_effect = requests.exceptions.ConnectionError("down")
        relays.switches[1].active = True

        assert relays.refresh() is False
        assert relays.switches[1].active is True

    def test_refresh_with_short_status_list(self, relays, session):
        session.get.return_value.json.return_value = {"status": [True]}

        assert relays.refresh() is False
        assert relays.switches[0].active is True

    def test_refresh_with_invalid_payload(self, relays, session):
        session.get.return_value.json.return_value = {"unexpected": 1}

        assert relays.refresh() is False


def test_relay_set_without_session_creates_one(config):
    relays = RelaySet(config.relay)

    assert isinstance(relays.session, requests.Session)
