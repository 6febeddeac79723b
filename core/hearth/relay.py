"""
Relay Controller Client

Drives the heating/cooling relays through the relay board's HTTP API:

    GET {scheme}://{host}/{pinIndex}/{on|off}    switch one relay
    GET {scheme}://{host}/state                   {"status": [bool, ...]}

Each switch's last known state is tracked so repeated activations do not
send redundant commands.
"""

import logging
from dataclasses import dataclass, field

import requests

from .exceptions import RelayError
from .models import SwitchState, SwitchType
from .settings import RelaySettings, RelaySwitch

logger = logging.getLogger(__name__)


@dataclass
class ActivationResult:
    """Outcome of a bulk activation."""

    switch_type: SwitchType
    switched_on: list[int] = field(default_factory=list)
    switched_off: list[int] = field(default_factory=list)
    failures: dict[int, str] = field(default_factory=dict)  # pin_index -> error

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def commands_sent(self) -> int:
        return len(self.switched_on) + len(self.switched_off) + len(self.failures)


class RelaySet:
    """The relay switches of one relay board."""

    def __init__(self, settings: RelaySettings, timeout: float = 5, session: requests.Session | None = None):
        """Initialize relay set.

        Args:
            settings: Relay section of the config. Switch `active` flags are
                updated in place so they are persisted with the config.
            timeout: Per-request timeout in seconds
            session: Optional requests session (for connection pooling/tests)
        """
        self.settings = settings
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        scheme = "https" if self.settings.secure else "http"
        return f"{scheme}://{self.settings.hostname}"

    @property
    def switches(self) -> list[RelaySwitch]:
        return self.settings.switches

    def any_active(self, switch_type: SwitchType) -> bool:
        return any(s.type == switch_type and s.active for s in self.switches)

    def activate(self, switch_type: SwitchType) -> ActivationResult:
        """Turn on every switch of `switch_type` and turn off all others.

        All OFF commands are sent before any ON command so two different
        sources are never energized together. Failures are collected per
        switch and never raised.
        """
        switch_type = SwitchType(switch_type)
        result = ActivationResult(switch_type=switch_type)

        on_switches = [s for s in self.switches if s.type == switch_type]
        off_switches = [s for s in self.switches if s.type != switch_type]
        logger.debug(
            f"Activating {switch_type.value}: on={[s.pin_index for s in on_switches]}, "
            f"off={[s.pin_index for s in off_switches]}"
        )

        for switch in off_switches:
            if switch.active:
                self._set_state(switch, SwitchState.OFF, result)

        for switch in on_switches:
            if not switch.active:
                self._set_state(switch, SwitchState.ON, result)

        if result.failures:
            logger.error(f"Relay activation {switch_type.value} incomplete, failed pins: {result.failures}")
        elif result.commands_sent:
            logger.info(f"Relay activation {switch_type.value}: on={result.switched_on}, off={result.switched_off}")

        return result

    def refresh(self) -> bool:
        """Resynchronize `active` flags from the relay board.

        Returns:
            True if the board reported a state for every switch
        """
        url = f"{self.base_url}/state"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            status = response.json()["status"]
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to read relay state from {url}: {e}")
            return False

        for switch, active in zip(self.switches, status):
            if switch.active != bool(active):
                logger.warning(f"Relay {switch.pin_index} is {'on' if active else 'off'} on the board, resyncing")
            switch.active = bool(active)

        if len(status) < len(self.switches):
            logger.warning(f"Relay board reported {len(status)} states for {len(self.switches)} switches")
            return False

        return True

    def send(self, switch: RelaySwitch, state: SwitchState) -> None:
        """Send one command and record the new state.

        Raises:
            RelayError: If the request fails or returns an error status
        """
        url = f"{self.base_url}/{switch.pin_index}/{state.value}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise RelayError(
                f"Failed to switch relay {switch.pin_index} {state.value}: {e}", pin_index=switch.pin_index
            ) from e

        switch.active = state == SwitchState.ON

    def _set_state(self, switch: RelaySwitch, state: SwitchState, result: ActivationResult):
        try:
            self.send(switch, state)
        except RelayError as e:
            logger.warning(str(e))
            result.failures[switch.pin_index] = str(e)
            return

        if state == SwitchState.ON:
            result.switched_on.append(switch.pin_index)
        else:
            result.switched_off.append(switch.pin_index)
