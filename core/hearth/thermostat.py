"""
Thermostat Control Loop

Decides on every evaluation whether heating or cooling should start or stop:

- target OFF: everything off
- target HEAT: start heating at or below heating_min, stop at or above heating_max
- target COOL: start cooling at or above cooling_max, stop at or below cooling_min
- target AUTO: not supported yet, no relay action

Between the bounds nothing changes (hysteresis band). A transition whose relay
activation fails is not applied and counts as a retry; after more than
`max_retries` consecutive failures an operator alert is raised. The state is
persisted after every evaluation.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .comfort import heat_index, wind_chill
from .config_store import ConfigStore
from .exceptions import RelayError
from .history import TemperatureDeltas, TemperatureHistory, TemperatureHistoryEntry, now_utc
from .models import Forecast, HeatingCoolingState, SensorReading, SwitchType, ThermostatState
from .relay import ActivationResult, RelaySet
from .settings import HearthConfig
from .thresholds import ThresholdCalculator, Thresholds

logger = logging.getLogger(__name__)

MAX_RETRIES = 5


@dataclass
class EvaluationResult:
    """What one evaluation saw and did."""

    evaluated_at: datetime
    target_state: HeatingCoolingState
    previous_state: HeatingCoolingState
    current_state: HeatingCoolingState
    thresholds: Thresholds
    deltas: TemperatureDeltas
    activations: list[ActivationResult] = field(default_factory=list)
    exceeded_deltas: list[str] = field(default_factory=list)
    transitioned: bool = False
    retries: int = 0
    persisted: bool = False
    alert: Optional[str] = None


class Thermostat:
    """Heating/cooling state machine for a single device."""

    def __init__(
        self,
        config: HearthConfig,
        relays: RelaySet,
        history: TemperatureHistory,
        threshold_calculator: ThresholdCalculator | None = None,
        config_store: ConfigStore | None = None,
        max_retries: int = MAX_RETRIES
    ):
        """Initialize thermostat.

        Args:
            config: Config owning the thermostat state (mutated in place)
            relays: Relay set built on the same config's relay section
            history: Temperature history used for deltas and cold start
            threshold_calculator: Threshold calculator (default constants if omitted)
            config_store: Where the config is persisted after each evaluation
            max_retries: Failed transitions tolerated before alerting
        """
        self.config = config
        self.relays = relays
        self.history = history
        self.threshold_calculator = threshold_calculator or ThresholdCalculator()
        self.config_store = config_store
        self.max_retries = max_retries

        self.retries = 0
        self.alert: Optional[str] = None
        self.forecast: Optional[Forecast] = None
        self.last_result: Optional[EvaluationResult] = None

        self.lock = threading.Lock()

    @property
    def state(self) -> ThermostatState:
        return self.config.thermostat_state

    @property
    def heat_index(self) -> Optional[float]:
        """Indoor heat index, if temperature and humidity are known."""
        if self.state.current_temperature is None or self.state.current_relative_humidity is None:
            return None
        return heat_index(self.state.current_temperature, self.state.current_relative_humidity)

    def thresholds(self) -> Thresholds:
        return self.threshold_calculator.calculate(
            target_temperature=self.state.target_temperature,
            current_temperature=self.state.current_temperature,
            history_empty=self.history.is_empty,
            forecast=self.forecast,
        )

    def deltas(self, now: datetime | None = None) -> TemperatureDeltas:
        return self.history.deltas(now)

    def update_reading(self, reading: SensorReading) -> bool:
        """Store a sensor reading.

        Returns:
            True if the sample was new and appended to the history
        """
        with self.lock:
            self.state.current_temperature = reading.temperature
            if reading.humidity is not None:
                self.state.current_relative_humidity = reading.humidity

            added = self.history.append(
                TemperatureHistoryEntry(date=reading.last_seen, temperature=reading.temperature)
            )

        if added:
            logger.debug(f"Stored {reading.temperature}°C from {reading.last_seen.isoformat()}")
        else:
            logger.debug(f"Sensor returned stale data from {reading.last_seen.isoformat()}, skipping history")
        return added

    def update_forecast(self, forecast: Forecast) -> None:
        with self.lock:
            self.forecast = forecast

        logger.debug(
            f"Outdoor heat index {heat_index(forecast.temperature, forecast.humidity):.1f}°C, "
            f"wind chill {wind_chill(forecast.temperature, forecast.wind_speed):.1f}°C"
        )

    def set_target_temperature(self, value: float) -> tuple[float, float]:
        """Set the setpoint and evaluate immediately.

        Returns:
            (previous, new) target temperature

        Raises:
            ValueError: If value is not a finite number
        """
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Target temperature must be finite, got {value}")

        with self.lock:
            previous = self.state.target_temperature
            self.state.target_temperature = value
            logger.info(f"Target temperature {previous}°C -> {value}°C")
            self._evaluate()

        return previous, value

    def set_target_heating_cooling_state(self, value) -> tuple[HeatingCoolingState, HeatingCoolingState]:
        """Set the target mode and evaluate immediately.

        Returns:
            (previous, new) target state

        Raises:
            ValueError: If value is not a known state
        """
        value = HeatingCoolingState.parse(value)

        with self.lock:
            previous = self.state.target_heating_cooling_state
            self.state.target_heating_cooling_state = value
            logger.info(f"Target state {previous.name} -> {value.name}")
            self._evaluate()

        return previous, value

    def evaluate(self, now: datetime | None = None) -> EvaluationResult:
        """Run one control cycle."""
        with self.lock:
            return self._evaluate(now)

    def _evaluate(self, now: datetime | None = None) -> EvaluationResult:
        now = now or now_utc()
        state = self.state

        thresholds = self.thresholds()
        deltas = self.history.deltas(now)

        result = EvaluationResult(
            evaluated_at=now,
            target_state=state.target_heating_cooling_state,
            previous_state=state.current_heating_cooling_state,
            current_state=state.current_heating_cooling_state,
            thresholds=thresholds,
            deltas=deltas,
        )

        logger.info(
            f"Current {state.current_temperature}°C, target {state.target_temperature}°C, "
            f"state {state.current_heating_cooling_state.name} -> {state.target_heating_cooling_state.name}"
        )
        logger.debug(f"Thresholds: {thresholds}")

        result.exceeded_deltas = deltas.exceeded(thresholds.delta_max)
        for name in result.exceeded_deltas:
            window = getattr(deltas, name)
            logger.warning(
                f"Temperature drift over {name} is {window.delta:.2f}°C, "
                f"above the {getattr(thresholds.delta_max, name)}°C limit"
            )

        try:
            target = state.target_heating_cooling_state
            if target == HeatingCoolingState.OFF:
                self._handle_off(result)
            elif target == HeatingCoolingState.HEAT:
                self._handle_heat(thresholds, result)
            elif target == HeatingCoolingState.COOL:
                self._handle_cool(thresholds, result)
            else:
                logger.info("AUTO mode is not supported yet, no relay action")
        finally:
            result.current_state = state.current_heating_cooling_state
            result.retries = self.retries

            if self.retries > self.max_retries:
                self.alert = (
                    f"Relay communication failed {self.retries} times in a row. "
                    f"Power off the master switch and check the relay board."
                )
                logger.critical(self.alert)
            else:
                self.alert = None
            result.alert = self.alert

            if self.config_store is not None:
                result.persisted = self.config_store.save(self.config)
                if not result.persisted:
                    logger.error("Error while saving the current state to disk, retrying next cycle")

            self.last_result = result
            logger.debug(f"Finished evaluation, retries: {self.retries}")

        return result

    def _handle_off(self, result: EvaluationResult):
        self.state.current_heating_cooling_state = HeatingCoolingState.OFF
        self._activate(SwitchType.NONE, result)

    def _handle_heat(self, thresholds: Thresholds, result: EvaluationResult):
        state = self.state

        if self.relays.any_active(SwitchType.COOL):
            logger.debug("System is cooling, turn off COOL")
            self._activate(SwitchType.NONE, result)
        if state.current_heating_cooling_state == HeatingCoolingState.COOL:
            state.current_heating_cooling_state = HeatingCoolingState.OFF

        temperature = state.current_temperature
        if temperature is None:
            logger.warning("No temperature reading yet, not switching")
            return

        if state.current_heating_cooling_state == HeatingCoolingState.HEAT:
            if temperature >= thresholds.heating_max:
                logger.info(f"{temperature}°C >= {thresholds.heating_max:.2f}°C, stop heating")
                self._transition(SwitchType.NONE, HeatingCoolingState.OFF, result)
            elif any(s.type == SwitchType.HEAT and not s.active for s in self.relays.switches):
                logger.warning("Heating but some HEAT relays are off, switching them on")
                self._activate(SwitchType.HEAT, result)

        elif state.current_heating_cooling_state == HeatingCoolingState.OFF:
            if temperature <= thresholds.heating_min:
                logger.info(f"{temperature}°C <= {thresholds.heating_min:.2f}°C, start heating")
                self._transition(SwitchType.HEAT, HeatingCoolingState.HEAT, result)
            elif self.relays.any_active(SwitchType.HEAT):
                logger.warning("Not heating but some HEAT relays are on, switching them off")
                self._activate(SwitchType.NONE, result)

    def _handle_cool(self, thresholds: Thresholds, result: EvaluationResult):
        state = self.state

        # Clear everything unless cooling is already running on its own relays
        if state.current_heating_cooling_state != HeatingCoolingState.COOL or self.relays.any_active(SwitchType.HEAT):
            self._activate(SwitchType.NONE, result)
        if state.current_heating_cooling_state == HeatingCoolingState.HEAT:
            state.current_heating_cooling_state = HeatingCoolingState.OFF

        temperature = state.current_temperature
        if temperature is None:
            logger.warning("No temperature reading yet, not switching")
            return

        if state.current_heating_cooling_state == HeatingCoolingState.COOL:
            if temperature <= thresholds.cooling_min:
                logger.info(f"{temperature}°C <= {thresholds.cooling_min:.2f}°C, stop cooling")
                self._transition(SwitchType.NONE, HeatingCoolingState.OFF, result)
            elif any(s.type == SwitchType.COOL and not s.active for s in self.relays.switches):
                logger.warning("Cooling but some COOL relays are off, switching them on")
                self._activate(SwitchType.COOL, result)

        elif state.current_heating_cooling_state == HeatingCoolingState.OFF:
            if temperature >= thresholds.cooling_max:
                logger.info(f"{temperature}°C >= {thresholds.cooling_max:.2f}°C, start cooling")
                self._transition(SwitchType.COOL, HeatingCoolingState.COOL, result)

    def _activate(self, switch_type: SwitchType, result: EvaluationResult) -> bool:
        """Activate without changing state. Failures are logged only."""
        try:
            activation = self.relays.activate(switch_type)
        except RelayError as e:
            logger.error(f"Error while activating {switch_type.value}: {e}")
            return False

        result.activations.append(activation)
        return activation.ok

    def _transition(self, switch_type: SwitchType, new_state: HeatingCoolingState, result: EvaluationResult) -> bool:
        """Activate relays and apply `new_state` only if every switch responded."""
        if self._activate(switch_type, result):
            self.state.current_heating_cooling_state = new_state
            self.retries = 0
            result.transitioned = True
            return True

        self.retries += 1
        logger.error(
            f"Error while switching to {new_state.name}, try again next cycle (retries: {self.retries})"
        )
        return False
