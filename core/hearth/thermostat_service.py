"""
Thermostat Evaluation Service

Background service that reads the sensor and evaluates the thermostat every
minute, polls the weather forecast every five minutes, and runs on-demand
evaluations when the setpoint or mode changes.

Blocking HTTP work runs in worker threads. A single lock serializes every
evaluation: a trigger arriving while one is in flight waits for it.
"""

import asyncio
import logging

from .data_log import DataLog
from .exceptions import SensorError, WeatherError
from .models import HeatingCoolingState
from .sensor_client import SensorClient
from .thermostat import EvaluationResult, Thermostat
from .weather_client import WeatherClient

logger = logging.getLogger(__name__)


class ThermostatService:
    """
    Drives the thermostat control loop.

    Runs two loops:
    - evaluation: resync relays, read sensor, append history, evaluate
    - forecast: refresh outdoor conditions (only with a weather client)
    """

    def __init__(
        self,
        thermostat: Thermostat,
        sensor_client: SensorClient,
        weather_client: WeatherClient | None = None,
        data_log: DataLog | None = None,
        evaluation_interval_seconds: int = 60,
        forecast_interval_seconds: int = 300
    ):
        self.thermostat = thermostat
        self.sensor_client = sensor_client
        self.weather_client = weather_client
        self.data_log = data_log
        self.evaluation_interval_seconds = evaluation_interval_seconds
        self.forecast_interval_seconds = forecast_interval_seconds

        self._lock = asyncio.Lock()
        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the evaluation (and forecast) loops."""
        if self._running:
            logger.warning("Thermostat service already running")
            return

        self._running = True
        await self.bootstrap_history()

        self._tasks.append(asyncio.create_task(self._run_loop()))
        if self.weather_client:
            self._tasks.append(asyncio.create_task(self._forecast_loop()))
        else:
            logger.warning("No weather API key configured, forecast polling disabled")

        logger.info(f"🌡️ Thermostat service started, evaluating every {self.evaluation_interval_seconds} seconds")

    async def stop(self):
        """Stop all loops."""
        if not self._running:
            return

        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()

        logger.info("🌡️ Thermostat service stopped")

    async def bootstrap_history(self) -> int:
        """Load the mirrored temperature history from disk."""
        if not self.data_log:
            return 0

        entries = await asyncio.to_thread(self.data_log.read_history)
        loaded = self.thermostat.history.load(entries)
        if loaded:
            logger.info(f"Loaded {loaded} temperature samples from {self.data_log.history_path}")
        return loaded

    async def poll_and_evaluate(self) -> EvaluationResult | None:
        """One periodic cycle. Returns None when the sensor could not be read."""
        async with self._lock:
            await asyncio.to_thread(self.thermostat.relays.refresh)

            try:
                reading = await asyncio.to_thread(self.sensor_client.read)
            except SensorError as e:
                logger.error(f"Error while reading sensor, skipping evaluation: {e}")
                return None

            added = self.thermostat.update_reading(reading)
            if added and self.data_log:
                await asyncio.to_thread(self.data_log.write_history, self.thermostat.history.entries())

            result = await asyncio.to_thread(self.thermostat.evaluate)

            if self.data_log:
                forecast = self.thermostat.forecast
                await asyncio.to_thread(
                    self.data_log.append_row,
                    self.thermostat.state,
                    forecast.temperature if forecast else None,
                    self.thermostat.heat_index,
                )

            return result

    async def evaluate_now(self) -> EvaluationResult:
        """Evaluate with the current state, without reading the sensor."""
        async with self._lock:
            return await asyncio.to_thread(self.thermostat.evaluate)

    async def set_target_temperature(self, value: float) -> tuple[float, float]:
        """Set the setpoint; evaluates immediately."""
        async with self._lock:
            return await asyncio.to_thread(self.thermostat.set_target_temperature, value)

    async def set_target_heating_cooling_state(
        self, value
    ) -> tuple[HeatingCoolingState, HeatingCoolingState]:
        """Set the target mode; evaluates immediately."""
        async with self._lock:
            return await asyncio.to_thread(self.thermostat.set_target_heating_cooling_state, value)

    async def refresh_forecast(self) -> bool:
        if not self.weather_client:
            return False

        try:
            forecast = await asyncio.to_thread(self.weather_client.get_forecast)
        except WeatherError as e:
            logger.warning(f"Failed to refresh forecast: {e}")
            return False

        self.thermostat.update_forecast(forecast)
        return True

    async def _run_loop(self):
        """Main evaluation loop."""
        logger.info("🌡️ Thermostat evaluation loop starting...")

        while self._running:
            try:
                await self.poll_and_evaluate()
            except Exception as e:
                logger.error(f"Error in thermostat evaluation loop: {e}", exc_info=True)

            await asyncio.sleep(self.evaluation_interval_seconds)

    async def _forecast_loop(self):
        while self._running:
            try:
                await self.refresh_forecast()
            except Exception as e:
                logger.error(f"Error in forecast loop: {e}", exc_info=True)

            await asyncio.sleep(self.forecast_interval_seconds)
