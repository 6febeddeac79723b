"""
Heating/cooling thresholds.

Bounds are a symmetric band of MAX_TEMPERATURE_CYCLE_DELTA around the target
temperature. With no history yet and a reading already below the band, the
heating band is shifted down to start at the current reading.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from .comfort import desired_air_speed, operating_temperature
from .models import Forecast

logger = logging.getLogger(__name__)

# Maximum temperature swing (°C) of one heating/cooling cycle
MAX_TEMPERATURE_CYCLE_DELTA = 1.1


@dataclass(frozen=True)
class DeltaLimits:
    """Maximum expected drift (°C) per trailing window. Used for warnings only."""

    quarter: float = 1.1
    half_hour: float = 1.7
    one_hour: float = 2.2
    two_hours: float = 2.8
    four_hours: float = 3.3


@dataclass
class Thresholds:
    """Temperature bounds for one evaluation."""

    heating_min: float
    heating_max: float
    cooling_min: float
    cooling_max: float
    delta_max: DeltaLimits = field(default_factory=DeltaLimits)
    operating_temperature: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


class ThresholdCalculator:
    """Derives thresholds from the target temperature."""

    def __init__(
        self,
        cycle_delta: float = MAX_TEMPERATURE_CYCLE_DELTA,
        delta_limits: DeltaLimits | None = None
    ):
        self.cycle_delta = cycle_delta
        self.delta_limits = delta_limits or DeltaLimits()

    def calculate(
        self,
        target_temperature: float,
        current_temperature: float | None,
        history_empty: bool,
        forecast: Forecast | None = None
    ) -> Thresholds:
        """Calculate thresholds.

        Args:
            target_temperature: User setpoint (°C)
            current_temperature: Latest indoor reading (°C), None before the first reading
            history_empty: True when no temperature history exists yet
            forecast: Latest outdoor conditions, if any

        Returns:
            Thresholds for this evaluation
        """
        half_band = self.cycle_delta / 2

        heating_min = target_temperature - half_band
        heating_max = target_temperature + half_band
        cooling_min = target_temperature - half_band
        cooling_max = target_temperature + half_band

        # Cold start
        if history_empty and current_temperature is not None and current_temperature < heating_min:
            heating_min = current_temperature
            heating_max = current_temperature + self.cycle_delta
            logger.info(
                f"Cold start: heating band shifted to {heating_min:.2f}-{heating_max:.2f}°C"
            )

        to = None
        if forecast is not None and current_temperature is not None:
            # TODO: feed the operating temperature back into the heating/cooling bounds
            air_speed = desired_air_speed(current_temperature)
            to = operating_temperature(current_temperature, current_temperature, air_speed)
            logger.debug(
                f"Operating temperature {to:.2f}°C (outdoor {forecast.temperature:.1f}°C, "
                f"desired air speed {air_speed:.2f} m/s)"
            )

        return Thresholds(
            heating_min=heating_min,
            heating_max=heating_max,
            cooling_min=cooling_min,
            cooling_max=cooling_max,
            delta_max=self.delta_limits,
            operating_temperature=to,
        )
