"""
Comfort indices used for logging and as inputs to forecast-aware thresholds.

- Heat index: NWS Rothfusz regression with the low/high humidity adjustments
- Wind chill: Environment Canada formula (wind in m/s, converted to km/h)
- Operating temperature: weighted mean of air and mean radiant temperature
"""

import math


def heat_index(temperature: float, relative_humidity: float) -> float:
    """Apparent temperature (°C) for a given air temperature (°C) and RH (%)."""
    T = temperature * 1.8 + 32
    RH = relative_humidity
    adjustment = 0.0

    # Simple formula first, full regression only in the warm range
    HI = 0.5 * (T + 61.0 + ((T - 68.0) * 1.2) + (RH * 0.094))

    if (HI + T) / 2 >= 80:
        HI = (
            -42.379 + 2.04901523 * T + 10.14333127 * RH
            - 0.22475541 * T * RH - 0.00683783 * T * T
            - 0.05481717 * RH * RH + 0.00122874 * T * T * RH
            + 0.00085282 * T * RH * RH - 0.00000199 * T * T * RH * RH
        )

        if 80 <= T <= 112 and RH <= 13:
            adjustment = -((13 - RH) / 4) * math.sqrt((17 - abs(T - 95.0)) / 17)
        elif 80 <= T <= 87 and RH >= 85:
            adjustment = ((RH - 85) / 10) * ((87 - T) / 5)

    return (HI + adjustment - 32) / 1.8


def wind_chill(temperature: float, wind_speed: float) -> float:
    """Wind chill (°C) for air temperature (°C) and wind speed (m/s)."""
    V = wind_speed * 3.6
    return 13.12 + 0.6215 * temperature - 11.37 * V ** 0.16 + 0.3965 * temperature * V ** 0.16


def desired_air_speed(air_temperature: float) -> float:
    """Air speed (m/s) that keeps a seated person comfortable at this temperature."""
    return 50.49 - 4.4047 * air_temperature + 0.096425 * air_temperature ** 2


def operating_temperature(air_temperature: float, radiant_temperature: float, air_speed: float) -> float:
    """Operating temperature (°C).

    Below 0.1 m/s the plain mean of air and radiant temperature is used,
    above it the air temperature is weighted by sqrt(10 * v).
    """
    if air_speed < 0.1:
        return (air_temperature + radiant_temperature) / 2

    weight = math.sqrt(10 * air_speed)
    return (radiant_temperature + air_temperature * weight) / (1 + weight)
