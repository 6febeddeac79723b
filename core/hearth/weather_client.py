"""
OpenWeatherMap client

Fetches current outdoor conditions used by the forecast-aware thresholds.
"""

import logging
from datetime import datetime, timezone

import requests

from .exceptions import WeatherError
from .models import Forecast

logger = logging.getLogger(__name__)

OPENWEATHERMAP_URL = "https://api.openweathermap.org/data/2.5/weather"


class WeatherClient:
    """Current-weather client for one location."""

    def __init__(
        self,
        api_key: str,
        location: str,
        timeout: float = 10,
        session: requests.Session | None = None
    ):
        """Initialize weather client.

        Args:
            api_key: OpenWeatherMap API key
            location: Query such as "Hasselt,be"
            timeout: Request timeout in seconds
            session: Optional requests session
        """
        self.api_key = api_key
        self.location = location
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_forecast(self) -> Forecast:
        """Fetch current conditions in metric units.

        Raises:
            WeatherError: If the request fails or the response lacks data
        """
        params = {"APPID": self.api_key, "units": "metric", "q": self.location}
        try:
            response = self.session.get(OPENWEATHERMAP_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise WeatherError(f"Weather request failed: {e}") from e
        except ValueError as e:
            raise WeatherError(f"Weather service returned invalid JSON: {e}") from e

        try:
            forecast = Forecast(
                temperature=float(data["main"]["temp"]),
                humidity=float(data["main"]["humidity"]),
                wind_speed=float((data.get("wind") or {}).get("speed") or 0.0),
                fetched_at=datetime.now(timezone.utc),
                location=self.location,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise WeatherError(f"Cannot read weather payload: {e}") from e

        logger.debug(
            f"Outdoor {forecast.temperature}°C, {forecast.humidity}% RH, wind {forecast.wind_speed} m/s"
        )
        return forecast
