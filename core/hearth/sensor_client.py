"""
Simple sensor API client for Hearth

Reads the remote temperature/humidity sensor. The device endpoint returns a
JSON document of which only `temperature`, `humidity` and `lastSeen` are used.
"""

import logging
import math
from datetime import datetime, timezone

import requests

from .exceptions import SensorError
from .models import SensorReading

logger = logging.getLogger(__name__)


def parse_last_seen(value: str) -> datetime:
    """Parse an ISO timestamp. Values without an offset are UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SensorClient:
    """Remote sensor REST client."""

    def __init__(self, url: str, timeout: float = 10, session: requests.Session | None = None):
        """Initialize sensor client.

        Args:
            url: Device endpoint URL
            timeout: Request timeout in seconds
            session: Optional requests session
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def read(self) -> SensorReading:
        """Fetch the latest reading.

        Returns:
            SensorReading with temperature (°C), humidity (%) and lastSeen

        Raises:
            SensorError: If the request fails or the payload is incomplete
        """
        if not self.url:
            raise SensorError("No temperature sensor configured")

        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise SensorError(f"Sensor request failed: {e}") from e
        except ValueError as e:
            raise SensorError(f"Sensor returned invalid JSON: {e}") from e

        try:
            temperature = float(data["temperature"])
            humidity = data.get("humidity")
            humidity = float(humidity) if humidity is not None else None
            last_seen = parse_last_seen(str(data["lastSeen"]))
        except (KeyError, TypeError, ValueError) as e:
            raise SensorError(f"Cannot read sensor payload: {e}") from e

        if not math.isfinite(temperature) or (humidity is not None and not math.isfinite(humidity)):
            raise SensorError(f"Sensor returned non-finite values: temperature={temperature}, humidity={humidity}")

        logger.debug(f"Sensor reading {temperature}°C, {humidity}% from {last_seen.isoformat()}")
        return SensorReading(temperature=temperature, humidity=humidity, last_seen=last_seen)
