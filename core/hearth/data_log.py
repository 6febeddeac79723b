"""
On-disk mirrors of the control loop: the temperature history as JSON and a
CSV line per evaluation cycle for offline analysis.
"""

import csv
import json
import logging
import os
from datetime import datetime, timezone

from .history import TemperatureHistoryEntry
from .models import ThermostatState

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "date",
    "state",
    "target-state",
    "temperature",
    "target-temperature",
    "outside-temperature",
    "heat-index",
]


class DataLog:
    """Writes the history mirror and the CSV data log into one directory."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.history_path = os.path.join(data_dir, "temperature-history.json")
        self.csv_path = os.path.join(data_dir, "data-log.csv")

    def write_history(self, entries: list[TemperatureHistoryEntry]) -> bool:
        """Overwrite the history mirror with `entries`."""
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            with open(self.history_path, "w") as f:
                json.dump([e.to_dict() for e in entries], f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write temperature history to {self.history_path}: {e}")
            return False
        return True

    def read_history(self) -> list[TemperatureHistoryEntry]:
        """Read the history mirror. Missing or invalid files yield no entries."""
        if not os.path.exists(self.history_path):
            return []

        try:
            with open(self.history_path) as f:
                raw = json.load(f)
            return [TemperatureHistoryEntry.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable temperature history {self.history_path}: {e}")
            return []

    def append_row(
        self,
        state: ThermostatState,
        outside_temperature: float | None,
        heat_index: float | None,
        timestamp: datetime | None = None
    ) -> bool:
        """Append one CSV line for the current state, writing the header first if needed."""
        timestamp = timestamp or datetime.now(timezone.utc)
        row = [
            timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            int(state.current_heating_cooling_state),
            int(state.target_heating_cooling_state),
            state.current_temperature,
            state.target_temperature,
            outside_temperature if outside_temperature is not None else "",
            round(heat_index, 2) if heat_index is not None else "",
        ]

        try:
            os.makedirs(self.data_dir, exist_ok=True)
            write_header = not os.path.exists(self.csv_path)
            with open(self.csv_path, "a", newline="") as f:
                writer = csv.writer(f)
                if write_header:
                    writer.writerow(CSV_HEADER)
                writer.writerow(row)
        except OSError as e:
            logger.error(f"Failed to append to data log {self.csv_path}: {e}")
            return False
        return True
