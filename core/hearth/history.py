"""
Temperature History Tracking

Bounded in-memory history of sensor temperatures. Only the last four hours
are ever used for drift deltas, so older samples are pruned on append.
"""

import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import numpy as np


def now_utc() -> datetime:
    """Get current time as timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Trailing windows, largest first. Each window is filtered from the previous one.
WINDOWS = (
    ("four_hours", timedelta(hours=4)),
    ("two_hours", timedelta(hours=2)),
    ("one_hour", timedelta(hours=1)),
    ("half_hour", timedelta(minutes=30)),
    ("quarter", timedelta(minutes=15)),
)

DEFAULT_RETENTION = timedelta(hours=4, minutes=15)


@dataclass
class TemperatureHistoryEntry:
    """A single temperature sample."""

    date: datetime
    temperature: float

    def __post_init__(self):
        self.date = as_utc(self.date)

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "temperature": self.temperature}

    @classmethod
    def from_dict(cls, data: dict) -> "TemperatureHistoryEntry":
        return cls(
            date=datetime.fromisoformat(str(data["date"]).replace("Z", "+00:00")),
            temperature=float(data["temperature"]),
        )


@dataclass
class WindowDelta:
    """Spread of temperatures in one trailing window. None means no samples."""

    min: Optional[float] = None
    max: Optional[float] = None
    delta: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.delta is not None

    @classmethod
    def from_values(cls, temperatures: np.ndarray) -> "WindowDelta":
        if temperatures.size == 0:
            return cls()
        lowest = float(np.min(temperatures))
        highest = float(np.max(temperatures))
        return cls(min=lowest, max=highest, delta=highest - lowest)


@dataclass
class TemperatureDeltas:
    """Drift deltas over the five trailing windows."""

    quarter: WindowDelta
    half_hour: WindowDelta
    one_hour: WindowDelta
    two_hours: WindowDelta
    four_hours: WindowDelta

    def exceeded(self, limits) -> list[str]:
        """Names of windows whose delta is above the matching limit on `limits`."""
        names = []
        for name, _ in reversed(WINDOWS):
            window: WindowDelta = getattr(self, name)
            if window.has_data and window.delta > getattr(limits, name):
                names.append(name)
        return names

    def to_dict(self) -> dict:
        return asdict(self)


class TemperatureHistory:
    """Append-only temperature history with stale-sample rejection."""

    def __init__(self, retention: timedelta = DEFAULT_RETENTION, max_entries: int = 1000):
        """Initialize history.

        Args:
            retention: Samples older than the newest sample minus this are pruned
            max_entries: Hard cap on stored samples
        """
        self.retention = retention
        self._entries: deque[TemperatureHistoryEntry] = deque(maxlen=max_entries)
        self.lock = threading.Lock()

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def append(self, entry: TemperatureHistoryEntry) -> bool:
        """Append a sample.

        Returns:
            False if the sample has the same date as the last stored one
            (a stale sensor poll) and was not stored, True otherwise.
        """
        with self.lock:
            if self._entries and self._entries[-1].date == entry.date:
                return False

            self._entries.append(entry)
            self._cleanup_old_data(entry.date)
            return True

    def load(self, entries: Iterable[TemperatureHistoryEntry]) -> int:
        """Bootstrap from previously mirrored samples. Returns the stored count."""
        for entry in sorted(entries, key=lambda e: e.date):
            self.append(entry)
        return len(self)

    def entries(self, hours: Optional[float] = None) -> list[TemperatureHistoryEntry]:
        """Stored samples, optionally limited to the last `hours`."""
        with self.lock:
            entries = list(self._entries)

        if hours:
            cutoff = now_utc() - timedelta(hours=hours)
            entries = [e for e in entries if e.date > cutoff]

        return entries

    def deltas(self, now: Optional[datetime] = None) -> TemperatureDeltas:
        """Compute min/max/delta for each trailing window ending at `now`."""
        now = as_utc(now) if now else now_utc()

        with self.lock:
            entries = list(self._entries)

        timestamps = np.array([e.date.timestamp() for e in entries], dtype=float)
        temperatures = np.array([e.temperature for e in entries], dtype=float)
        now_ts = now.timestamp()

        windows = {}
        for name, span in WINDOWS:
            mask = timestamps >= now_ts - span.total_seconds()
            timestamps = timestamps[mask]
            temperatures = temperatures[mask]
            windows[name] = WindowDelta.from_values(temperatures)

        return TemperatureDeltas(**windows)

    def _cleanup_old_data(self, newest: datetime):
        """Remove samples older than the retention window. Caller holds the lock."""
        cutoff = newest - self.retention
        while self._entries and self._entries[0].date < cutoff:
            self._entries.popleft()
