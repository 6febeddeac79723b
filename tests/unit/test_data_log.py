"""Tests for the history mirror and CSV data log."""

import csv
from datetime import timedelta

from core.hearth.data_log import CSV_HEADER, DataLog
from core.hearth.history import TemperatureHistoryEntry
from core.hearth.models import HeatingCoolingState, ThermostatState


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


class TestHistoryMirror:
    def test_write_then_read(self, tmp_path, now):
        log = DataLog(str(tmp_path))
        entries = [
            TemperatureHistoryEntry(now - timedelta(minutes=1), 19.5),
            TemperatureHistoryEntry(now, 19.75),
        ]

        assert log.write_history(entries)

        assert log.read_history() == entries

    def test_missing_file_is_empty(self, tmp_path):
        assert DataLog(str(tmp_path)).read_history() == []

    def test_invalid_file_is_empty(self, tmp_path):
        log = DataLog(str(tmp_path))
        with open(log.history_path, "w") as f:
            f.write('[{"date": "yesterday"}]')

        assert log.read_history() == []

    def test_directory_is_created(self, tmp_path, now):
        log = DataLog(str(tmp_path / "data"))

        assert log.write_history([TemperatureHistoryEntry(now, 20.0)])
        assert len(log.read_history()) == 1


class TestCsvLog:
    def test_header_written_once(self, tmp_path, now):
        log = DataLog(str(tmp_path))
        state = ThermostatState(
            current_temperature=19.5,
            target_temperature=20.0,
            current_heating_cooling_state=HeatingCoolingState.HEAT,
            target_heating_cooling_state=HeatingCoolingState.HEAT,
        )

        assert log.append_row(state, 4.5, 19.123, timestamp=now)
        assert log.append_row(state, None, None, timestamp=now)

        rows = read_rows(log.csv_path)
        assert rows[0] == CSV_HEADER
        assert rows[1] == ["2024-01-15 12:00:00", "1", "1", "19.5", "20.0", "4.5", "19.12"]
        assert rows[2][5:] == ["", ""]
        assert len(rows) == 3

    def test_write_failure_returns_false(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")

        assert DataLog(str(blocker)).append_row(ThermostatState(), None, None) is False
