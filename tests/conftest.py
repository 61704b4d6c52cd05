"""Shared test fixtures and helpers for wsr-timetable tests."""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from wsr_timetable.data import load_default_timetable
from wsr_timetable.engine import TimetableEngine
from wsr_timetable.timetable import load_timetable


# =============================================================================
# Constants
# =============================================================================


# A fixed "now" for deterministic time-based tests (1S01 is between BL and CH)
FIXED_NOW = datetime(2025, 6, 14, 10, 20, 0)

# A three-station line: Bishops Lydeard, Crowcombe Heathfield, Minehead
LINE_STATIONS = [
    {"code": "BL", "name": "Bishops Lydeard", "lat": 51.055, "lng": -3.194, "milepost": 0.0},
    {"code": "CH", "name": "Crowcombe Heathfield", "lat": 51.103, "lng": -3.234, "milepost": 3.25},
    {"code": "MIN", "name": "Minehead", "lat": 51.207, "lng": -3.471, "milepost": 22.75},
]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def freeze_time():
    """Patch every _now import to return FIXED_NOW for deterministic tests."""
    with patch("wsr_timetable.cli._now", return_value=FIXED_NOW), \
         patch("wsr_timetable.data._now", return_value=FIXED_NOW), \
         patch("wsr_timetable.engine._now", return_value=FIXED_NOW), \
         patch("wsr_timetable.feed._now", return_value=FIXED_NOW):
        yield


@pytest.fixture
def engine():
    """Engine over the bundled West Somerset timetable, without the demo trip."""
    return TimetableEngine(load_default_timetable())


@pytest.fixture
def line_engine():
    """Engine over the three-station line with the single example trip."""
    return make_engine([make_trip_record()])


# =============================================================================
# Test data helpers
# =============================================================================


def make_station_record(code="TST", name="Test Station", milepost=0.0, **extra):
    """Build a station record in the shape the loader expects."""
    record = {"code": code, "name": name, "lat": 51.0, "lng": -3.0, "milepost": milepost}
    record.update(extra)
    return record


def make_trip_record(
    trip_id="X1",
    stops=None,
    service_class="Steam",
    state=None,
    delay_minutes=0,
    **extra,
):
    """
    Build a trip record. Defaults to BL 10:15 -> CH 10:28/10:28 -> MIN 11:35.

    Stops are (code, arrival, departure[, platform]) tuples or stop dicts.
    """
    stops = stops or [
        ("BL", None, "10:15", "1"),
        ("CH", "10:28", "10:28", "1"),
        ("MIN", "11:35", None, "1"),
    ]

    def code(stop):
        return stop["station"] if isinstance(stop, dict) else stop[0]

    record = {
        "id": trip_id,
        "service_id": f"SVC_{trip_id}",
        "service_class": service_class,
        "origin": code(stops[0]),
        "destination": code(stops[-1]),
        "stops": stops,
    }
    if state or delay_minutes:
        record["status"] = {"state": state or "Scheduled", "delay_minutes": delay_minutes}
    record.update(extra)
    return record


def make_engine(trip_records, station_records=None, alert_records=()):
    """Build an engine from records, defaulting to the three-station line."""
    timetable = load_timetable(station_records or LINE_STATIONS, trip_records, alert_records)
    return TimetableEngine(timetable)


def render_to_text(renderable, width=120) -> str:
    """Capture a Rich renderable as plain text for assertion."""
    console = Console(record=True, width=width, force_terminal=False)
    console.print(renderable)
    return console.export_text()


def write_timetable_json(directory: Path, stations, trips, alerts=None) -> Path:
    """Write a timetable JSON file and return its path."""
    path = directory / "timetable.json"
    data = {"stations": stations, "trips": trips}
    if alerts is not None:
        data["alerts"] = alerts
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
