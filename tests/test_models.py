"""Tests for the clock-time helpers and small model behaviours."""

from datetime import datetime, time

import pytest

from wsr_timetable.models import (
    Station, Stop, StopStatus, TripLocation,
    format_clock, format_delay_status, format_duration, get_stop_style,
    minutes_between, parse_clock, to_clock,
)


# =============================================================================
# TestParseClock
# =============================================================================


class TestParseClock:
    def test_hh_mm(self):
        assert parse_clock("10:15") == 615

    def test_midnight(self):
        assert parse_clock("00:00") == 0

    def test_seconds_dropped(self):
        assert parse_clock("09:05:30") == 545

    def test_single_digit_hour(self):
        assert parse_clock("9:05") == 545

    def test_surrounding_whitespace(self):
        assert parse_clock(" 14:25 ") == 865

    def test_datetime(self):
        assert parse_clock(datetime(2025, 6, 14, 20, 5, 59)) == 1205

    def test_time(self):
        assert parse_clock(time(11, 35)) == 695

    @pytest.mark.parametrize("value", ["24:00", "10:60", "abc", "10", "", "1:2:3:4", None, 615])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)


# =============================================================================
# TestFormatting
# =============================================================================


class TestFormatting:
    def test_format_clock_zero_padded(self):
        assert format_clock(5) == "00:05"
        assert format_clock(615) == "10:15"

    def test_to_clock(self):
        assert to_clock("9:05") == "09:05"
        assert to_clock(datetime(2025, 6, 14, 7, 3)) == "07:03"

    def test_minutes_between(self):
        assert minutes_between("10:15", "11:35") == 80
        assert minutes_between("11:35", "10:15") == -80

    @pytest.mark.parametrize("minutes, expected", [
        (80, "1h 20m"),
        (60, "1h 0m"),
        (45, "45m"),
        (0, "0m"),
        (None, "—"),
    ])
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected

    @pytest.mark.parametrize("delay, cancelled, expected", [
        (0, False, "On Time"),
        (None, False, "On Time"),
        (5, False, "Exp 5 min late"),
        (-3, False, "Running early"),
        (5, True, "Cancelled"),
    ])
    def test_format_delay_status(self, delay, cancelled, expected):
        assert format_delay_status(delay, cancelled) == expected


# =============================================================================
# TestGetStopStyle
# =============================================================================


class TestGetStopStyle:
    def test_departed(self):
        style, icon = get_stop_style(StopStatus.DEPARTED)
        assert icon == "✓"
        assert style == "green"

    def test_arrived(self):
        style, icon = get_stop_style(StopStatus.ARRIVED)
        assert icon == "●"

    def test_skipped_and_cancelled(self):
        assert get_stop_style(StopStatus.SKIPPED)[1] == "✗"
        assert get_stop_style(StopStatus.CANCELLED)[1] == "✗"

    def test_scheduled(self):
        style, icon = get_stop_style(StopStatus.SCHEDULED)
        assert icon == "○"
        assert style == "dim"


# =============================================================================
# TestStop
# =============================================================================


class TestStop:
    def test_dwell(self):
        stop = Stop("CH", "Crowcombe Heathfield", scheduled_arrival="10:05", scheduled_departure="10:07")
        assert stop.dwell_minutes == 2
        assert stop.has_dwell

    def test_zero_dwell_is_pass_through(self):
        stop = Stop("CH", "Crowcombe Heathfield", scheduled_arrival="10:28", scheduled_departure="10:28")
        assert stop.dwell_minutes == 0
        assert not stop.has_dwell

    def test_terminal_stops_have_no_dwell(self):
        assert Stop("BL", "Bishops Lydeard", scheduled_departure="10:15").dwell_minutes is None
        assert Stop("MIN", "Minehead", scheduled_arrival="11:35").dwell_minutes is None

    def test_skipped_never_dwells(self):
        stop = Stop("CH", "Crowcombe Heathfield", "10:05", "10:07", skipped=True)
        assert not stop.has_dwell


# =============================================================================
# TestTripLocation
# =============================================================================


class TestTripLocation:
    def test_describe_codes(self):
        assert TripLocation(at="MIN").describe() == "At MIN"
        assert TripLocation(between=("BL", "CH")).describe() == "Between BL and CH"
        assert TripLocation().describe() == "—"

    def test_describe_with_names(self):
        stations = {
            "BL": Station("BL", "Bishops Lydeard", 51.0, -3.0, 0.0),
            "CH": Station("CH", "Crowcombe Heathfield", 51.1, -3.2, 3.25),
        }
        location = TripLocation(between=("BL", "CH"))
        assert location.describe(stations) == "Between Bishops Lydeard and Crowcombe Heathfield"

    def test_station_is_frozen(self):
        station = Station("BL", "Bishops Lydeard", 51.0, -3.0, 0.0)
        with pytest.raises(AttributeError):
            station.name = "Elsewhere"
