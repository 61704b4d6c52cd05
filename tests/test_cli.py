"""Tests for argument parsing and the CLI entry point."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

import wsr_timetable.cli as cli
from wsr_timetable.config import Config

from conftest import (
    FIXED_NOW, LINE_STATIONS, make_trip_record, render_to_text, write_timetable_json,
)


def _run_main(argv):
    """Run main() with a mocked Console; return everything it printed as text."""
    with patch("wsr_timetable.cli.Console") as mock_console_cls, \
         patch("wsr_timetable.cli.Live") as mock_live:
        mock_console = MagicMock()
        mock_console_cls.return_value = mock_console
        cli.main(argv)

    mock_live.assert_not_called()
    return "\n".join(render_to_text(c.args[0]) for c in mock_console.print.call_args_list)


# =============================================================================
# TestArgParsing
# =============================================================================


class TestArgParsing:
    def test_board(self):
        args = cli.build_parser().parse_args(["board", "min", "--at", "20:05", "--once", "--limit", "3"])
        config = cli.config_from_args(args)

        assert config.command == "board"
        assert config.station_code == "MIN"
        assert config.query_time == "20:05"
        assert config.once is True
        assert config.board_limit == 3

    def test_track(self):
        args = cli.build_parser().parse_args(["track", "1s01", "--compact", "--all", "-r", "60"])
        config = cli.config_from_args(args)

        assert config.trip_id == "1S01"
        assert config.compact_mode is True
        assert config.show_all is True
        assert config.refresh_interval == 60

    def test_journeys(self):
        args = cli.build_parser().parse_args(["journeys", "bl", "min", "--after", "9:30"])
        config = cli.config_from_args(args)

        assert (config.from_code, config.to_code) == ("BL", "MIN")
        assert config.depart_after == "09:30"
        assert config.journey_limit == 5

    def test_live_defaults(self):
        config = cli.config_from_args(cli.build_parser().parse_args(["live"]))

        assert config == Config(command="live")

    def test_shared_flags(self):
        args = cli.build_parser().parse_args(
            ["live", "--demo-train", "--timetable", "tt.json", "--log-level", "debug"]
        )
        config = cli.config_from_args(args)

        assert config.demo_train is True
        assert config.timetable_path == "tt.json"
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("argv", [
        ["board", "MIN", "--at", "25:00"],
        ["board", "MIN", "--at", "noon"],
        ["journeys", "BL", "MIN", "--after", "10"],
        ["board", "MIN", "--limit", "0"],
        ["live", "--refresh", "fast"],
        [],
    ])
    def test_invalid_arguments_exit(self, argv):
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args(argv)
        assert exc_info.value.code == 2


# =============================================================================
# TestMakeClock
# =============================================================================


class TestMakeClock:
    def test_wall_clock(self):
        clock = cli.make_clock(Config())
        assert clock() == FIXED_NOW

    def test_fixed_time_today(self):
        clock = cli.make_clock(Config(query_time="20:05"))
        assert clock() == datetime(2025, 6, 14, 20, 5)


# =============================================================================
# TestBuildView
# =============================================================================


class TestBuildView:
    def test_track_before_departure_shows_predeparture(self, engine):
        config = Config(command="track", trip_id="2D02", once=True)
        text = render_to_text(cli.build_view(engine, config, FIXED_NOW))

        assert "Awaiting Departure" in text
        assert "Calling points" in text

    def test_track_running(self, engine):
        config = Config(command="track", trip_id="1S01", once=True)
        text = render_to_text(cli.build_view(engine, config, FIXED_NOW))

        assert "Next: Crowcombe Heathfield" in text
        assert "Line Position" in text
        assert "Refresh" not in text

    def test_track_compact(self, engine):
        config = Config(command="track", trip_id="1S01", compact_mode=True)
        view = cli.build_view(engine, config, FIXED_NOW)

        assert "BL→38%→CH" in view.plain

    def test_journeys_default_to_query_time(self, engine):
        config = Config(command="journeys", from_code="BL", to_code="MIN", once=True)
        text = render_to_text(cli.build_view(engine, config, FIXED_NOW))

        assert "Departing from 10:20" in text
        assert "10:15" not in text
        assert "12:25" in text

    def test_missing_targets(self, engine):
        assert cli.find_missing_target(engine, Config(command="board", station_code="MIN")) is None

        panel = cli.find_missing_target(engine, Config(command="board", station_code="XYZ"))
        assert "Station XYZ not found" in render_to_text(panel)

        panel = cli.find_missing_target(engine, Config(command="journeys", from_code="BL", to_code="ABC"))
        assert "Station ABC not found" in render_to_text(panel)

        panel = cli.find_missing_target(engine, Config(command="track", trip_id="9Z99"))
        assert "Trip 9Z99 not found" in render_to_text(panel)

    def test_subscribe_view(self, engine):
        feed = cli.TimetableFeed(engine, clock=lambda: FIXED_NOW)
        callback = MagicMock()

        assert len(cli.subscribe_view(feed, engine, Config(command="board", station_code="MIN"), callback)) == 1
        assert len(cli.subscribe_view(feed, engine, Config(command="live"), callback)) == 9

        feed.tick()
        assert callback.call_count == 10


# =============================================================================
# TestMain
# =============================================================================


class TestMain:
    def test_board_once(self):
        text = _run_main(["board", "MIN", "--at", "20:05", "--once"])

        assert "Minehead (MIN)" in text
        assert "Next day's services from 09:00" in text
        assert "As of 20:05" in text

    def test_track_once(self):
        text = _run_main(["track", "1S01", "--once"])

        assert "Between Bishops Lydeard and Crowcombe Heathfield" in text

    def test_live_once_with_demo_train(self):
        text = _run_main(["live", "--demo-train", "--once"])

        assert "TEST01" in text
        assert "1S01" in text

    def test_journeys_once(self):
        text = _run_main(["journeys", "BL", "MIN", "--after", "12:00", "--once"])

        assert "2D02" in text
        assert "1S01" not in text

    def test_timetable_file(self, tmp_path):
        path = write_timetable_json(tmp_path, LINE_STATIONS, [make_trip_record()])
        text = _run_main(["track", "X1", "--timetable", str(path), "--once"])

        assert "Bishops Lydeard → Minehead" in text

    def test_unknown_trip_exits_1(self):
        with pytest.raises(SystemExit) as exc_info:
            _run_main(["track", "9Z99", "--once"])
        assert exc_info.value.code == 1

    def test_bad_timetable_file_exits_1(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[", encoding="utf-8")

        with patch("wsr_timetable.cli.Console") as mock_console_cls:
            mock_console = MagicMock()
            mock_console_cls.return_value = mock_console
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["live", "--timetable", str(path), "--once"])

        assert exc_info.value.code == 1
        printed = render_to_text(mock_console.print.call_args[0][0])
        assert "Could not load timetable" in printed

    def test_malformed_timetable_exits_1(self, tmp_path):
        bad = make_trip_record(stops=[("BL", None, "10:00")])
        path = write_timetable_json(tmp_path, LINE_STATIONS, [bad])

        with patch("wsr_timetable.cli.Console") as mock_console_cls:
            mock_console = MagicMock()
            mock_console_cls.return_value = mock_console
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["live", "--timetable", str(path), "--once"])

        assert exc_info.value.code == 1
        printed = render_to_text(mock_console.print.call_args[0][0])
        assert "needs at least two stops" in printed

    def test_station_missing_field_exits_1(self, tmp_path):
        stations = [dict(LINE_STATIONS[0]), *LINE_STATIONS[1:]]
        del stations[0]["milepost"]
        path = write_timetable_json(tmp_path, stations, [make_trip_record()])

        with patch("wsr_timetable.cli.Console") as mock_console_cls:
            mock_console = MagicMock()
            mock_console_cls.return_value = mock_console
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["board", "MIN", "--once", "--timetable", str(path)])

        assert exc_info.value.code == 1
        printed = render_to_text(mock_console.print.call_args[0][0])
        assert "Station BL: missing field 'milepost'" in printed

    @patch("wsr_timetable.cli.sleep", side_effect=KeyboardInterrupt)
    @patch("wsr_timetable.cli.Live")
    @patch("wsr_timetable.cli.Console")
    def test_live_refresh_stops_on_ctrl_c(self, mock_console_cls, mock_live, mock_sleep):
        mock_console = MagicMock()
        mock_console_cls.return_value = mock_console

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["board", "MIN", "--at", "10:00"])

        assert exc_info.value.code == 0
        mock_live.assert_called_once()
        mock_console.print.assert_called_with("\n[dim]Tracking stopped.[/]")

    @patch("wsr_timetable.cli.sleep", side_effect=KeyboardInterrupt)
    @patch("wsr_timetable.cli.Live")
    @patch("wsr_timetable.cli.Console")
    def test_compact_refresh_without_live(self, mock_console_cls, mock_live, mock_sleep):
        mock_console = MagicMock()
        mock_console_cls.return_value = mock_console

        cli.main(["track", "1S01", "--compact"])

        mock_live.assert_not_called()
