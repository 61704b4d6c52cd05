#!/usr/bin/env python3
"""
wsr-timetable: West Somerset Railway timetable viewer for the terminal.

Usage:
    wsr-timetable board MIN
    wsr-timetable track 1S01
    wsr-timetable journeys BL MIN --after 12:00
    wsr-timetable live --demo-train
"""

import argparse
import logging
import sys
from datetime import datetime, time
from time import sleep
from typing import Callable

from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler

from .config import (
    Config, DEFAULT_BOARD_LIMIT, DEFAULT_JOURNEY_LIMIT, REFRESH_INTERVAL,
)
from .data import load_default_timetable
from .display import (
    build_board_panel, build_compact_display, build_error_panel, build_header,
    build_journeys_panel, build_live_view, build_predeparture_panel,
    build_progress_bar, build_station_not_found_panel, build_stops_table,
    build_trip_not_found_panel,
)
from .engine import TimetableEngine
from .feed import Subscription, TimetableFeed
from .models import Trip, TripState, _now, parse_clock, to_clock
from .timetable import load_timetable_file

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


# =============================================================================
# Argument parsing
# =============================================================================


def _clock_arg(value: str) -> str:
    try:
        return to_clock(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--at",
        dest="query_time",
        type=_clock_arg,
        metavar="HH:MM",
        help="Show the railway as it is at this time of day (default: now)"
    )
    common.add_argument(
        "--once",
        action="store_true",
        help="Display once and exit (no auto-refresh)"
    )
    common.add_argument(
        "-r", "--refresh",
        type=_positive_int,
        default=REFRESH_INTERVAL,
        help=f"Refresh interval in seconds (default: {REFRESH_INTERVAL})"
    )
    common.add_argument(
        "--timetable",
        metavar="PATH",
        help="Load stations, trips and alerts from a JSON file instead of the bundled timetable"
    )
    common.add_argument(
        "--demo-train",
        action="store_true",
        help="Add a demo train that left Minehead 30 minutes ago"
    )
    common.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        type=str.upper,
        help="Logging verbosity (default: WARNING)"
    )

    parser = argparse.ArgumentParser(
        prog="wsr-timetable",
        description="West Somerset Railway timetable, departure boards and live train positions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s board MIN                   # Departures and arrivals at Minehead
    %(prog)s board WAT --at 14:50 --once # Watchet board at 14:50, printed once
    %(prog)s track 1S01                  # Follow the 10:15 from Bishops Lydeard
    %(prog)s track 1S01 --compact        # Single-line output for status bars
    %(prog)s journeys BL MIN --after 12:00 # Direct trains after noon
    %(prog)s live --demo-train           # Every running train, plus a demo one

Station codes: BL, CH, STO, WIL, DON, WAT, WAS, BA, DUN, MIN.
        """
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    board = subparsers.add_parser("board", parents=[common], help="Station departure board")
    board.add_argument("station_code", metavar="CODE", help="Station code (e.g. MIN)")
    board.add_argument(
        "--limit",
        type=_positive_int,
        default=DEFAULT_BOARD_LIMIT,
        help=f"Rows per table (default: {DEFAULT_BOARD_LIMIT})"
    )

    track = subparsers.add_parser("track", parents=[common], help="Follow one train")
    track.add_argument("trip_id", metavar="TRIP_ID", help="Train headcode (e.g. 1S01)")
    track.add_argument(
        "--compact", "-c",
        action="store_true",
        help="Compact single-line output (for status bars, tmux, etc.)"
    )
    track.add_argument(
        "--all", "-a",
        dest="show_all",
        action="store_true",
        help="Show all calling points without hiding older departed stops"
    )

    journeys = subparsers.add_parser("journeys", parents=[common], help="Direct trains between two stations")
    journeys.add_argument("from_code", metavar="FROM", help="Boarding station code")
    journeys.add_argument("to_code", metavar="TO", help="Alighting station code")
    journeys.add_argument(
        "--after",
        dest="depart_after",
        type=_clock_arg,
        metavar="HH:MM",
        help="Earliest departure time (default: the query time)"
    )
    journeys.add_argument(
        "--limit",
        type=_positive_int,
        default=DEFAULT_JOURNEY_LIMIT,
        help=f"Maximum journeys to list (default: {DEFAULT_JOURNEY_LIMIT})"
    )

    subparsers.add_parser("live", parents=[common], help="All running and departing trains")

    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    config = Config(
        command=args.command,
        query_time=args.query_time,
        once=args.once,
        refresh_interval=args.refresh,
        timetable_path=args.timetable,
        demo_train=args.demo_train,
        log_level=args.log_level,
    )
    if args.command == "board":
        config.station_code = args.station_code.upper()
        config.board_limit = args.limit
    elif args.command == "track":
        config.trip_id = args.trip_id.upper()
        config.compact_mode = args.compact
        config.show_all = args.show_all
    elif args.command == "journeys":
        config.from_code = args.from_code.upper()
        config.to_code = args.to_code.upper()
        config.depart_after = args.depart_after
        config.journey_limit = args.limit
    return config


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# =============================================================================
# Wiring
# =============================================================================


def make_clock(config: Config) -> Callable[[], datetime]:
    """Wall clock, or a clock frozen at --at on today's date."""
    if config.query_time is None:
        return _now
    hours, minutes = divmod(parse_clock(config.query_time), 60)
    fixed = datetime.combine(_now().date(), time(hours, minutes))
    return lambda: fixed


def load_engine(config: Config, now: datetime) -> TimetableEngine:
    if config.timetable_path:
        if config.demo_train:
            logger.warning("--demo-train only applies to the bundled timetable; ignoring it")
        timetable = load_timetable_file(config.timetable_path)
    else:
        timetable = load_default_timetable(demo_train=config.demo_train, now=now)
    return TimetableEngine(timetable)


def find_missing_target(engine: TimetableEngine, config: Config):
    """A not-found panel for the first unknown station or trip named on the command line."""
    stations = [(s.code, s.name) for s in engine.stations()]
    codes = [config.station_code, config.from_code, config.to_code]
    for code in codes:
        if code and engine.get_station(code) is None:
            return build_station_not_found_panel(code, stations)
    if config.trip_id and engine.get_trip(config.trip_id) is None:
        return build_trip_not_found_panel(config.trip_id, [t.trip_id for t in engine.trips()])
    return None


def build_trip_view(engine: TimetableEngine, trip: Trip, now: datetime, config: Config):
    """Header, line position and calling points for one trip."""
    if config.compact_mode:
        return build_compact_display(engine, trip, now)

    refresh = None if config.once else config.refresh_interval
    snapshot = engine.compute_trip_state(trip, now)
    if snapshot.state == TripState.SCHEDULED:
        top = build_predeparture_panel(engine, trip, now)
    else:
        top = build_header(engine, trip, now, refresh_interval=refresh)

    return Group(
        top,
        build_progress_bar(engine, trip, now),
        build_stops_table(trip, snapshot, focus=not config.show_all),
    )


def build_view(engine: TimetableEngine, config: Config, now: datetime):
    """Build the renderable for the configured command."""
    refresh = None if config.once else config.refresh_interval

    if config.command == "board":
        board = engine.derive_departure_board(config.station_code, now, config.board_limit)
        return build_board_panel(board, as_of=to_clock(now), refresh_interval=refresh)

    if config.command == "track":
        trip = engine.get_trip(config.trip_id)
        if trip is None:
            return build_trip_not_found_panel(config.trip_id, [t.trip_id for t in engine.trips()])
        return build_trip_view(engine, trip, now, config)

    if config.command == "journeys":
        depart_after = config.depart_after or to_clock(now)
        journeys = engine.find_direct_journeys(
            config.from_code, config.to_code, depart_after, config.journey_limit
        )
        return build_journeys_panel(
            journeys,
            engine.timetable.station_name(config.from_code),
            engine.timetable.station_name(config.to_code),
            depart_after,
        )

    return build_live_view(engine, now, refresh_interval=refresh)


def subscribe_view(
    feed: TimetableFeed, engine: TimetableEngine, config: Config, callback,
) -> list[Subscription]:
    """Subscribe `callback` to whatever the configured view depends on."""
    if config.command == "board":
        return [feed.subscribe_station(config.station_code, callback)]
    if config.command == "track":
        return [feed.subscribe_trip(config.trip_id, callback)]
    if config.command == "journeys":
        return [feed.subscribe_station(config.from_code, callback)]
    return [feed.subscribe_trip(trip.trip_id, callback) for trip in engine.trips()]


# =============================================================================
# Entry point
# =============================================================================


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)
    setup_logging(config.log_level)

    console = Console()
    clock = make_clock(config)

    try:
        engine = load_engine(config, clock())
    except (OSError, ValueError) as e:
        logger.debug("Timetable load failed", exc_info=True)
        console.print(build_error_panel(f"Could not load timetable: {e}"))
        sys.exit(1)

    missing = find_missing_target(engine, config)
    if missing is not None:
        console.print(missing)
        sys.exit(1)

    if config.once:
        console.print(build_view(engine, config, clock()))
        return

    feed = TimetableFeed(engine, interval=config.refresh_interval, clock=clock)

    if config.compact_mode:
        def reprint(_update):
            console.clear()
            console.print(build_view(engine, config, clock()))

        subscribe_view(feed, engine, config, reprint)
        try:
            with feed:
                while True:
                    sleep(config.refresh_interval)
        except KeyboardInterrupt:
            pass
        return

    try:
        with Live(
            build_view(engine, config, clock()),
            console=console,
            refresh_per_second=1,
            screen=True
        ) as live:
            def redraw(_update):
                live.update(build_view(engine, config, clock()))

            subscribe_view(feed, engine, config, redraw)
            with feed:
                while True:
                    sleep(config.refresh_interval)
    except KeyboardInterrupt:
        console.print("\n[dim]Tracking stopped.[/]")
        sys.exit(0)


if __name__ == "__main__":
    main()
