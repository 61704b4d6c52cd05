"""Configuration constants and dataclass for wsr-timetable."""

from dataclasses import dataclass

# Refresh
REFRESH_INTERVAL = 30  # seconds

# Query limits
DEFAULT_BOARD_LIMIT = 10
DEFAULT_JOURNEY_LIMIT = 5
UPCOMING_WINDOW = 30  # minutes ahead for "departing soon"

# Departure board day rollover: from 20:00 until 10:00 the board shows the
# next operating morning instead of the real time.
NEXT_DAY_FROM_HOUR = 20
FIRST_SERVICE_HOUR = 10
NEXT_DAY_SENTINEL = "09:00"

# Demo trip starts this many minutes before "now"
DEMO_TRIP_OFFSET = 30


@dataclass
class Config:
    """Runtime configuration built from CLI arguments."""
    command: str = "live"
    station_code: str | None = None
    trip_id: str | None = None
    from_code: str | None = None
    to_code: str | None = None
    depart_after: str | None = None  # "HH:MM"; None means the query time
    query_time: str | None = None  # fixed "HH:MM"; None follows the wall clock
    once: bool = False
    compact_mode: bool = False
    show_all: bool = False
    refresh_interval: int = REFRESH_INTERVAL
    board_limit: int = DEFAULT_BOARD_LIMIT
    journey_limit: int = DEFAULT_JOURNEY_LIMIT
    timetable_path: str | None = None
    demo_train: bool = False
    log_level: str = "WARNING"
