"""Timetable data model and pure clock-time helpers."""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum


def _now():
    """Current local time. Extracted for test patching."""
    return datetime.now()


class ServiceClass(str, Enum):
    STEAM = "Steam"
    DIESEL = "Diesel"
    MULTIPLE_UNIT = "MultipleUnit"


class TripState(str, Enum):
    SCHEDULED = "Scheduled"
    RUNNING = "Running"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class StopStatus(str, Enum):
    SCHEDULED = "Scheduled"
    ARRIVED = "Arrived"
    DEPARTED = "Departed"
    SKIPPED = "Skipped"
    CANCELLED = "Cancelled"


class Direction(str, Enum):
    UP = "Up"      # increasing milepost
    DOWN = "Down"  # decreasing milepost


# =============================================================================
# Clock-time helpers
# =============================================================================


def parse_clock(value: str | datetime | time) -> int:
    """
    Convert a clock-time to minutes since midnight.

    Accepts "HH:MM" (or "HH:MM:SS", seconds dropped), a datetime or a time.
    Raises ValueError for anything that is not a valid same-day clock-time.
    """
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise ValueError(f"Not a clock-time: {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Not a clock-time: {value!r}")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Not a clock-time: {value!r}") from None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Clock-time out of range: {value!r}")
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM"."""
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_clock(value: str | datetime | time) -> str:
    """Normalize any accepted clock-time value to "HH:MM"."""
    return format_clock(parse_clock(value))


def minutes_between(start: str, end: str) -> int:
    """Same-day difference in minutes, no midnight rollover."""
    return parse_clock(end) - parse_clock(start)


def format_duration(minutes: int | None) -> str:
    """Format a duration as "1h 20m" or "45m"."""
    if minutes is None:
        return "—"
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_delay_status(delay_minutes: int | None, cancelled: bool = False) -> str:
    """Board status string for a delay offset."""
    if cancelled:
        return "Cancelled"
    if not delay_minutes:
        return "On Time"
    if delay_minutes > 0:
        return f"Exp {delay_minutes} min late"
    return "Running early"


def get_stop_style(tag: "StopStatus") -> tuple[str, str]:
    """Get display style and icon for a stop lifecycle tag."""
    if tag == StopStatus.DEPARTED:
        return "green", "✓"
    elif tag == StopStatus.ARRIVED:
        return "cyan bold", "●"
    elif tag in (StopStatus.SKIPPED, StopStatus.CANCELLED):
        return "red dim", "✗"
    else:
        return "dim", "○"


# =============================================================================
# Reference data
# =============================================================================


@dataclass(frozen=True)
class Station:
    """A station on the line. Loaded once, never mutated."""
    code: str
    name: str
    latitude: float
    longitude: float
    milepost: float  # distance from the milepost-0 end of the line
    is_request_stop: bool = False
    has_platform: bool = True
    facilities: tuple[str, ...] = ()
    platforms: tuple[str, ...] = ()


@dataclass
class Stop:
    """One station visit within a trip."""
    station_code: str
    station_name: str
    scheduled_arrival: str | None = None    # "HH:MM", None for the origin
    scheduled_departure: str | None = None  # "HH:MM", None for the destination
    platform: str | None = None
    is_request_stop: bool = False
    skipped: bool = False
    status: StopStatus = StopStatus.SCHEDULED  # derived, recomputed per query

    @property
    def dwell_minutes(self) -> int | None:
        if self.scheduled_arrival is None or self.scheduled_departure is None:
            return None
        return minutes_between(self.scheduled_arrival, self.scheduled_departure)

    @property
    def has_dwell(self) -> bool:
        """Whether the train stands here long enough to be reported "at" it."""
        dwell = self.dwell_minutes
        return dwell is not None and dwell > 0 and not self.skipped


@dataclass
class TripStatus:
    state: TripState = TripState.SCHEDULED
    delay_minutes: int = 0  # + late, - early
    message: str | None = None
    last_updated: datetime | None = None


@dataclass
class Trip:
    """A scheduled end-to-end train run."""
    trip_id: str
    service_id: str
    service_class: ServiceClass
    origin: str
    destination: str
    stops: list[Stop]
    status: TripStatus = field(default_factory=TripStatus)
    notes: str | None = None
    operator: str | None = None

    @property
    def first_departure(self) -> str | None:
        return self.stops[0].scheduled_departure if self.stops else None

    @property
    def last_arrival(self) -> str | None:
        return self.stops[-1].scheduled_arrival if self.stops else None

    @property
    def is_cancelled(self) -> bool:
        return self.status.state == TripState.CANCELLED

    def find_stop(self, station_code: str) -> tuple[int, Stop] | None:
        """First stop at a station, with its index. None if the trip doesn't call there."""
        code = station_code.upper()
        for i, stop in enumerate(self.stops):
            if stop.station_code == code:
                return i, stop
        return None


@dataclass
class ServiceAlert:
    alert_id: str
    severity: str  # "info" | "warning" | "severe"
    title: str
    message: str
    affected_trips: list[str] = field(default_factory=list)  # empty = line-wide


# =============================================================================
# Derived views
# =============================================================================


@dataclass
class TripLocation:
    """Where a trip is at a given clock-time. Exactly one of at/between is set."""
    at: str | None = None
    between: tuple[str, str] | None = None
    last_updated: str | None = None  # the query clock-time this was derived for

    def describe(self, stations: dict[str, Station] | None = None) -> str:
        def name(code):
            if stations and code in stations:
                return stations[code].name
            return code

        if self.at:
            return f"At {name(self.at)}"
        if self.between:
            return f"Between {name(self.between[0])} and {name(self.between[1])}"
        return "—"


@dataclass
class TripSnapshot:
    """Derived lifecycle state of one trip at one query time."""
    trip_id: str
    state: TripState
    location: TripLocation | None
    stop_tags: list[StopStatus]
    delay_minutes: int = 0
    message: str | None = None
    as_of: str | None = None


@dataclass
class Departure:
    trip_id: str
    service_id: str
    time: str
    destination: str
    platform: str | None
    service_class: ServiceClass
    delay_minutes: int
    status: str
    is_cancelled: bool = False


@dataclass
class Arrival:
    trip_id: str
    service_id: str
    time: str
    origin: str
    platform: str | None
    service_class: ServiceClass
    delay_minutes: int
    status: str
    is_cancelled: bool = False


@dataclass
class DepartureBoard:
    station_code: str
    station_name: str
    effective_time: str
    next_day: bool = False
    departures: list[Departure] = field(default_factory=list)
    arrivals: list[Arrival] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.departures and not self.arrivals


@dataclass
class Journey:
    """A direct, single-leg journey between two stations."""
    trip_id: str
    service_id: str
    service_class: ServiceClass
    from_code: str
    to_code: str
    departure: str
    arrival: str
    duration_minutes: int
    changes: int = 0
