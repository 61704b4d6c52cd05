"""Timetable-derived train state.

Everything here is a pure function of the static timetable plus a query
clock-time: the engine never looks at the system clock when deriving state,
so the caller (the feed, the CLI, a test) decides what "now" is.
"""

import logging
from datetime import datetime, time

from .config import (
    DEFAULT_BOARD_LIMIT, DEFAULT_JOURNEY_LIMIT, FIRST_SERVICE_HOUR,
    NEXT_DAY_FROM_HOUR, NEXT_DAY_SENTINEL, UPCOMING_WINDOW,
)
from .models import (
    Arrival, Departure, DepartureBoard, Direction, Journey, ServiceAlert,
    Station, StopStatus, Trip, TripLocation, TripSnapshot, TripState,
    _now, format_clock, format_delay_status, parse_clock,
)
from .timetable import Timetable

logger = logging.getLogger(__name__)

ClockValue = str | datetime | time


def _minutes(value: str | None) -> int | None:
    return parse_clock(value) if value is not None else None


def board_effective_time(query_time: ClockValue) -> tuple[str, bool]:
    """
    The clock-time a departure board is generated from.

    Between NEXT_DAY_FROM_HOUR and FIRST_SERVICE_HOUR the board shows the next
    operating morning, so the effective time is the sentinel instead of the
    query time. Returns (effective "HH:MM", is_next_day).
    """
    minutes = parse_clock(query_time)
    hour = minutes // 60
    if hour >= NEXT_DAY_FROM_HOUR or hour < FIRST_SERVICE_HOUR:
        return NEXT_DAY_SENTINEL, True
    return format_clock(minutes), False


class TimetableEngine:
    """
    Derives live trip state, boards, line positions and journeys from a timetable.

    Build one per application and pass it to whatever needs it; the engine
    holds no global state beyond the timetable it was given.
    """

    def __init__(self, timetable: Timetable):
        self.timetable = timetable

    # --- Lookups ---

    def get_trip(self, trip_id: str) -> Trip | None:
        return self.timetable.trips.get(trip_id) or self.timetable.trips.get(trip_id.upper())

    def get_station(self, code: str) -> Station | None:
        return self.timetable.stations.get(code.upper())

    def stations(self) -> list[Station]:
        """Stations in canonical (ascending milepost) order."""
        return [self.timetable.stations[code] for code in self.timetable.line_order]

    def trips(self) -> list[Trip]:
        return list(self.timetable.trips.values())

    def alerts(self) -> list[ServiceAlert]:
        return list(self.timetable.alerts)

    def alerts_for_trip(self, trip_id: str) -> list[ServiceAlert]:
        """Alerts naming this trip, plus line-wide alerts."""
        trip_id = trip_id.upper()
        return [
            alert for alert in self.timetable.alerts
            if not alert.affected_trips or trip_id in alert.affected_trips
        ]

    def direction(self, trip: Trip) -> Direction:
        """UP when the trip runs towards higher mileposts."""
        origin = self.timetable.stations.get(trip.origin)
        dest = self.timetable.stations.get(trip.destination)
        if origin and dest and dest.milepost < origin.milepost:
            return Direction.DOWN
        return Direction.UP

    # --- Trip state ---

    def compute_trip_state(self, trip: Trip, query_time: ClockValue) -> TripSnapshot:
        """
        Derive a trip's lifecycle state, location and per-stop tags.

        Intervals are left-closed, right-open so exactly one applies at any
        instant. A stop whose arrival equals its departure is passed through
        and never reported as "at"; at that exact minute the trip is between
        that stop and the next. At the destination's arrival minute the trip
        is still Running and at the destination.
        """
        as_of = format_clock(parse_clock(query_time))
        t = parse_clock(query_time)
        stops = trip.stops
        tags = [StopStatus.SKIPPED if s.skipped else StopStatus.SCHEDULED for s in stops]

        def snapshot(state, location=None):
            return TripSnapshot(
                trip_id=trip.trip_id,
                state=state,
                location=location,
                stop_tags=tags,
                delay_minutes=trip.status.delay_minutes,
                message=trip.status.message,
                as_of=as_of,
            )

        if trip.is_cancelled:
            tags = [StopStatus.CANCELLED] * len(stops)
            return snapshot(TripState.CANCELLED)

        first_dep = _minutes(trip.first_departure)
        last_arr = _minutes(trip.last_arrival)
        if first_dep is None or last_arr is None:
            # Rejected by the loader; don't guess a repair here
            return snapshot(TripState.SCHEDULED)

        if t < first_dep:
            return snapshot(TripState.SCHEDULED)

        if t > last_arr:
            _mark_departed(tags, len(stops))
            return snapshot(TripState.COMPLETED)

        for i, stop in enumerate(stops):
            arr = _minutes(stop.scheduled_arrival)
            dep = _minutes(stop.scheduled_departure)

            if stop.has_dwell and arr <= t < dep:
                _mark_departed(tags, i)
                tags[i] = StopStatus.ARRIVED
                return snapshot(
                    TripState.RUNNING,
                    TripLocation(at=stop.station_code, last_updated=as_of),
                )

            if i < len(stops) - 1:
                next_stop = stops[i + 1]
                next_arr = _minutes(next_stop.scheduled_arrival)
                # A skipped stop's dwell is spent running through it
                if next_stop.skipped and next_stop.scheduled_departure is not None:
                    next_arr = _minutes(next_stop.scheduled_departure)
                if dep is not None and next_arr is not None and dep <= t < next_arr:
                    _mark_departed(tags, i + 1)
                    return snapshot(
                        TripState.RUNNING,
                        TripLocation(
                            between=(stop.station_code, next_stop.station_code),
                            last_updated=as_of,
                        ),
                    )

        if t == last_arr:
            _mark_departed(tags, len(stops) - 1)
            if not stops[-1].skipped:
                tags[-1] = StopStatus.ARRIVED
            return snapshot(
                TripState.RUNNING,
                TripLocation(at=stops[-1].station_code, last_updated=as_of),
            )

        # Only reachable with a non-monotonic schedule
        logger.debug(f"No location for trip {trip.trip_id} at {as_of}")
        return snapshot(TripState.RUNNING)

    def apply_trip_state(self, trip: Trip, snapshot: TripSnapshot, now: datetime | None = None) -> None:
        """Refresh the cached status and stop tags on a trip from a snapshot."""
        trip.status.state = snapshot.state
        if now is not None:
            trip.status.last_updated = now
        for stop, tag in zip(trip.stops, snapshot.stop_tags):
            stop.status = tag

    def snapshot_all(self, query_time: ClockValue) -> dict[str, TripSnapshot]:
        return {trip.trip_id: self.compute_trip_state(trip, query_time) for trip in self.trips()}

    def active_trips(self, query_time: ClockValue) -> list[Trip]:
        """Trips that are running or still to run."""
        return [
            trip for trip in self.trips()
            if self.compute_trip_state(trip, query_time).state in (TripState.RUNNING, TripState.SCHEDULED)
        ]

    def running_trips(self, query_time: ClockValue) -> list[Trip]:
        return [
            trip for trip in self.trips()
            if self.compute_trip_state(trip, query_time).state == TripState.RUNNING
        ]

    def upcoming_departures(self, query_time: ClockValue, window: int = UPCOMING_WINDOW) -> list[Trip]:
        """Scheduled trips leaving their origin within the next `window` minutes."""
        t = parse_clock(query_time)
        upcoming = []
        for trip in self.trips():
            if self.compute_trip_state(trip, query_time).state != TripState.SCHEDULED:
                continue
            diff = parse_clock(trip.first_departure) - t
            if 0 < diff <= window:
                upcoming.append(trip)
        upcoming.sort(key=lambda trip: parse_clock(trip.first_departure))
        return upcoming

    def minutes_to_next_stop(self, trip: Trip, query_time: ClockValue) -> int | None:
        """Minutes until the next scheduled arrival, None when nothing is left."""
        t = parse_clock(query_time)
        for stop in trip.stops:
            arr = _minutes(stop.scheduled_arrival)
            if arr is not None and arr > t:
                return arr - t
        return None

    def next_stop(self, trip: Trip, query_time: ClockValue):
        """The next stop with a scheduled arrival after the query time."""
        t = parse_clock(query_time)
        for stop in trip.stops:
            arr = _minutes(stop.scheduled_arrival)
            if arr is not None and arr > t:
                return stop
        return None

    def minutes_until_departure(self, trip: Trip, query_time: ClockValue) -> int:
        return parse_clock(trip.first_departure) - parse_clock(query_time)

    def segment_progress(self, trip: Trip, query_time: ClockValue) -> tuple[str, str, float, int] | None:
        """
        How far the trip is through its current inter-station segment.

        Returns (from_code, to_code, fraction, minutes_remaining), or None
        unless the trip is between two stations.
        """
        snapshot = self.compute_trip_state(trip, query_time)
        location = snapshot.location
        if not location or not location.between:
            return None

        from_code, to_code = location.between
        from_found = trip.find_stop(from_code)
        to_found = trip.find_stop(to_code)
        if not from_found or not to_found:
            return None

        to_stop = to_found[1]
        dep = _minutes(from_found[1].scheduled_departure)
        arr = _minutes(to_stop.scheduled_arrival)
        if to_stop.skipped and to_stop.scheduled_departure is not None:
            arr = _minutes(to_stop.scheduled_departure)
        t = parse_clock(query_time)
        total = arr - dep
        if total <= 0:
            return from_code, to_code, 1.0, 0

        fraction = max(0.0, min(1.0, (t - dep) / total))
        return from_code, to_code, fraction, max(0, arr - t)

    # --- Position ---

    def compute_line_position(self, trip: Trip, query_time: ClockValue) -> float:
        """
        Percentage along the line, measured from the milepost-0 end.

        At a station: its index over (N - 1). Between two stations: the mean
        of both indices over (N - 1). Without a location the trip sits at its
        origin, or at its destination once completed.
        """
        line_length = len(self.timetable.line_order)
        if line_length < 2:
            return 0.0

        snapshot = self.compute_trip_state(trip, query_time)
        location = snapshot.location
        index_of = self.timetable.station_index

        if location and location.at:
            index = index_of(location.at)
        elif location and location.between:
            a, b = (index_of(code) for code in location.between)
            index = (a + b) / 2 if a is not None and b is not None else None
        elif snapshot.state == TripState.COMPLETED:
            index = index_of(trip.destination)
        else:
            index = index_of(trip.origin)

        if index is None:
            return 0.0
        return max(0.0, min(100.0, index / (line_length - 1) * 100))

    def map_position(self, trip: Trip, query_time: ClockValue) -> tuple[float, float] | None:
        """(lat, lon) of the trip: the station, or the midpoint between two."""
        location = self.compute_trip_state(trip, query_time).location
        if not location:
            return None

        if location.at:
            station = self.timetable.stations.get(location.at)
            return (station.latitude, station.longitude) if station else None

        from_station = self.timetable.stations.get(location.between[0])
        to_station = self.timetable.stations.get(location.between[1])
        if not from_station or not to_station:
            return None
        return (
            (from_station.latitude + to_station.latitude) / 2,
            (from_station.longitude + to_station.longitude) / 2,
        )

    # --- Boards ---

    def derive_departure_board(
        self, station_code: str, query_time: ClockValue, limit: int = DEFAULT_BOARD_LIMIT,
    ) -> DepartureBoard:
        """
        Departures and arrivals at a station from the effective board time on.

        Unknown stations give an empty board.
        """
        code = station_code.upper()
        effective, next_day = board_effective_time(query_time)
        board = DepartureBoard(
            station_code=code,
            station_name=self.timetable.station_name(code),
            effective_time=effective,
            next_day=next_day,
        )
        if code not in self.timetable.stations:
            logger.debug(f"Departure board requested for unknown station {code}")
            return board

        since = parse_clock(effective)
        for trip in self.trips():
            found = trip.find_stop(code)
            if not found:
                continue
            _, stop = found

            cancelled = trip.is_cancelled or stop.skipped
            delay = trip.status.delay_minutes
            status = format_delay_status(delay, cancelled)

            dep = _minutes(stop.scheduled_departure)
            if dep is not None and dep >= since:
                board.departures.append(Departure(
                    trip_id=trip.trip_id,
                    service_id=trip.service_id,
                    time=format_clock(dep),
                    destination=self.timetable.station_name(trip.destination),
                    platform=stop.platform,
                    service_class=trip.service_class,
                    delay_minutes=delay,
                    status=status,
                    is_cancelled=cancelled,
                ))

            arr = _minutes(stop.scheduled_arrival)
            if arr is not None and arr >= since:
                board.arrivals.append(Arrival(
                    trip_id=trip.trip_id,
                    service_id=trip.service_id,
                    time=format_clock(arr),
                    origin=self.timetable.station_name(trip.origin),
                    platform=stop.platform,
                    service_class=trip.service_class,
                    delay_minutes=delay,
                    status=status,
                    is_cancelled=cancelled,
                ))

        limit = max(0, limit)
        board.departures.sort(key=lambda d: d.time)
        board.arrivals.sort(key=lambda a: a.time)
        board.departures = board.departures[:limit]
        board.arrivals = board.arrivals[:limit]
        return board

    # --- Journeys ---

    def find_direct_journeys(
        self,
        from_code: str,
        to_code: str,
        depart_after: ClockValue,
        limit: int = DEFAULT_JOURNEY_LIMIT,
    ) -> list[Journey]:
        """Trips calling at both stations in that order, leaving at or after `depart_after`."""
        from_code = from_code.upper()
        to_code = to_code.upper()
        after = parse_clock(depart_after)
        journeys = []

        for trip in self.trips():
            if trip.is_cancelled:
                continue
            from_found = trip.find_stop(from_code)
            to_found = trip.find_stop(to_code)
            if not from_found or not to_found:
                continue

            from_idx, from_stop = from_found
            to_idx, to_stop = to_found
            dep = _minutes(from_stop.scheduled_departure)
            arr = _minutes(to_stop.scheduled_arrival)
            if from_stop.skipped or to_stop.skipped:
                continue
            if from_idx >= to_idx or dep is None or arr is None or dep < after:
                continue

            journeys.append(Journey(
                trip_id=trip.trip_id,
                service_id=trip.service_id,
                service_class=trip.service_class,
                from_code=from_code,
                to_code=to_code,
                departure=format_clock(dep),
                arrival=format_clock(arr),
                duration_minutes=arr - dep,
            ))

        journeys.sort(key=lambda j: j.departure)
        return journeys[:max(0, limit)]

    # --- Status updates ---

    def report_delay(
        self, trip_id: str, minutes: int, message: str | None = None, now: datetime | None = None,
    ) -> bool:
        """Record a delay (+ late, - early) on a trip. False if the trip is unknown."""
        trip = self.get_trip(trip_id)
        if trip is None:
            return False

        if message is None:
            if minutes > 0:
                message = f"Running {minutes} minutes late"
            elif minutes < 0:
                message = f"Running {-minutes} minutes early"
        trip.status.delay_minutes = minutes
        trip.status.message = message
        trip.status.last_updated = now or _now()
        logger.info(f"Trip {trip.trip_id} delay set to {minutes:+d} min")
        return True

    def cancel_trip(self, trip_id: str, message: str | None = None, now: datetime | None = None) -> bool:
        """Mark a trip cancelled. False if the trip is unknown."""
        trip = self.get_trip(trip_id)
        if trip is None:
            return False

        trip.status.state = TripState.CANCELLED
        trip.status.message = message or "Cancelled"
        trip.status.last_updated = now or _now()
        for stop in trip.stops:
            stop.status = StopStatus.CANCELLED
        logger.info(f"Trip {trip.trip_id} cancelled")
        return True


def _mark_departed(tags: list[StopStatus], upto: int) -> None:
    """Tag stops before index `upto` as departed, leaving skipped stops alone."""
    for i in range(upto):
        if tags[i] != StopStatus.SKIPPED:
            tags[i] = StopStatus.DEPARTED
