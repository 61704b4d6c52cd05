"""Static timetable loading and validation.

Stations, trips and alerts arrive as plain records (dicts, or the JSON
equivalent) and are turned into model objects once at startup. Trips that
break the schedule invariants are rejected here so the engine only ever sees
well-formed data.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .models import (
    ServiceAlert, ServiceClass, Station, Stop, Trip, TripState, TripStatus,
    parse_clock,
)

logger = logging.getLogger(__name__)

_SERVICE_CLASS_ALIASES = {
    "steam": ServiceClass.STEAM,
    "diesel": ServiceClass.DIESEL,
    "dmu": ServiceClass.MULTIPLE_UNIT,
    "multipleunit": ServiceClass.MULTIPLE_UNIT,
    "multiple_unit": ServiceClass.MULTIPLE_UNIT,
}


class MalformedScheduleError(ValueError):
    """A trip record violates the timetable invariants."""

    def __init__(self, trip_id: str, reason: str):
        super().__init__(f"Trip {trip_id}: {reason}")
        self.trip_id = trip_id
        self.reason = reason


class Timetable:
    """Loaded reference data: stations in line order, trips and alerts."""

    def __init__(
        self,
        stations: Iterable[Station],
        trips: Iterable[Trip] = (),
        alerts: Iterable[ServiceAlert] = (),
    ):
        ordered = sorted(stations, key=lambda s: s.milepost)
        self.stations: dict[str, Station] = {s.code: s for s in ordered}
        self.line_order: list[str] = [s.code for s in ordered]
        self.trips: dict[str, Trip] = {}
        for trip in trips:
            self.trips[trip.trip_id] = trip
        self.alerts: list[ServiceAlert] = list(alerts)

    def station_index(self, code: str | None) -> int | None:
        """Position of a station in canonical (ascending milepost) order."""
        if not code:
            return None
        try:
            return self.line_order.index(code.upper())
        except ValueError:
            return None

    def station_name(self, code: str) -> str:
        station = self.stations.get(code.upper())
        return station.name if station else code


def parse_service_class(value: str | ServiceClass) -> ServiceClass:
    if isinstance(value, ServiceClass):
        return value
    try:
        return _SERVICE_CLASS_ALIASES[str(value).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown service class: {value!r}") from None


def build_station(record: dict[str, Any]) -> Station:
    """
    Build a Station from a record.

    Raises ValueError naming the station and field when a required field is
    missing or not usable.
    """
    code = record.get("code")
    if not isinstance(code, str) or not code:
        raise ValueError(f"Station record has no code: {record!r}")
    code = code.upper()

    for field in ("name", "lat", "lng", "milepost"):
        if field not in record:
            raise ValueError(f"Station {code}: missing field '{field}'")

    try:
        latitude = float(record["lat"])
        longitude = float(record["lng"])
        milepost = float(record["milepost"])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Station {code}: bad coordinate or milepost ({e})") from None

    return Station(
        code=code,
        name=record["name"],
        latitude=latitude,
        longitude=longitude,
        milepost=milepost,
        is_request_stop=bool(record.get("is_request_stop", False)),
        has_platform=bool(record.get("has_platform", True)),
        facilities=tuple(record.get("facilities", ())),
        platforms=tuple(record.get("platforms", ())),
    )


def _stop_fields(entry) -> tuple[str, str | None, str | None, str | None, bool]:
    """
    Unpack a stop entry.

    Either a sequence (code, arrival, departure[, platform]) or a mapping with
    station/arrival/departure/platform/skipped keys.
    """
    if isinstance(entry, dict):
        return (
            entry["station"],
            entry.get("arrival"),
            entry.get("departure"),
            entry.get("platform"),
            bool(entry.get("skipped", False)),
        )
    code, arrival, departure, *rest = entry
    platform = rest[0] if rest else None
    return code, arrival, departure, platform, False


def build_trip(record: dict[str, Any], stations: dict[str, Station]) -> Trip:
    """
    Build a Trip from a record, copying request-stop flags from the stations.

    Raises MalformedScheduleError if the record is missing a field, names an
    unknown station or has an unparseable value; invariant checks are left to
    validate_trip.
    """
    trip_id = record.get("id", "<unnamed>")
    if "id" not in record:
        raise MalformedScheduleError(trip_id, "missing field 'id'")

    try:
        return _build_trip(trip_id, record, stations)
    except MalformedScheduleError:
        raise
    except KeyError as e:
        raise MalformedScheduleError(trip_id, f"missing field {e}") from None
    except (AttributeError, TypeError, ValueError) as e:
        raise MalformedScheduleError(trip_id, str(e)) from None


def _build_trip(trip_id: str, record: dict[str, Any], stations: dict[str, Station]) -> Trip:
    stops = []
    for entry in record.get("stops", []):
        code, arrival, departure, platform, skipped = _stop_fields(entry)
        code = code.upper()
        station = stations.get(code)
        if station is None:
            raise MalformedScheduleError(trip_id, f"unknown station {code}")
        for value in (arrival, departure):
            if value is not None:
                try:
                    parse_clock(value)
                except ValueError as e:
                    raise MalformedScheduleError(trip_id, str(e)) from None
        stops.append(Stop(
            station_code=code,
            station_name=station.name,
            scheduled_arrival=arrival,
            scheduled_departure=departure,
            platform=str(platform) if platform is not None else None,
            is_request_stop=station.is_request_stop,
            skipped=skipped,
        ))

    status_record = record.get("status") or {}
    status = TripStatus(
        state=TripState(status_record.get("state", TripState.SCHEDULED.value)),
        delay_minutes=int(status_record.get("delay_minutes", 0)),
        message=status_record.get("message"),
    )

    service_class = parse_service_class(record.get("service_class", "Diesel"))

    return Trip(
        trip_id=trip_id,
        service_id=record.get("service_id", trip_id),
        service_class=service_class,
        origin=record.get("origin", stops[0].station_code if stops else "").upper(),
        destination=record.get("destination", stops[-1].station_code if stops else "").upper(),
        stops=stops,
        status=status,
        notes=record.get("notes"),
        operator=record.get("operator"),
    )


def validate_trip(trip: Trip) -> None:
    """
    Check the schedule invariants of a trip.

    - at least two stops
    - origin has no arrival, destination has no departure, the rest have both
    - origin/destination codes match the first/last stop
    - clock-times never go backwards along the stop order
    """
    stops = trip.stops
    if len(stops) < 2:
        raise MalformedScheduleError(trip.trip_id, "needs at least two stops")

    first, last = stops[0], stops[-1]
    if first.scheduled_arrival is not None or first.scheduled_departure is None:
        raise MalformedScheduleError(trip.trip_id, "first stop must have only a departure")
    if last.scheduled_departure is not None or last.scheduled_arrival is None:
        raise MalformedScheduleError(trip.trip_id, "last stop must have only an arrival")
    for stop in stops[1:-1]:
        if stop.scheduled_arrival is None or stop.scheduled_departure is None:
            raise MalformedScheduleError(
                trip.trip_id, f"intermediate stop {stop.station_code} needs arrival and departure"
            )

    if trip.origin != first.station_code or trip.destination != last.station_code:
        raise MalformedScheduleError(trip.trip_id, "origin/destination don't match the stop list")

    previous = None
    for stop in stops:
        for value in (stop.scheduled_arrival, stop.scheduled_departure):
            if value is None:
                continue
            minutes = parse_clock(value)
            if previous is not None and minutes < previous:
                raise MalformedScheduleError(
                    trip.trip_id, f"time {value} at {stop.station_code} goes backwards"
                )
            previous = minutes


def build_alert(record: dict[str, Any]) -> ServiceAlert:
    if "id" not in record:
        raise ValueError(f"Alert record has no id: {record!r}")
    return ServiceAlert(
        alert_id=record["id"],
        severity=record.get("severity", "info"),
        title=record.get("title", ""),
        message=record.get("message", ""),
        affected_trips=list(record.get("affected_trips", [])),
    )


def load_timetable(
    station_records: Iterable[dict[str, Any]],
    trip_records: Iterable[dict[str, Any]],
    alert_records: Iterable[dict[str, Any]] = (),
    strict: bool = True,
) -> Timetable:
    """
    Build and validate a Timetable from records.

    With strict=True the first malformed trip raises MalformedScheduleError.
    With strict=False malformed trips are logged and left out.
    """
    stations = [build_station(r) for r in station_records]
    by_code = {s.code: s for s in stations}

    trips: list[Trip] = []
    seen: set[str] = set()
    for record in trip_records:
        try:
            trip = build_trip(record, by_code)
            validate_trip(trip)
            if trip.trip_id in seen:
                raise MalformedScheduleError(trip.trip_id, "duplicate trip id")
        except MalformedScheduleError as e:
            if strict:
                raise
            logger.warning(f"Skipping malformed trip: {e}")
            continue
        seen.add(trip.trip_id)
        trips.append(trip)

    alerts = [build_alert(r) for r in alert_records]
    timetable = Timetable(stations, trips, alerts)
    logger.info(
        f"Loaded {len(timetable.stations)} stations, {len(timetable.trips)} trips "
        f"and {len(timetable.alerts)} alerts"
    )
    return timetable


def load_timetable_file(path: str | Path, strict: bool = True) -> Timetable:
    """Load a timetable from a JSON file with stations/trips/alerts arrays."""
    logger.info(f"Loading timetable from {path}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object with stations/trips/alerts arrays")
    return load_timetable(
        data.get("stations", []),
        data.get("trips", []),
        data.get("alerts", []),
        strict=strict,
    )
