"""Bundled West Somerset Railway timetable.

Stop entries are (station, arrival, departure, platform).
"""

from datetime import datetime, timedelta

from .config import DEMO_TRIP_OFFSET
from .models import _now
from .timetable import Timetable, load_timetable

OPERATOR = "West Somerset Railway"

STATIONS = [
    {
        "code": "BL", "name": "Bishops Lydeard",
        "lat": 51.05526555357071, "lng": -3.1939831447400424, "milepost": 0.0,
        "facilities": ["Parking", "Toilets", "Cafe", "Shop", "Museum"],
        "platforms": ["1", "2"],
    },
    {
        "code": "CH", "name": "Crowcombe Heathfield",
        "lat": 51.102683806851786, "lng": -3.2338928074524973, "milepost": 3.25,
        "facilities": [], "platforms": ["1"],
    },
    {
        "code": "STO", "name": "Stogumber",
        "lat": 51.12791469181247, "lng": -3.2733470229230224, "milepost": 6.0,
        "facilities": ["Parking"], "platforms": ["1"],
    },
    {
        "code": "WIL", "name": "Williton",
        "lat": 51.166215218812056, "lng": -3.309489866648678, "milepost": 9.25,
        "facilities": ["Parking", "Toilets", "Cafe"], "platforms": ["1", "2"],
    },
    {
        "code": "DON", "name": "Doniford Halt",
        "lat": 51.17841737732154, "lng": -3.3113258133497485, "milepost": 11.75,
        "facilities": [], "platforms": ["1"], "is_request_stop": True,
    },
    {
        "code": "WAT", "name": "Watchet",
        "lat": 51.18083509803016, "lng": -3.329631778829393, "milepost": 13.25,
        "facilities": ["Parking", "Toilets"], "platforms": ["1"],
    },
    {
        "code": "WAS", "name": "Washford",
        "lat": 51.16169572799292, "lng": -3.368545896756289, "milepost": 15.5,
        "facilities": ["Parking", "Toilets", "Museum"], "platforms": ["1"],
    },
    {
        "code": "BA", "name": "Blue Anchor",
        "lat": 51.18177271081976, "lng": -3.4012355263416287, "milepost": 17.5,
        "facilities": ["Parking", "Toilets", "Cafe"], "platforms": ["1", "2"],
    },
    {
        "code": "DUN", "name": "Dunster",
        "lat": 51.1931315884899, "lng": -3.4385530693148945, "milepost": 20.25,
        "facilities": ["Parking", "Toilets"], "platforms": ["1"],
    },
    {
        "code": "MIN", "name": "Minehead",
        "lat": 51.206815, "lng": -3.4711559, "milepost": 22.75,
        "facilities": ["Parking", "Toilets", "Cafe", "Shop", "Museum"],
        "platforms": ["1", "2"],
    },
]


def _trip(trip_id, service_id, service_class, stops, notes=None):
    return {
        "id": trip_id,
        "service_id": service_id,
        "service_class": service_class,
        "origin": stops[0][0],
        "destination": stops[-1][0],
        "operator": OPERATOR,
        "notes": notes,
        "stops": stops,
    }


TRIPS = [
    # Up services, Bishops Lydeard to Minehead
    _trip("1S01", "NB_1015_BL_MIN_STEAM", "Steam", [
        ("BL", None, "10:15", "1"),
        ("CH", "10:28", "10:28", "1"),
        ("STO", "10:38", "10:38", "1"),
        ("WIL", "10:50", "10:50", "1"),
        ("DON", "10:54", "10:54", "1"),
        ("WAT", "11:00", "11:00", "1"),
        ("WAS", "11:08", "11:08", "1"),
        ("BA", "11:18", "11:18", "1"),
        ("DUN", "11:26", "11:26", "1"),
        ("MIN", "11:35", None, "1"),
    ]),
    _trip("2D02", "NB_1225_BL_MIN_SD", "Diesel", [
        ("BL", None, "12:25", "1"),
        ("CH", "12:38", "12:38", "1"),
        ("STO", "12:48", "12:48", "1"),
        ("WIL", "13:00", "13:00", "1"),
        ("DON", "13:12", "13:12", "1"),
        ("WAT", "13:18", "13:18", "1"),
        ("WAS", "13:26", "13:26", "1"),
        ("BA", "13:35", "13:35", "1"),
        ("DUN", "13:43", "13:43", "1"),
        ("MIN", "13:50", None, "1"),
    ], notes="Steam or Diesel service"),
    _trip("3S03", "NB_1425_BL_MIN_STEAM", "Steam", [
        ("BL", None, "14:25", "2"),
        ("CH", "14:38", "14:38", "1"),
        ("STO", "14:48", "14:48", "1"),
        ("WIL", "14:58", "14:58", "2"),
        ("DON", "15:12", "15:12", "1"),
        ("WAT", "15:18", "15:18", "1"),
        ("WAS", "15:26", "15:26", "2"),
        ("BA", "15:35", "15:35", "1"),
        ("DUN", "15:43", "15:43", "1"),
        ("MIN", "15:50", None, "1"),
    ]),
    _trip("4D04", "NB_1640_BL_MIN_SD", "Diesel", [
        ("BL", None, "16:40", "1"),
        ("CH", "16:53", "16:53", "1"),
        ("STO", "17:03", "17:03", "1"),
        ("WIL", "17:23", "17:23", "1"),
        ("DON", "17:27", "17:27", "1"),
        ("WAT", "17:33", "17:33", "1"),
        ("WAS", "17:41", "17:41", "1"),
        ("BA", "17:50", "17:50", "1"),
        ("DUN", "17:57", "17:57", "1"),
        ("MIN", "18:05", None, "1"),
    ], notes="Steam or Diesel service"),
    # Down services, Minehead to Bishops Lydeard
    _trip("1D05", "SB_1000_MIN_BL_SD", "Diesel", [
        ("MIN", None, "10:00", "1"),
        ("DUN", "10:08", "10:08", "1"),
        ("BA", "10:17", "10:17", "2"),
        ("WAS", "10:25", "10:25", "1"),
        ("WAT", "10:35", "10:35", "1"),
        ("DON", "10:39", "10:39", "1"),
        ("WIL", "10:43", "10:43", "1"),
        ("STO", "11:03", "11:03", "1"),
        ("CH", "11:12", "11:12", "1"),
        ("BL", "11:25", None, "1"),
    ], notes="Steam or Diesel service"),
    _trip("2S06", "SB_1220_MIN_BL_STEAM", "Steam", [
        ("MIN", None, "12:20", "2"),
        ("DUN", "12:28", "12:28", "1"),
        ("BA", "12:37", "12:37", "1"),
        ("WAS", "12:45", "12:45", "2"),
        ("WAT", "12:55", "12:55", "1"),
        ("DON", "12:59", "12:59", "1"),
        ("WIL", "13:03", "13:03", "2"),
        ("STO", "13:16", "13:16", "1"),
        ("CH", "13:25", "13:25", "1"),
        ("BL", "13:37", None, "2"),
    ]),
    _trip("3D07", "SB_1420_MIN_BL_SD", "Diesel", [
        ("MIN", None, "14:20", "1"),
        ("DUN", "14:28", "14:28", "1"),
        ("BA", "14:37", "14:37", "2"),
        ("WAS", "14:45", "14:45", "1"),
        ("WAT", "14:55", "14:55", "1"),
        ("DON", "14:59", "14:59", "1"),
        ("WIL", "15:03", "15:03", "1"),
        ("STO", "15:16", "15:16", "1"),
        ("CH", "15:25", "15:25", "1"),
        ("BL", "15:37", None, "1"),
    ], notes="Steam or Diesel service"),
    _trip("4S08", "SB_1635_MIN_BL_STEAM", "Steam", [
        ("MIN", None, "16:35", "2"),
        ("DUN", "16:43", "16:43", "1"),
        ("BA", "16:52", "16:52", "1"),
        ("WAS", "17:00", "17:00", "2"),
        ("WAT", "17:10", "17:10", "1"),
        ("DON", "17:14", "17:14", "1"),
        ("WIL", "17:18", "17:18", "2"),
        ("STO", "17:31", "17:31", "1"),
        ("CH", "17:40", "17:40", "1"),
        ("BL", "17:52", None, "2"),
    ]),
    _trip("2C10", "SB_1635_MIN_BL", "Diesel", [
        ("MIN", None, "16:35", "1"),
        ("DUN", "16:43", "16:43", "1"),
        ("BA", "16:52", "16:52", "2"),
        ("WAS", "17:00", "17:00", "1"),
        ("WAT", "17:10", "17:10", "1"),
        ("DON", "17:14", "17:14", "1"),
        ("WIL", "17:18", "17:18", "1"),
        ("STO", "17:31", "17:31", "1"),
        ("CH", "17:40", "17:40", "1"),
        ("BL", "17:52", None, "1"),
    ]),
]

ALERTS = [
    {
        "id": "alert_001",
        "severity": "info",
        "title": "Steam Service Today",
        "message": "Heritage steam locomotive running on the 14:25 service from Bishops Lydeard",
        "affected_trips": ["3S03"],
    },
    {
        "id": "alert_002",
        "severity": "warning",
        "title": "Request Stop Reminder",
        "message": "Doniford Halt is a request stop. Please inform the guard if you wish to alight.",
        "affected_trips": [],
    },
]

# Minutes after departure for each call of the demo trip (Minehead to Bishops Lydeard)
_DEMO_CALLS = [
    ("MIN", None, 0),
    ("DUN", 8, 9),
    ("BA", 17, 18),
    ("WAS", 25, 26),
    ("WAT", 35, 36),
    ("DON", 39, 40),
    ("WIL", 43, 44),
    ("STO", 53, 54),
    ("CH", 62, 63),
    ("BL", 75, None),
]


def make_demo_trip(now: datetime | None = None, offset: int = DEMO_TRIP_OFFSET) -> dict | None:
    """
    Build a demo trip record that departed `offset` minutes before `now`.

    Every call has a one-minute dwell so the tracker shows "at station" as
    well as "between stations". Returns None if the run would cross midnight.
    """
    now = now or _now()
    start = now.replace(second=0, microsecond=0) - timedelta(minutes=offset)
    end = start + timedelta(minutes=_DEMO_CALLS[-1][1])
    if start.date() != now.date() or end.date() != now.date():
        return None

    def clock(minutes):
        if minutes is None:
            return None
        return (start + timedelta(minutes=minutes)).strftime("%H:%M")

    record = _trip(
        "TEST01", "TEST_TRAIN_JOURNEY", "Diesel",
        [(code, clock(arr), clock(dep), "1") for code, arr, dep in _DEMO_CALLS],
        notes="Test train for demonstration",
    )
    return record


def load_default_timetable(demo_train: bool = False, now: datetime | None = None) -> Timetable:
    """Load the bundled timetable, optionally with the demo trip."""
    trips = list(TRIPS)
    if demo_train:
        demo = make_demo_trip(now)
        if demo:
            trips.insert(0, demo)
    return load_timetable(STATIONS, trips, ALERTS)
