"""Periodic recomputation and publish/subscribe fan-out.

Each tick is a full, independent pass: every trip's state and every
station's board is derived again from the timetable and the tick's clock
reading, then handed to whoever subscribed to that trip or station.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable

from .config import REFRESH_INTERVAL
from .engine import TimetableEngine
from .models import _now

logger = logging.getLogger(__name__)

TRIP = "trip"
STATION = "station"


class Subscription:
    """Handle returned by subscribe_*; pass it to unsubscribe or call cancel()."""

    def __init__(self, feed: "TimetableFeed", kind: str, key: str, callback: Callable[[Any], None]):
        self.kind = kind
        self.key = key
        self.callback = callback
        self.active = True
        self._feed = feed

    def cancel(self) -> None:
        self._feed.unsubscribe(self)

    def __repr__(self):
        state = "active" if self.active else "cancelled"
        return f"<Subscription {self.kind}:{self.key} {state}>"


class TimetableFeed:
    """
    Re-derives trip state and departure boards on a timer and publishes them.

    Trip subscribers receive a TripSnapshot, station subscribers a
    DepartureBoard, once per tick. Subscribing and unsubscribing are safe at
    any time, including from inside a callback: delivery works on a copy of
    the listener list taken when the notification starts.
    """

    def __init__(
        self,
        engine: TimetableEngine,
        interval: float = REFRESH_INTERVAL,
        clock: Callable[[], datetime] | None = None,
    ):
        self.engine = engine
        self.interval = interval
        self._clock = clock or _now
        self._listeners: dict[tuple[str, str], list[Subscription]] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_tick: datetime | None = None
        self.tick_count = 0

    # --- Subscriptions ---

    def subscribe_trip(self, trip_id: str, callback: Callable[[Any], None]) -> Subscription:
        return self._subscribe(TRIP, trip_id.upper(), callback)

    def subscribe_station(self, station_code: str, callback: Callable[[Any], None]) -> Subscription:
        return self._subscribe(STATION, station_code.upper(), callback)

    def _subscribe(self, kind: str, key: str, callback) -> Subscription:
        subscription = Subscription(self, kind, key, callback)
        with self._lock:
            current = self._listeners.get((kind, key), [])
            self._listeners[(kind, key)] = current + [subscription]
        logger.debug(f"Subscribed to {kind}:{key}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. Unsubscribing twice is a no-op."""
        with self._lock:
            key = (subscription.kind, subscription.key)
            current = self._listeners.get(key, [])
            remaining = [s for s in current if s is not subscription]
            if remaining:
                self._listeners[key] = remaining
            else:
                self._listeners.pop(key, None)
        subscription.active = False

    def subscriber_count(self) -> int:
        with self._lock:
            return sum(len(subs) for subs in self._listeners.values())

    # --- Recomputation ---

    def tick(self, query_time=None) -> int:
        """
        Run one full recomputation pass and notify subscribers.

        Uses the feed's clock unless a query time is given. Returns the number
        of callbacks invoked.
        """
        now = self._clock()
        query = query_time if query_time is not None else now
        engine = self.engine

        snapshots = {}
        for trip in engine.trips():
            snapshot = engine.compute_trip_state(trip, query)
            engine.apply_trip_state(trip, snapshot, now)
            snapshots[trip.trip_id.upper()] = snapshot

        boards = {
            code: engine.derive_departure_board(code, query)
            for code in engine.timetable.line_order
        }

        delivered = 0
        for trip_id, snapshot in snapshots.items():
            delivered += self._publish(TRIP, trip_id, snapshot)
        for code, board in boards.items():
            delivered += self._publish(STATION, code, board)

        self.last_tick = now
        self.tick_count += 1
        logger.debug(f"Tick {self.tick_count}: {len(snapshots)} trips, {delivered} notifications")
        return delivered

    def _publish(self, kind: str, key: str, payload) -> int:
        with self._lock:
            listeners = list(self._listeners.get((kind, key), ()))

        for subscription in listeners:
            try:
                subscription.callback(payload)
            except Exception:
                logger.exception(f"Subscriber for {kind}:{key} failed")
        return len(listeners)

    # --- Timer ---

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Tick now, then every `interval` seconds on a background thread."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="timetable-feed", daemon=True)
        self._thread.start()
        logger.info(f"Timetable feed started (every {self.interval}s)")

    def stop(self, timeout: float | None = None) -> None:
        """Stop the timer thread. Safe to call more than once."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Timetable feed stopped")

    def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Timetable refresh failed")
            if self._stop_event.wait(self.interval):
                break

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
