"""Single-line compact display mode."""

from rich.text import Text

from ..engine import TimetableEngine
from ..models import StopStatus, Trip, TripState


def build_compact_display(engine: TimetableEngine, trip: Trip, query_time) -> Text:
    """Build a single-line compact display for the trip status."""
    snapshot = engine.compute_trip_state(trip, query_time)
    delay = trip.status.delay_minutes

    compact = Text()
    compact.append(f"🚂 {trip.trip_id} {trip.origin}→{trip.destination}", style="bold")
    compact.append(" | ")

    if snapshot.state == TripState.CANCELLED:
        compact.append("Cancelled", style="red bold")
        if trip.status.message and trip.status.message != "Cancelled":
            compact.append(f" | {trip.status.message}", style="yellow")
        return compact

    if snapshot.state == TripState.SCHEDULED:
        compact.append(f"Departs {trip.origin} @ {trip.first_departure}", style="yellow")
    elif snapshot.state == TripState.COMPLETED:
        compact.append(f"Arrived {trip.destination} @ {trip.last_arrival}", style="dim")
    else:
        position = engine.segment_progress(trip, query_time)
        if position:
            last_code, next_code, progress_frac, mins_remaining = position
            compact.append(f"{last_code}", style="green")
            compact.append(f"→{int(progress_frac * 100)}%→")
            compact.append(f"{next_code}", style="cyan")
            if mins_remaining > 0:
                compact.append(f" ({mins_remaining}m)")
            else:
                compact.append(" (arriving)")
        elif snapshot.location and snapshot.location.at:
            compact.append(f"At {snapshot.location.at}", style="cyan bold")

        next_stop = engine.next_stop(trip, query_time)
        if next_stop:
            compact.append(f" @ {next_stop.scheduled_arrival}")

    if delay > 0:
        compact.append(f" +{delay}m", style="red")
    elif delay < 0:
        compact.append(f" {delay}m", style="green")

    departed = sum(1 for tag in snapshot.stop_tags if tag == StopStatus.DEPARTED)
    total = len(snapshot.stop_tags)
    progress_pct = (departed / total * 100) if total > 0 else 0
    compact.append(f" | {progress_pct:.0f}%")

    if trip.status.message:
        compact.append(f" | {trip.status.message}", style="yellow")

    compact.append(f" | As of {snapshot.as_of}", style="dim")
    return compact
