"""Header panels for the single-trip and multi-trip views."""

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import REFRESH_INTERVAL
from ..engine import TimetableEngine
from ..models import Direction, Trip, TripState


def _next_stop_info(engine: TimetableEngine, trip: Trip, query_time) -> tuple[str, str]:
    """Find the next stop name and ETA string. Shared by both header variants."""
    if trip.is_cancelled:
        return "—", "—"

    stop = engine.next_stop(trip, query_time)
    if stop is None:
        return "—", "—"

    eta = stop.scheduled_arrival
    delay = trip.status.delay_minutes
    if delay > 0:
        eta += f" [red](+{delay}m)[/]"
    elif delay < 0:
        eta += f" [green]({delay}m)[/]"
    return stop.station_name, eta


def _format_status(message: str | None, state: TripState) -> tuple[str, str]:
    """Determine display status text and style. Shared by both header variants."""
    if state == TripState.CANCELLED:
        return message or "Cancelled", "red bold"

    if message:
        display_status = message
    elif state == TripState.SCHEDULED:
        display_status = "Awaiting departure"
    elif state == TripState.COMPLETED:
        display_status = "Arrived"
    else:
        display_status = "On time"

    lowered = display_status.lower()
    if "early" in lowered or "on time" in lowered:
        status_style = "green"
    elif "late" in lowered or "delay" in lowered:
        status_style = "red"
    elif state == TripState.SCHEDULED:
        status_style = "yellow"
    elif state == TripState.COMPLETED:
        status_style = "dim"
    else:
        status_style = "white"

    return display_status, status_style


def _build_position_bar(
    engine: TimetableEngine, trip: Trip, query_time, bar_width: int = 20, compact: bool = False,
) -> Text | None:
    """Build the bar between the last and next station. None unless between stations.

    When compact=True, omits the 'Position:' prefix and uses shorter time labels.
    """
    position = engine.segment_progress(trip, query_time)
    if not position:
        return None

    last_code, next_code, progress_frac, mins_remaining = position
    filled = int(progress_frac * bar_width)
    empty = bar_width - filled

    bar = f"[green]{'█' * filled}[/][dim]{'░' * empty}[/]"
    if mins_remaining > 0:
        if compact:
            time_str = f"({mins_remaining}m)"
        else:
            time_str = f"({mins_remaining} min)" if mins_remaining != 1 else "(1 min)"
    else:
        time_str = "(arriving)"

    prefix = "" if compact else "Position: "
    return Text.from_markup(f"{prefix}{last_code} {bar} {next_code} [dim]{time_str}[/]")


def status_subtitle(as_of: str, refresh_interval: int | None = REFRESH_INTERVAL) -> str:
    """Footer line shared by the full-screen views. No refresh hint when rendering once."""
    parts = [f"As of {as_of}"]
    if refresh_interval:
        parts.append(f"Refresh: {refresh_interval}s")
        parts.append("Press Ctrl+C to quit")
    return f"[dim]{' | '.join(parts)}[/]"


def build_header(
    engine: TimetableEngine, trip: Trip, query_time, refresh_interval: int | None = REFRESH_INTERVAL,
) -> Panel:
    """Build the header panel with trip info."""
    snapshot = engine.compute_trip_state(trip, query_time)
    stations = engine.timetable.stations
    origin_name = engine.timetable.station_name(trip.origin)
    dest_name = engine.timetable.station_name(trip.destination)

    next_stop, eta = _next_stop_info(engine, trip, query_time)
    display_status, status_style = _format_status(trip.status.message, snapshot.state)
    direction = engine.direction(trip)
    heading = "Up" if direction == Direction.UP else "Down"

    header = Table.grid(padding=(0, 2))
    header.add_column(justify="left", style="bold white")
    header.add_column(justify="left")

    header.add_row(
        Text.from_markup(f"🚂 {origin_name} → {dest_name} [dim]{trip.trip_id} ({trip.service_id})[/]"),
        ""
    )
    header.add_row(
        Text.from_markup(f"Next: {next_stop} [dim]@ {eta}[/]"),
        ""
    )
    header.add_row(
        f"{trip.service_class.value} · {heading} line",
        Text(display_status, style=status_style)
    )

    if snapshot.location:
        header.add_row(snapshot.location.describe(stations), "")

    position_text = _build_position_bar(engine, trip, query_time, bar_width=20)
    if position_text:
        header.add_row(position_text, "")

    if trip.notes:
        header.add_row(Text(trip.notes, style="dim"), "")

    for alert in engine.alerts_for_trip(trip.trip_id):
        style = "yellow" if alert.severity != "info" else "cyan"
        header.add_row(Text(f"⚠ {alert.title}: {alert.message}", style=style), "")

    return Panel(
        header,
        title=f"[bold cyan]{trip.operator or 'Timetable'}[/]",
        subtitle=status_subtitle(snapshot.as_of, refresh_interval),
        border_style="cyan"
    )


def build_compact_trip_header(engine: TimetableEngine, trip: Trip, query_time) -> Panel:
    """Build a more compact header for the multi-trip view."""
    snapshot = engine.compute_trip_state(trip, query_time)
    origin_name = engine.timetable.station_name(trip.origin)
    dest_name = engine.timetable.station_name(trip.destination)

    next_stop, eta = _next_stop_info(engine, trip, query_time)
    display_status, status_style = _format_status(trip.status.message, snapshot.state)

    header = Table.grid(padding=(0, 2))
    header.add_column(justify="left")
    header.add_column(justify="left")

    header.add_row(
        Text.from_markup(f"🚂 {origin_name} → {dest_name} [dim]{trip.trip_id}[/]"),
        Text(display_status, style=status_style)
    )
    header.add_row(
        Text.from_markup(f"Next: {next_stop} [dim]@ {eta}[/]"),
        Text(trip.service_class.value, style="dim")
    )

    position_text = _build_position_bar(engine, trip, query_time, bar_width=15, compact=True)
    if position_text:
        header.add_row(position_text, "")

    border = "red" if snapshot.state == TripState.CANCELLED else "cyan"
    return Panel(header, border_style=border)
