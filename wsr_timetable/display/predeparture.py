"""Predeparture display panels."""

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..engine import TimetableEngine
from ..models import Trip, format_duration


def _departs_in(engine: TimetableEngine, trip: Trip, query_time) -> str:
    minutes = engine.minutes_until_departure(trip, query_time)
    if minutes <= 0:
        return "departing now"
    return f"in {format_duration(minutes)}"


def build_predeparture_panel(engine: TimetableEngine, trip: Trip, query_time) -> Panel:
    """Build a panel for a trip that hasn't left its origin yet."""
    origin = trip.stops[0]
    dest_name = engine.timetable.station_name(trip.destination)

    content = Table.grid(padding=(0, 2))
    content.add_column(justify="left")

    content.add_row(Text(f"🚂 {trip.trip_id} to {dest_name}", style="bold"))
    content.add_row(Text(""))
    content.add_row(Text("⏳ Awaiting Departure", style="yellow"))
    content.add_row(Text(""))
    platform = f", platform {origin.platform}" if origin.platform else ""
    content.add_row(Text.from_markup(
        f"Departs {origin.station_name}{platform} at [cyan]{trip.first_departure}[/] "
        f"[dim]({_departs_in(engine, trip, query_time)})[/]"
    ))
    content.add_row(Text(f"Arrives {dest_name} at {trip.last_arrival}", style="dim"))

    return Panel(
        content,
        title=f"[bold yellow]{trip.trip_id} - Predeparture[/]",
        border_style="yellow"
    )


def build_upcoming_table(engine: TimetableEngine, trips: list[Trip], query_time) -> Panel:
    """Build the list of trips about to leave their origin."""
    table = Table(
        show_header=True,
        header_style="bold yellow",
        border_style="dim",
        expand=True,
    )
    table.add_column("Train", width=7, justify="center")
    table.add_column("From", min_width=16)
    table.add_column("To", min_width=16)
    table.add_column("Departs", width=8, justify="center")
    table.add_column("", width=14)

    for trip in trips:
        table.add_row(
            trip.trip_id,
            engine.timetable.station_name(trip.origin),
            engine.timetable.station_name(trip.destination),
            Text(trip.first_departure, style="cyan"),
            Text(_departs_in(engine, trip, query_time), style="dim"),
        )

    return Panel(table, title="[bold yellow]⏳ Departing Soon[/]", border_style="yellow")
