"""Line position bar display."""

from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn

from ..engine import TimetableEngine
from ..models import Direction, Trip


def build_progress_bar(engine: TimetableEngine, trip: Trip, query_time) -> Panel:
    """
    Build a bar showing how far along the line the trip is.

    The bar always reads origin to destination, so a Down trip fills from
    the far end of the fixed milepost scale.
    """
    if len(engine.timetable.line_order) < 2:
        return Panel("No station data", title="Line Position")

    position = engine.compute_line_position(trip, query_time)
    if engine.direction(trip) == Direction.DOWN:
        position = 100.0 - position

    origin = engine.timetable.station_name(trip.origin)
    dest = engine.timetable.station_name(trip.destination)

    progress = Progress(
        TextColumn("[bold blue]{task.fields[origin]}"),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TextColumn("[bold blue]{task.fields[dest]}"),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
    )

    progress.add_task(
        "line",
        total=100,
        completed=position,
        origin=origin[:20],
        dest=dest[:20]
    )

    return Panel(progress, title="[bold]Line Position[/]", border_style="blue")
