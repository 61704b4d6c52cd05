"""Calling-points table display."""

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import StopStatus, Trip, TripSnapshot, get_stop_style

_STATUS_LABELS = {
    StopStatus.DEPARTED: ("Departed", "green dim"),
    StopStatus.ARRIVED: ("At platform", "cyan bold"),
    StopStatus.SKIPPED: ("Skipped", "red dim"),
    StopStatus.CANCELLED: ("Cancelled", "red dim"),
    StopStatus.SCHEDULED: ("Scheduled", "dim"),
}

# Departed stops kept visible above the current position when focusing
_KEEP_DEPARTED = 2


def build_stops_table(trip: Trip, snapshot: TripSnapshot, focus: bool = True) -> Panel:
    """Build the calling-points table, optionally hiding older departed stops."""
    stops = list(zip(trip.stops, snapshot.stop_tags))

    table = Table(
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
        expand=True,
    )

    table.add_column("", width=2, justify="center")
    table.add_column("Station", min_width=20)
    table.add_column("Plt", width=4, justify="center")
    table.add_column("Arr", width=8, justify="center")
    table.add_column("Dep", width=8, justify="center")
    table.add_column("Status", width=20, justify="center")

    if focus:
        departed = [i for i, (_, tag) in enumerate(stops) if tag == StopStatus.DEPARTED]
        if len(departed) > _KEEP_DEPARTED:
            # Everything before the oldest departed stop still shown is hidden
            cut = departed[-_KEEP_DEPARTED]
            table.add_row(
                Text("⋮", style="dim"),
                Text(f"[{cut} earlier stops hidden]", style="dim italic"),
                "", "", "", ""
            )
            stops = stops[cut:]

    for stop, tag in stops:
        style, icon = get_stop_style(tag)
        label, status_style = _STATUS_LABELS[tag]

        name = f"{stop.station_name} ({stop.station_code})"
        if stop.is_request_stop:
            name += " x"

        if tag in (StopStatus.SKIPPED, StopStatus.CANCELLED):
            table.add_row(
                Text(icon, style=style),
                Text(name, style="dim"),
                "", "", "",
                Text(label, style=status_style)
            )
            continue

        if tag == StopStatus.ARRIVED and stop.platform:
            label = f"{label} (Plt {stop.platform})"

        table.add_row(
            Text(icon, style=style),
            Text(name, style=style),
            stop.platform or "",
            stop.scheduled_arrival or "",
            stop.scheduled_departure or "",
            Text(label, style=status_style)
        )

    title_parts = ["[bold]Calling points[/]", f"[dim]{trip.trip_id}[/]"]
    if any(stop.is_request_stop for stop in trip.stops):
        title_parts.append("[dim](x = request stop)[/]")

    return Panel(
        table,
        title=" ".join(title_parts),
        border_style="magenta"
    )
