"""Station departure and arrival board display."""

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import REFRESH_INTERVAL
from ..models import DepartureBoard
from .header import status_subtitle


def _status_style(status: str) -> str:
    if status == "Cancelled":
        return "red bold"
    if status == "On Time":
        return "green"
    if "late" in status:
        return "yellow"
    return "cyan"


def _board_table(title: str, place_heading: str, rows) -> Table:
    table = Table(
        title=title,
        title_style="bold",
        title_justify="left",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
        expand=True,
    )
    table.add_column("Time", width=6, justify="center")
    table.add_column(place_heading, min_width=18)
    table.add_column("Plt", width=4, justify="center")
    table.add_column("Train", width=7, justify="center")
    table.add_column("Class", width=12)
    table.add_column("Status", width=16, justify="center")

    for row in rows:
        place = row.destination if hasattr(row, "destination") else row.origin
        time_style = "dim strike" if row.is_cancelled else "cyan"
        table.add_row(
            Text(row.time, style=time_style),
            Text(place, style="dim" if row.is_cancelled else "white"),
            row.platform or "—",
            row.trip_id,
            Text(row.service_class.value, style="dim"),
            Text(row.status, style=_status_style(row.status)),
        )
    return table


def build_board_panel(
    board: DepartureBoard, as_of: str | None = None, refresh_interval: int | None = REFRESH_INTERVAL,
) -> Panel:
    """Build the departures/arrivals panel for one station."""
    if board.next_day:
        heading = Text(f"Next day's services from {board.effective_time}", style="yellow")
    else:
        heading = Text(f"Services from {board.effective_time}", style="dim")

    if board.is_empty:
        body = Group(heading, Text(""), Text("No more services today.", style="dim italic"))
    else:
        parts = [heading]
        if board.departures:
            parts.append(_board_table("Departures", "Destination", board.departures))
        if board.arrivals:
            parts.append(_board_table("Arrivals", "From", board.arrivals))
        body = Group(*parts)

    return Panel(
        body,
        title=f"[bold cyan]{board.station_name} ({board.station_code})[/]",
        subtitle=status_subtitle(as_of or board.effective_time, refresh_interval),
        border_style="cyan",
    )
