"""Direct journey search results."""

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import Journey, format_duration


def build_journeys_panel(
    journeys: list[Journey], from_name: str, to_name: str, depart_after: str,
) -> Panel:
    """Build a panel listing direct trains between two stations."""
    title = f"[bold cyan]{from_name} → {to_name}[/]"
    subtitle = f"[dim]Departing from {depart_after}[/]"

    if not journeys:
        content = Text()
        content.append(f"No direct trains from {from_name} to {to_name}", style="bold yellow")
        content.append(f" after {depart_after}.\n\n", style="bold yellow")
        content.append("Check the direction of travel, or try an earlier time.", style="dim")
        return Panel(content, title=title, subtitle=subtitle, border_style="yellow")

    table = Table(
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
        expand=True,
    )
    table.add_column("Depart", width=8, justify="center")
    table.add_column("Arrive", width=8, justify="center")
    table.add_column("Duration", width=10, justify="center")
    table.add_column("Train", width=7, justify="center")
    table.add_column("Class", width=12)
    table.add_column("Changes", width=8, justify="center")

    fastest = min(j.duration_minutes for j in journeys)
    for journey in journeys:
        duration_style = "green bold" if journey.duration_minutes == fastest else "white"
        table.add_row(
            Text(journey.departure, style="cyan"),
            Text(journey.arrival, style="cyan"),
            Text(format_duration(journey.duration_minutes), style=duration_style),
            journey.trip_id,
            Text(journey.service_class.value, style="dim"),
            "Direct" if journey.changes == 0 else str(journey.changes),
        )

    return Panel(table, title=title, subtitle=subtitle, border_style="cyan")
