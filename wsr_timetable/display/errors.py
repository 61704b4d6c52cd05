"""Error and not-found display panels."""

from rich.panel import Panel
from rich.text import Text


def build_error_panel(error: str) -> Panel:
    """Build an error display panel."""
    return Panel(
        Text(f"Error: {error}", style="bold red"),
        title="[bold red]Error[/]",
        border_style="red"
    )


def build_trip_not_found_panel(trip_id: str, known_trips: list[str]) -> Panel:
    """Build a panel for an unknown trip id, listing the ones that do exist."""
    content = Text()
    content.append(f"Trip {trip_id} not found.\n\n", style="bold yellow")
    content.append("This could mean:\n", style="white")
    content.append("• The headcode is mistyped\n", style="dim")
    content.append("• The trip doesn't run in the loaded timetable\n", style="dim")
    if known_trips:
        content.append(f"\nTrips in the timetable: {', '.join(known_trips)}", style="white")

    return Panel(
        content,
        title="[bold yellow]Trip Not Found[/]",
        border_style="yellow"
    )


def build_station_not_found_panel(code: str, stations: list[tuple[str, str]]) -> Panel:
    """Build a panel for an unknown station code. `stations` is (code, name) pairs."""
    content = Text()
    content.append(f"Station {code} not found.\n\n", style="bold yellow")
    content.append("Stations on the line:\n", style="white")
    for known_code, name in stations:
        content.append(f"  {known_code}: {name}\n", style="dim")

    return Panel(
        content,
        title="[bold yellow]Station Not Found[/]",
        border_style="yellow"
    )
