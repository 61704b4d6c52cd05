"""Line-wide overview: every running trip plus the next departures."""

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from ..config import REFRESH_INTERVAL, UPCOMING_WINDOW
from ..engine import TimetableEngine
from ..models import ServiceAlert, to_clock
from .header import build_compact_trip_header, status_subtitle
from .predeparture import build_upcoming_table


def build_alerts_panel(alerts: list[ServiceAlert]) -> Panel:
    content = Text()
    for i, alert in enumerate(alerts):
        style = "yellow" if alert.severity != "info" else "cyan"
        if i:
            content.append("\n")
        content.append(f"⚠ {alert.title}", style=f"{style} bold")
        content.append(f"  {alert.message}", style="dim")
    return Panel(content, title="[bold]Service Alerts[/]", border_style="yellow")


def build_live_view(
    engine: TimetableEngine,
    query_time,
    refresh_interval: int | None = REFRESH_INTERVAL,
    window: int = UPCOMING_WINDOW,
) -> Panel:
    """Build the overview of running and soon-to-depart trips."""
    running = engine.running_trips(query_time)
    upcoming = engine.upcoming_departures(query_time, window)
    alerts = engine.alerts()

    parts = []
    if running:
        parts.extend(build_compact_trip_header(engine, trip, query_time) for trip in running)
    else:
        parts.append(Text("No trains running right now.", style="dim italic"))

    if upcoming:
        parts.append(build_upcoming_table(engine, upcoming, query_time))

    if alerts:
        parts.append(build_alerts_panel(alerts))

    return Panel(
        Group(*parts),
        title="[bold cyan]Live Trains[/]",
        subtitle=status_subtitle(to_clock(query_time), refresh_interval),
        border_style="cyan",
    )
