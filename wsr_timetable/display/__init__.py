"""Display rendering components for wsr-timetable."""

from .header import build_header, build_compact_trip_header, status_subtitle
from .stops import build_stops_table
from .progress import build_progress_bar
from .board import build_board_panel
from .journeys import build_journeys_panel
from .compact import build_compact_display
from .errors import build_error_panel, build_trip_not_found_panel, build_station_not_found_panel
from .predeparture import build_predeparture_panel, build_upcoming_table
from .live import build_live_view, build_alerts_panel

__all__ = [
    "build_header",
    "build_compact_trip_header",
    "status_subtitle",
    "build_stops_table",
    "build_progress_bar",
    "build_board_panel",
    "build_journeys_panel",
    "build_compact_display",
    "build_error_panel",
    "build_trip_not_found_panel",
    "build_station_not_found_panel",
    "build_predeparture_panel",
    "build_upcoming_table",
    "build_live_view",
    "build_alerts_panel",
]
