"""
tripplanner: multi-day itinerary planning

Selects activities from an external catalog, caches travel durations and
lays an ordered route out day by day.
"""

__version__ = "0.1.0"

from .core.models import Activity, Coordinate, Location, OrderedRoute, TripSettings
from .planner.scheduler import ScheduleParams, schedule_trip
from .planner.select_activities import SelectActivities

__all__ = [
    "Activity",
    "Coordinate",
    "Location",
    "OrderedRoute",
    "TripSettings",
    "ScheduleParams",
    "SelectActivities",
    "schedule_trip",
]
