"""
Itinerary assembly: activity selection and day scheduling
"""

from .scheduler import ScheduleParams, apply_preference_overrides, schedule_trip
from .select_activities import SelectActivities

__all__ = [
    "ScheduleParams",
    "SelectActivities",
    "apply_preference_overrides",
    "schedule_trip",
]
