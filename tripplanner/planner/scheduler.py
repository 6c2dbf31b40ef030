"""
Day-by-day scheduling of an ordered route and its activities
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from tripplanner.core.models import (
    Activity,
    OrderedRoute,
    Preference,
    RouteSegment,
    ScheduledActivity,
    ScheduledSegment,
    TransportMode,
    TripElement,
)


class ScheduleParams(BaseModel):
    """
    Scheduling constraints

    Activities must end by day_end. Travel must end by travel_end, which
    defaults to day_end when unset.
    """

    day_start: time = Field(time(8, 0), description="Daily start time")
    day_end: time = Field(time(18, 0), description="Latest end time for activities")
    travel_end: Optional[time] = Field(None, description="Latest end time for travel")
    pause_between_activities: int = Field(
        15 * 60, ge=0, description="Blank time after each travel segment, in seconds"
    )
    max_activities_per_day: Optional[int] = Field(None, gt=0, description="Daily cap")
    align_to_quarter: bool = Field(False, description="Round times up to the quarter hour")
    transport_mode: TransportMode = Field(TransportMode.CAR, description="Mode of travel legs")


def apply_preference_overrides(
    preferences: Iterable[Preference], base: ScheduleParams
) -> ScheduleParams:
    """
    Adjust the daily window and pace to the user's preferences

    Args:
        preferences: Preferences of the trip
        base: Parameters to start from

    Returns:
        New ScheduleParams; base is left untouched
    """
    prefs = set(preferences)
    updates = {}

    late = Preference.NIGHTLIFE in prefs or Preference.NIGHT_OWL in prefs
    if late and Preference.EARLY_BIRD in prefs:
        updates.update(day_start=time(6, 0), travel_end=time(22, 0), max_activities_per_day=6)
    elif late:
        updates.update(day_start=time(10, 0), day_end=time(22, 0), travel_end=time(23, 59))
    elif Preference.EARLY_BIRD in prefs:
        updates.update(day_start=time(6, 0), travel_end=time(20, 0), max_activities_per_day=6)

    if Preference.SLOW_PACE in prefs:
        updates["pause_between_activities"] = 60 * 60
    elif Preference.QUICK in prefs:
        updates["pause_between_activities"] = 0

    return base.model_copy(update=updates)


def round_up_to_quarter(moment: datetime) -> datetime:
    """Round up to :00, :15, :30 or :45, keeping times already on a quarter"""
    truncated = moment.replace(second=0, microsecond=0)
    if truncated < moment:
        truncated += timedelta(minutes=1)
    remainder = truncated.minute % 15
    if remainder == 0:
        return truncated
    return truncated + timedelta(minutes=15 - remainder)


class _DayCursor:
    """Wall-clock position of the scheduler and the calendar day it belongs to"""

    def __init__(self, start_date: date, params: ScheduleParams):
        self.params = params
        self.day = start_date
        self.activities_today = 0
        self.at = self._align(datetime.combine(self.day, params.day_start))

    def _align(self, moment: datetime) -> datetime:
        return round_up_to_quarter(moment) if self.params.align_to_quarter else moment

    def next_day(self):
        self.day += timedelta(days=1)
        self.at = self._align(datetime.combine(self.day, self.params.day_start))
        self.activities_today = 0

    def fits(self, seconds: float, limit: time) -> bool:
        return self.at + timedelta(seconds=seconds) <= datetime.combine(self.day, limit)

    def advance(self, seconds: float) -> datetime:
        """Move past a block of the given length and return its end"""
        self.at = self._align(self.at + timedelta(seconds=seconds))
        return self.at


def _schedule_activity(
    cursor: _DayCursor, activity: Activity, params: ScheduleParams
) -> ScheduledActivity:
    cap = params.max_activities_per_day
    if cap is not None and cursor.activities_today >= cap:
        cursor.next_day()
    if not cursor.fits(activity.estimated_time, params.day_end):
        cursor.next_day()

    start = cursor.at
    end = cursor.advance(activity.estimated_time)
    cursor.activities_today += 1
    return ScheduledActivity(activity=activity.with_schedule(start, end))


def _schedule_travel(
    cursor: _DayCursor, ordered: OrderedRoute, index: int, params: ScheduleParams
) -> ScheduledSegment:
    seconds = ordered.segment_duration[index]
    if not cursor.fits(seconds, params.travel_end or params.day_end):
        cursor.next_day()

    origin = ordered.ordered_locations[index]
    destination = ordered.ordered_locations[index + 1]

    start = cursor.at
    end = cursor.advance(seconds)
    segment = RouteSegment(
        from_location=origin,
        to_location=destination,
        distance_meters=int(round(origin.haversine_distance_to(destination) * 1000)),
        duration_minutes=math.ceil(seconds / 60.0),
        path=[],
        transport_mode=params.transport_mode,
        start_date=start,
        end_date=end,
    )
    # Blank time after the leg; never shows up in the itinerary
    cursor.advance(params.pause_between_activities)
    return ScheduledSegment(segment=segment)


def schedule_trip(
    start_date: date,
    ordered: OrderedRoute,
    activities: List[Activity],
    params: Optional[ScheduleParams] = None,
    preferences: Iterable[Preference] = (),
) -> List[TripElement]:
    """
    Lay out an ordered route and its activities on a calendar

    Walks the stops in order. Each activity located at the current stop is
    placed at the cursor, in the order given, and rolls to the next day at
    day_start when it would end after day_end. Between stops a travel segment
    of the precomputed duration is placed the same way (against travel_end),
    followed by an unscheduled pause.

    Args:
        start_date: First day of the trip
        ordered: Stops in visiting order with per-leg durations in seconds
        activities: Activities to place; each should be located at a stop
        params: Scheduling constraints
        preferences: Preferences that tweak params (see apply_preference_overrides)

    Returns:
        Trip elements sorted by start time; empty for an empty route
    """
    if not ordered.ordered_locations:
        return []

    params = params or ScheduleParams()
    if preferences:
        params = apply_preference_overrides(preferences, params)

    cursor = _DayCursor(start_date, params)
    out: List[TripElement] = []
    stops = ordered.ordered_locations

    for i, stop in enumerate(stops):
        for activity in activities:
            if activity.location == stop:
                out.append(_schedule_activity(cursor, activity, params))

        if i < len(stops) - 1:
            out.append(_schedule_travel(cursor, ordered, i, params))

    return sorted(out, key=lambda element: element.start_date)
