"""
Rate-limited selection of candidate activities for a trip
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from tripplanner.catalog.client import ActivityCatalog
from tripplanner.catalog.facets import is_supported
from tripplanner.core.models import (
    MANDATORY_PREFERENCES,
    Activity,
    Location,
    Preference,
    SelectionResult,
    TripSettings,
)

# MySwitzerland allows about one request per second, with short bursts
API_CALL_DELAY = 1.0
NEAR_RADIUS_METERS = 15000
NEAR_LIMIT = 20
PREFERENCE_LIMIT = 100

ProgressSink = Callable[[float], None]


def _location_key(location: Location) -> Tuple[str, float, float]:
    return (location.name, location.coordinate.latitude, location.coordinate.longitude)


def _merge(into: Dict[Tuple[str, float, float], Activity], activities: List[Activity]):
    """Add activities not seen yet, keeping the first occurrence"""
    for activity in activities:
        into.setdefault(_location_key(activity.location), activity)


class SelectActivities:
    """
    Picks activities that are both close to a stop and match the user's preferences

    Catalog calls are strictly sequential, each followed by an awaited delay
    so the catalog's rate limit is respected. Catalog errors are not caught.
    """

    def __init__(
        self,
        trip_settings: TripSettings,
        catalog: ActivityCatalog,
        api_call_delay: float = API_CALL_DELAY,
        near_radius_meters: int = NEAR_RADIUS_METERS,
        near_limit: int = NEAR_LIMIT,
        preference_limit: int = PREFERENCE_LIMIT,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.trip_settings = trip_settings
        self.catalog = catalog
        self.api_call_delay = api_call_delay
        self.near_radius_meters = near_radius_meters
        self.near_limit = near_limit
        self.preference_limit = preference_limit
        self.sleep = sleep or asyncio.sleep
        self.logger = logging.getLogger(__name__)

    def update_preferences(self, preferences: List[Preference]) -> None:
        self.trip_settings = self.trip_settings.model_copy(update={"preferences": preferences})

    def build_destination_list(self) -> List[Location]:
        """Destinations followed by arrival and departure, without coordinate duplicates"""
        candidates = list(self.trip_settings.destinations)
        if self.trip_settings.arrival_location:
            candidates.append(self.trip_settings.arrival_location)
        if self.trip_settings.departure_location:
            candidates.append(self.trip_settings.departure_location)

        seen = set()
        destinations = []
        for location in candidates:
            if location.coordinate not in seen:
                seen.add(location.coordinate)
                destinations.append(location)
        return destinations

    def build_preference_queries(self) -> List[List[Preference]]:
        """
        Tag sets to query in the preference pass

        Mandatory tags are ANDed into every query. If the user picked only
        mandatory tags they are queried together once.
        """
        supported = []
        for preference in self.trip_settings.preferences:
            if is_supported(preference) and preference not in supported:
                supported.append(preference)

        mandatory = [p for p in supported if p in MANDATORY_PREFERENCES]
        others = [p for p in supported if p not in MANDATORY_PREFERENCES]

        if others:
            return [mandatory + [preference] for preference in others]
        if mandatory:
            return [mandatory]
        return []

    async def add_activities(self, on_progress: ProgressSink) -> SelectionResult:
        """
        Fetch and filter activities for the trip

        Args:
            on_progress: Called with the completed fraction after every catalog
                call, and once more with exactly 1.0 at the end

        Returns:
            SelectionResult with the retained activities and every location
            the itinerary has to visit
        """
        destinations = self.build_destination_list()
        queries = self.build_preference_queries()
        total_steps = len(destinations) + len(queries)
        completed = 0

        def report():
            on_progress(min(completed / max(1, total_steps), 1.0))

        nearby: Dict[Tuple[str, float, float], Activity] = {}
        for destination in destinations:
            fetched = await self.catalog.get_activities_near(
                destination.coordinate, self.near_radius_meters, self.near_limit
            )
            _merge(nearby, fetched)
            completed += 1
            report()
            await self.sleep(self.api_call_delay)

        self.logger.info(
            f"Found {len(nearby)} activities near {len(destinations)} destinations"
        )

        if queries:
            preferred: Dict[Tuple[str, float, float], Activity] = {}
            for tags in queries:
                fetched = await self.catalog.get_activities_by_preferences(
                    tags, self.preference_limit
                )
                _merge(preferred, fetched)
                completed += 1
                report()
                await self.sleep(self.api_call_delay)

            selected = [activity for key, activity in nearby.items() if key in preferred]
            self.logger.info(
                f"{len(selected)} of {len(nearby)} nearby activities match preferences"
            )
        else:
            selected = list(nearby.values())

        on_progress(1.0)

        return SelectionResult(
            activities=selected,
            destinations=destinations + [activity.location for activity in selected],
        )
