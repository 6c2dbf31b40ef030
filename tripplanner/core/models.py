"""
Core data models for trip planning: geometry, activities, routes and itineraries
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

EARTH_RADIUS_KM = 6371.0


class TransportMode(str, Enum):
    """Means of transport between two locations"""

    CAR = "CAR"
    WALKING = "WALKING"
    BICYCLE = "BICYCLE"
    BUS = "BUS"
    TRAIN = "TRAIN"
    TRAM = "TRAM"
    BOAT = "BOAT"
    UNKNOWN = "UNKNOWN"


class Preference(str, Enum):
    """User preference tags"""

    SCENIC_VIEWS = "SCENIC_VIEWS"
    SPORTS = "SPORTS"
    MUSEUMS = "MUSEUMS"
    HIKE = "HIKE"
    CHILDREN_FRIENDLY = "CHILDREN_FRIENDLY"
    NIGHTLIFE = "NIGHTLIFE"
    SHOPPING = "SHOPPING"
    WELLNESS = "WELLNESS"
    FOODIE = "FOODIE"
    URBAN = "URBAN"
    GROUP = "GROUP"
    INDIVIDUAL = "INDIVIDUAL"
    COUPLE = "COUPLE"
    WHEELCHAIR_ACCESSIBLE = "WHEELCHAIR_ACCESSIBLE"
    PUBLIC_TRANSPORT = "PUBLIC_TRANSPORT"

    # Pace and timing only, the catalog knows nothing about these
    QUICK = "QUICK"
    SLOW_PACE = "SLOW_PACE"
    EARLY_BIRD = "EARLY_BIRD"
    NIGHT_OWL = "NIGHT_OWL"
    INTERMEDIATE_STOPS = "INTERMEDIATE_STOPS"


# ANDed into every preference query instead of being queried on their own
MANDATORY_PREFERENCES = (Preference.WHEELCHAIR_ACCESSIBLE, Preference.PUBLIC_TRANSPORT)


class Coordinate(BaseModel):
    """Point on the globe in degrees. Range is not validated."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")

    def haversine_distance_to(self, other: "Coordinate") -> float:
        """
        Great-circle distance to another coordinate

        Args:
            other: Coordinate to measure to

        Returns:
            Distance in kilometres, rounded to two decimals
        """
        d_lat = math.radians(self.latitude - other.latitude)
        d_lon = math.radians(self.longitude - other.longitude)

        hav = (
            math.sin(d_lat / 2) ** 2
            + math.cos(math.radians(self.latitude))
            * math.cos(math.radians(other.latitude))
            * math.sin(d_lon / 2) ** 2
        )
        distance = 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(hav), math.sqrt(1 - hav))
        return round(distance * 100) / 100.0

    def same_location(self, other: "Coordinate") -> bool:
        """Compare with a tolerance of roughly one metre"""
        epsilon = 0.00001
        return (
            abs(self.latitude - other.latitude) < epsilon
            and abs(self.longitude - other.longitude) < epsilon
        )


class Location(BaseModel):
    """Named coordinate"""

    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    name: str
    image_url: Optional[str] = None

    def haversine_distance_to(self, other: "Location") -> float:
        return self.coordinate.haversine_distance_to(other.coordinate)

    def same_location(self, other: "Location") -> bool:
        return self.coordinate.same_location(other.coordinate)

    def is_within_distance_of_any(
        self, locations: List["Location"], min_distance: float, max_distance: float
    ) -> bool:
        """True if some location lies strictly between min_distance and max_distance km away"""
        return any(
            min_distance < self.haversine_distance_to(loc) < max_distance
            for loc in locations
        )


class Activity(BaseModel):
    """
    Something to do at a location

    Fetched activities are never mutated; scheduling produces a copy with
    start_date and end_date filled in.
    """

    model_config = ConfigDict(frozen=True)

    location: Location
    description: str = ""
    estimated_time: int = Field(3600, description="Estimated duration in seconds")
    preferences: List[Preference] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @property
    def name(self) -> str:
        return self.location.name

    def estimated_minutes(self) -> int:
        return self.estimated_time // 60

    def is_valid(self, blacklisted_names: Set[str]) -> bool:
        """An activity is valid if it is not blacklisted and has a positive duration"""
        if self.location.name in blacklisted_names:
            return False
        return self.estimated_time > 0

    def with_schedule(self, start: datetime, end: datetime) -> "Activity":
        return self.model_copy(update={"start_date": start, "end_date": end})


class RouteSegment(BaseModel):
    """Travel leg between two locations"""

    model_config = ConfigDict(frozen=True)

    from_location: Location
    to_location: Location
    distance_meters: int = 0
    duration_minutes: int
    path: List[Coordinate] = Field(default_factory=list)
    transport_mode: TransportMode = TransportMode.CAR
    start_date: datetime
    end_date: datetime

    def duration_hours(self) -> float:
        return round(self.duration_minutes / 60.0 * 100) / 100.0

    def distance_km(self) -> float:
        return round(self.distance_meters / 1000.0 * 100) / 100.0


class ScheduledActivity(BaseModel):
    """Itinerary element wrapping a scheduled activity"""

    kind: Literal["activity"] = "activity"
    activity: Activity

    @property
    def start_date(self) -> datetime:
        return self.activity.start_date

    @property
    def end_date(self) -> datetime:
        return self.activity.end_date


class ScheduledSegment(BaseModel):
    """Itinerary element wrapping a scheduled travel segment"""

    kind: Literal["segment"] = "segment"
    segment: RouteSegment

    @property
    def start_date(self) -> datetime:
        return self.segment.start_date

    @property
    def end_date(self) -> datetime:
        return self.segment.end_date


TripElement = Annotated[
    Union[ScheduledActivity, ScheduledSegment], Field(discriminator="kind")
]


class Itinerary(BaseModel):
    """Serializable wrapper around a list of trip elements"""

    elements: List[TripElement] = Field(default_factory=list)


class OrderedRoute(BaseModel):
    """
    Stops in visiting order plus the travel time of each leg

    segment_duration[i] is the travel time in seconds from
    ordered_locations[i] to ordered_locations[i + 1].
    """

    ordered_locations: List[Location] = Field(default_factory=list)
    segment_duration: List[float] = Field(default_factory=list)
    total_duration: Optional[float] = None

    @model_validator(mode="after")
    def check_segments(self):
        expected = max(len(self.ordered_locations) - 1, 0)
        if len(self.segment_duration) != expected:
            raise ValueError(
                f"Expected {expected} segment durations for "
                f"{len(self.ordered_locations)} locations, got {len(self.segment_duration)}"
            )
        if self.total_duration is None:
            self.total_duration = float(sum(self.segment_duration))
        return self


class TripSettings(BaseModel):
    """User input for a trip"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    destinations: List[Location] = Field(default_factory=list)
    arrival_location: Optional[Location] = None
    departure_location: Optional[Location] = None
    preferences: List[Preference] = Field(default_factory=list)


class SelectionResult(BaseModel):
    """Output of activity selection"""

    activities: List[Activity] = Field(default_factory=list)
    destinations: List[Location] = Field(default_factory=list)
