"""
Core data models and database functionality for tripplanner
"""

from .db import Database, DocumentStoreError, DurationDocument, SqlDocumentCollection
from .models import (
    MANDATORY_PREFERENCES,
    Activity,
    Coordinate,
    Itinerary,
    Location,
    OrderedRoute,
    Preference,
    RouteSegment,
    ScheduledActivity,
    ScheduledSegment,
    SelectionResult,
    TransportMode,
    TripElement,
    TripSettings,
)

__all__ = [
    # Models
    "Coordinate",
    "Location",
    "TransportMode",
    "Preference",
    "MANDATORY_PREFERENCES",
    "Activity",
    "RouteSegment",
    "ScheduledActivity",
    "ScheduledSegment",
    "TripElement",
    "Itinerary",
    "OrderedRoute",
    "TripSettings",
    "SelectionResult",
    # Database
    "Database",
    "DocumentStoreError",
    "DurationDocument",
    "SqlDocumentCollection",
]
