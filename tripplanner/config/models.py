"""
Configuration models for tripplanner
Supports YAML/JSON configuration files
"""

from datetime import date
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tripplanner.core.models import Activity, OrderedRoute, Preference, TransportMode
from tripplanner.planner.scheduler import ScheduleParams


class ConfigFormat(str, Enum):
    """Supported configuration file formats"""

    YAML = "yaml"
    JSON = "json"


class CacheBackend(str, Enum):
    """Where cached durations are persisted"""

    LOCAL = "local"
    REMOTE = "remote"


class CacheConfig(BaseModel):
    """Duration cache settings"""

    backend: CacheBackend = Field(CacheBackend.LOCAL, description="Cache backend")
    path: Path = Field(
        Path.home() / ".tripplanner" / "duration_cache.json",
        description="JSON file used by the local backend",
    )
    database_url: str = Field(
        "sqlite:///tripplanner.db",
        description="SQLAlchemy URL used by the remote backend",
    )
    capacity: Optional[int] = Field(
        None,
        description="Maximum number of entries (50000 local, 10000 remote by default)",
    )

    @field_validator("capacity")
    @classmethod
    def validate_capacity(cls, v):
        if v is not None and v < 1:
            raise ValueError("Cache capacity must be at least 1")
        return v

    def effective_capacity(self) -> int:
        if self.capacity is not None:
            return self.capacity
        return 10000 if self.backend == CacheBackend.REMOTE else 50000


class RoutingConfig(BaseModel):
    """Routing service settings"""

    timeout: int = Field(30, description="HTTP timeout in seconds")
    max_coordinates: int = Field(25, description="Largest matrix the service accepts")
    transport_mode: TransportMode = Field(TransportMode.CAR, description="Default mode")


class SelectionConfig(BaseModel):
    """Activity selection settings"""

    api_call_delay: float = Field(
        1.0, ge=0, description="Seconds to wait after each catalog call"
    )
    near_radius_meters: int = Field(15000, gt=0, description="Proximity search radius")
    near_limit: int = Field(20, gt=0, description="Max results per proximity query")
    preference_limit: int = Field(100, gt=0, description="Max results per preference query")
    language: str = Field("en", description="Catalog language")


class PlannerConfig(BaseModel):
    """Top-level planner configuration"""

    name: str = Field("tripplanner", description="Configuration name")
    cache: CacheConfig = Field(default_factory=CacheConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    schedule: ScheduleParams = Field(default_factory=ScheduleParams)


class SchedulePlan(BaseModel):
    """Input file for the schedule command"""

    start_date: date = Field(..., description="First day of the trip")
    route: OrderedRoute = Field(..., description="Stops in visiting order")
    activities: List[Activity] = Field(default_factory=list)
    preferences: List[Preference] = Field(default_factory=list)
