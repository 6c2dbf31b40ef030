"""
Routing service data models
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from tripplanner.core.models import TransportMode

OK_CODE = "Ok"

# Mapbox has no public transport profile; those modes fall back to driving
MAPBOX_PROFILES = {
    TransportMode.WALKING: "walking",
    TransportMode.BICYCLE: "cycling",
}
DEFAULT_PROFILE = "driving"


def profile_for(mode: TransportMode) -> str:
    return MAPBOX_PROFILES.get(mode, DEFAULT_PROFILE)


class MatrixResponse(BaseModel):
    """Body of a Mapbox Matrix API response"""

    code: str = Field(description="Service status code, 'Ok' on success")
    message: Optional[str] = Field(None, description="Error message if not Ok")
    durations: Optional[List[List[Optional[float]]]] = Field(
        None, description="Durations in seconds, row i from coordinate i"
    )
