"""
Activity catalog backed by the MySwitzerland open data API
"""

import logging
import os
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import ValidationError

from tripplanner.core.models import Activity, Coordinate, Location, Preference

from .facets import facet_params

DEFAULT_ESTIMATED_TIME = 3600


class CatalogError(Exception):
    """Activity catalog request error"""
    pass


class ActivityCatalog(Protocol):
    """What activity selection needs from a catalog"""

    async def get_activities_near(
        self, coordinate: Coordinate, radius_meters: int, limit: int
    ) -> List[Activity]: ...

    async def get_activities_by_preferences(
        self, preferences: List[Preference], limit: int
    ) -> List[Activity]: ...


class MySwitzerlandCatalog:
    """
    Async client for the MySwitzerland attractions API
    Failures raise CatalogError, never an empty result
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        language: str = "en",
        timeout: int = 10,
    ):
        self.api_key = api_key or os.getenv("MYSWITZERLAND_API_KEY")
        self.base_url = "https://opendata.myswitzerland.io/v1"
        self.language = language
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        if not self.api_key:
            raise ValueError("MySwitzerland API key required. Set MYSWITZERLAND_API_KEY")

    @property
    def headers(self) -> Dict[str, str]:
        """HTTP headers for API requests"""
        return {
            "accept": "application/json",
            "x-api-key": self.api_key,
        }

    def _base_params(self, limit: int) -> Dict[str, Any]:
        return {
            "lang": self.language,
            "page": 0,
            "striphtml": "true",
            "expand": "true",
            "hitsPerPage": limit,
        }

    async def _fetch(
        self, params: Dict[str, Any], preferences: Optional[List[Preference]] = None
    ) -> List[Activity]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/attractions/",
                    headers=self.headers,
                    params=params,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error fetching activities: {e}")
            raise CatalogError(f"Activity catalog request failed: {e}")
        except ValueError as e:
            self.logger.error(f"Invalid catalog response: {e}")
            raise CatalogError(f"Activity catalog returned invalid JSON: {e}")

        return self._parse_activities(data, preferences or [])

    def _parse_activities(
        self, data: Any, preferences: List[Preference]
    ) -> List[Activity]:
        """Turn the catalog payload into activities, skipping malformed items"""
        if not isinstance(data, dict):
            raise CatalogError(f"Unexpected catalog payload: {type(data).__name__}")

        items = data.get("data") or []
        if not isinstance(items, list):
            raise CatalogError(f"Unexpected catalog data field: {type(items).__name__}")

        activities = []

        for item in items:
            if not isinstance(item, dict):
                self.logger.warning(f"Skipping malformed catalog item: {item!r}")
                continue

            geo = item.get("geo")
            if not isinstance(geo, dict):
                continue
            lat = geo.get("latitude")
            lng = geo.get("longitude")
            if lat is None or lng is None:
                continue

            image_urls = [
                image["url"]
                for image in item.get("image") or []
                if isinstance(image, dict) and image.get("url")
            ]
            name = item.get("name") or "Unknown Activity"

            try:
                activities.append(
                    Activity(
                        location=Location(
                            coordinate=Coordinate(latitude=lat, longitude=lng),
                            name=name,
                            image_url=image_urls[0] if image_urls else None,
                        ),
                        description=item.get("abstract") or "No description",
                        estimated_time=DEFAULT_ESTIMATED_TIME,
                        preferences=preferences,
                        image_urls=image_urls,
                    )
                )
            except ValidationError as e:
                self.logger.warning(f"Skipping malformed activity {name}: {e}")

        return activities

    async def get_activities_near(
        self, coordinate: Coordinate, radius_meters: int = 5000, limit: int = 5
    ) -> List[Activity]:
        """
        Fetch activities around a coordinate

        Args:
            coordinate: Centre of the search
            radius_meters: Search radius in meters
            limit: Maximum number of activities

        Returns:
            List of activities, possibly empty
        """
        params = self._base_params(limit)
        params["geo.dist"] = f"{coordinate.latitude},{coordinate.longitude},{radius_meters}"
        return await self._fetch(params)

    async def get_activities_by_preferences(
        self, preferences: List[Preference], limit: int = 5
    ) -> List[Activity]:
        """
        Fetch activities matching every given preference

        Args:
            preferences: Preferences that must all match
            limit: Maximum number of activities

        Returns:
            List of activities, possibly empty
        """
        params = self._base_params(limit)
        params.update(facet_params(preferences))
        return await self._fetch(params, list(preferences))
