"""
Duration service combining the duration cache with the matrix client
"""

import logging
from typing import List, Optional

from tripplanner.cache.base import DurationCache
from tripplanner.core.models import Location, TransportMode

from .client import DurationMatrix, MatrixClient


class DurationService:
    """
    Answers duration questions from the cache first and the routing
    service second, feeding every fresh answer back into the cache
    """

    def __init__(self, cache: DurationCache, client: MatrixClient):
        self.cache = cache
        self.client = client
        self.logger = logging.getLogger(__name__)

    async def _cached_matrix(
        self, locations: List[Location], mode: TransportMode
    ) -> Optional[DurationMatrix]:
        """Matrix built from cache hits alone, or None if any pair is missing"""
        matrix: DurationMatrix = []
        for origin in locations:
            row = []
            for destination in locations:
                if origin.coordinate == destination.coordinate:
                    row.append(0.0)
                    continue
                entry = await self.cache.get_duration(
                    origin.coordinate, destination.coordinate, mode
                )
                if entry is None:
                    return None
                row.append(entry.duration)
            matrix.append(row)
        return matrix

    async def get_duration_matrix(
        self, locations: List[Location], mode: TransportMode = TransportMode.CAR
    ) -> Optional[DurationMatrix]:
        """
        Pairwise travel durations between locations

        Args:
            locations: Locations in matrix order
            mode: Transport mode

        Returns:
            N x N durations in seconds, or None if the routing service failed
        """
        if len(locations) < 2:
            return None

        cached = await self._cached_matrix(locations, mode)
        if cached is not None:
            self.logger.debug(f"Duration matrix for {len(locations)} locations served from cache")
            return cached

        matrix = await self.client.fetch_durations(
            [location.coordinate for location in locations], mode
        )
        if matrix is None:
            self.logger.error(f"Could not compute durations for {len(locations)} locations")
            return None

        saved = 0
        for i, origin in enumerate(locations):
            for j, destination in enumerate(locations):
                if i == j or matrix[i][j] is None:
                    continue
                await self.cache.save_duration(
                    origin.coordinate, destination.coordinate, matrix[i][j], mode
                )
                saved += 1

        self.logger.info(f"Cached {saved} durations from the routing service")
        return matrix

    async def get_duration(
        self,
        origin: Location,
        destination: Location,
        mode: TransportMode = TransportMode.CAR,
    ) -> Optional[float]:
        """Travel duration in seconds between two locations, or None"""
        entry = await self.cache.get_duration(origin.coordinate, destination.coordinate, mode)
        if entry is not None:
            return entry.duration

        matrix = await self.get_duration_matrix([origin, destination], mode)
        return matrix[0][1] if matrix else None
