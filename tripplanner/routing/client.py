"""
Mapbox Matrix API client for travel duration matrices
"""

import asyncio
import logging
import os
from typing import Callable, Dict, List, Optional, Set

import httpx
from pydantic import ValidationError

from tripplanner.core.models import Coordinate, TransportMode

from .models import OK_CODE, MatrixResponse, profile_for

DurationMatrix = List[List[Optional[float]]]
MatrixCallback = Callable[[Optional[DurationMatrix]], None]


class MatrixClient:
    """
    Async client for the Mapbox Matrix API

    Every kind of failure (transport, HTTP status, service status) comes back
    as None. No retries are attempted.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        timeout: int = 30,
        max_coordinates: int = 25,
    ):
        self.access_token = access_token or os.getenv("MAPBOX_ACCESS_TOKEN")
        self.base_url = "https://api.mapbox.com"
        self.timeout = timeout
        self.max_coordinates = max_coordinates
        self.logger = logging.getLogger(__name__)
        self._pending: Set[asyncio.Task] = set()

        if not self.access_token:
            raise ValueError("Mapbox access token required. Set MAPBOX_ACCESS_TOKEN")

    def build_url(self, coordinates: List[Coordinate], mode: TransportMode) -> str:
        """Matrix endpoint for the coordinates; Mapbox wants lng,lat pairs"""
        points = ";".join(f"{c.longitude},{c.latitude}" for c in coordinates)
        return f"{self.base_url}/directions-matrix/v1/mapbox/{profile_for(mode)}/{points}"

    @property
    def params(self) -> Dict[str, str]:
        return {"access_token": self.access_token, "annotations": "duration"}

    async def fetch_durations(
        self, coordinates: List[Coordinate], mode: TransportMode = TransportMode.CAR
    ) -> Optional[DurationMatrix]:
        """
        Request the N x N duration matrix between coordinates

        Args:
            coordinates: Between 2 and max_coordinates points
            mode: Transport mode, mapped to a Mapbox profile

        Returns:
            Durations in seconds exactly as returned by the service, or None
        """
        if not 2 <= len(coordinates) <= self.max_coordinates:
            self.logger.warning(
                f"Duration matrix needs 2 to {self.max_coordinates} coordinates, "
                f"got {len(coordinates)}"
            )
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.build_url(coordinates, mode), params=self.params
                )
                response.raise_for_status()
                body = MatrixResponse(**response.json())
        except httpx.HTTPStatusError as e:
            self.logger.error(
                f"Matrix request failed with status code {e.response.status_code}"
            )
            return None
        except httpx.HTTPError as e:
            self.logger.error(f"Matrix request execution failed: {e}")
            return None
        except (ValueError, TypeError, ValidationError) as e:
            self.logger.error(f"Error parsing matrix response: {e}")
            return None

        if body.code != OK_CODE or body.durations is None:
            self.logger.error(f"Matrix API error: {body.code} {body.message or ''}".rstrip())
            return None

        return body.durations

    def get_durations(
        self,
        coordinates: List[Coordinate],
        callback: MatrixCallback,
        mode: TransportMode = TransportMode.CAR,
    ) -> Optional[asyncio.Task]:
        """
        Callback flavour of fetch_durations

        With fewer than two coordinates the callback gets None right away and
        no task is created. Otherwise the request runs as a task on the
        running loop and the callback fires exactly once when it completes.
        A callback that fires after its caller lost interest is harmless:
        errors it raises are logged and dropped.

        Returns:
            The task delivering the result, or None if answered immediately
        """
        if len(coordinates) < 2:
            self._deliver(callback, None)
            return None

        async def run():
            self._deliver(callback, await self.fetch_durations(coordinates, mode))

        task = asyncio.get_running_loop().create_task(run())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _deliver(self, callback: MatrixCallback, result: Optional[DurationMatrix]):
        try:
            callback(result)
        except Exception as e:
            self.logger.error(f"Duration matrix callback raised: {e}")
