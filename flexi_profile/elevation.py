"""Elevation lookup for traces whose KML carries no usable altitudes.

The default provider is the public OpenTopoData API, which accepts up to 100
``lat,lon`` locations per request and one request per second.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import requests

from .config import Settings
from .errors import ElevationResolutionError

logger = logging.getLogger(__name__)


class ElevationResolver(Protocol):
    def get_elevations(self, coordinates: Sequence[Tuple[float, float]]) -> List[float]:
        """Elevation in metres for each ``(lat, lon)``, same length and order."""
        ...


class OpenTopoDataResolver:
    def __init__(
        self,
        url: str,
        batch_size: int = 100,
        min_interval_s: float = 1.0,
        timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got: {batch_size}")
        self.url = url
        self.batch_size = batch_size
        self.min_interval_s = min_interval_s
        self.timeout_s = timeout_s
        self._http = session or requests
        self._sleep = sleep
        self._clock = clock
        self._last_request: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenTopoDataResolver":
        return cls(
            url=settings.opentopo_url,
            batch_size=settings.opentopo_batch_size,
            min_interval_s=settings.opentopo_min_interval_s,
            timeout_s=settings.opentopo_timeout_s,
        )

    def _wait_turn(self) -> None:
        if self._last_request is not None:
            elapsed = self._clock() - self._last_request
            if elapsed < self.min_interval_s:
                self._sleep(self.min_interval_s - elapsed)
        self._last_request = self._clock()

    def _fetch_batch(self, batch: Sequence[Tuple[float, float]]) -> List[float]:
        locations = "|".join(f"{lat},{lon}" for lat, lon in batch)
        try:
            response = self._http.get(self.url, params={"locations": locations}, timeout=self.timeout_s)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"OpenTopoData request failed: {e}")
            raise ElevationResolutionError(f"Failed to fetch elevations from OpenTopoData: {e}") from e

        status = data.get("status") if isinstance(data, dict) else None
        if status != "OK":
            logger.error(f"OpenTopoData returned status: {status}")
            raise ElevationResolutionError(f"OpenTopoData API returned status: {status}")

        try:
            elevations = [float(r["elevation"]) for r in data["results"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ElevationResolutionError(f"Malformed OpenTopoData response: {e}") from e
        if len(elevations) != len(batch):
            raise ElevationResolutionError(
                f"OpenTopoData returned {len(elevations)} elevations for {len(batch)} locations"
            )
        return elevations

    def get_elevations(self, coordinates: Sequence[Tuple[float, float]]) -> List[float]:
        if not coordinates:
            return []
        out: List[float] = []
        for i in range(0, len(coordinates), self.batch_size):
            batch = coordinates[i:i + self.batch_size]
            self._wait_turn()
            logger.debug(f"Requesting elevations {i}..{i + len(batch) - 1}")
            out.extend(self._fetch_batch(batch))
        logger.info(f"Resolved {len(out)} elevations from OpenTopoData")
        return out


class StaticElevationResolver:
    """Offline resolver returning the same elevation everywhere."""

    def __init__(self, elevation_m: float = 0.0):
        self.elevation_m = float(elevation_m)

    def get_elevations(self, coordinates: Sequence[Tuple[float, float]]) -> List[float]:
        return [self.elevation_m] * len(coordinates)


def create_resolver(settings: Optional[Settings] = None) -> ElevationResolver:
    settings = settings or Settings.from_env()
    provider = settings.elevation_provider
    if provider == "static":
        logger.info(f"Using static elevation resolver ({settings.static_elevation_m} m)")
        return StaticElevationResolver(settings.static_elevation_m)
    if provider != "opentopo":
        logger.warning(f'Unknown elevation provider: "{provider}". Using OpenTopoData as default.')
    logger.info(f"Using OpenTopoData elevation service at {settings.opentopo_url}")
    return OpenTopoDataResolver.from_settings(settings)
