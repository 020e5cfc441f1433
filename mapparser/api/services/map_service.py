# mapparser/api/services/map_service.py
"""Service layer for map-related operations."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from mapparser.api.config import get_routing_config
from mapparser.api.models import Coords, NoRouteFound, RoutingError, Waypoint

logger = logging.getLogger(__name__)

OSRM_PROFILES = {
    "walking": "walking",
    "cycling": "cycling",
    "bicycling": "cycling",
}


class MapService:
    """Handles map geometry and road routing for parsed waypoints."""

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[dict] = None):
        cfg = config or get_routing_config()
        self.base_url = cfg["base_url"]
        self.timeout = cfg["timeout"]
        self.session = session or requests.Session()

    @staticmethod
    def validate_coordinates(lat: float, lng: float) -> bool:
        """Validate that coordinates are within valid ranges.

        Args:
            lat: Latitude
            lng: Longitude

        Returns:
            True if valid, False otherwise
        """
        return -90 <= lat <= 90 and -180 <= lng <= 180

    @staticmethod
    def calculate_bounds(waypoints: Sequence[Waypoint]) -> Dict[str, float]:
        """Calculate the bounding box of all located waypoints.

        Returns:
            Dictionary with north, south, east, west bounds, or {} when no
            waypoint has coordinates
        """
        located = [wp.coords for wp in waypoints if wp.coords is not None]
        if not located:
            return {}

        lats = [c.lat for c in located]
        lngs = [c.lng for c in located]
        return {
            'north': max(lats),
            'south': min(lats),
            'east': max(lngs),
            'west': min(lngs)
        }

    @staticmethod
    def profile_for_mode(mode: Optional[str]) -> str:
        """Map a travel mode (driving, walking, cycling) to an OSRM profile."""
        return OSRM_PROFILES.get(mode or "", "driving")

    def fetch_road_route(self, coordinates: Sequence[Coords], mode: str = "driving") -> Dict[str, Any]:
        """Road geometry through ``coordinates`` in order.

        Returns:
            ``{"route": [[lat, lng], ...], "distance": metres, "duration": seconds}``

        Raises:
            ValueError: fewer than two (valid) coordinates
            RoutingError: OSRM failed or found no route
        """
        if len(coordinates) < 2:
            raise ValueError("At least 2 coordinates are required")
        for c in coordinates:
            if not self.validate_coordinates(c.lat, c.lng):
                raise ValueError(f"Invalid coordinate: {c.lat},{c.lng}")

        profile = self.profile_for_mode(mode)
        coord_string = ";".join(f"{c.lng},{c.lat}" for c in coordinates)
        url = f"{self.base_url}/route/v1/{profile}/{coord_string}"

        try:
            data = self._get_route(url)
        except requests.RequestException as e:
            logger.error(f"OSRM request failed: {e}")
            raise RoutingError("Failed to fetch route") from e

        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFound("No route found")

        best = routes[0]
        route_coordinates: List[List[float]] = [
            [lat, lng] for lng, lat in best["geometry"]["coordinates"]
        ]
        logger.info(f"OSRM {profile} route: {len(route_coordinates)} points, {best.get('distance')} m")
        return {
            "route": route_coordinates,
            "distance": best.get("distance"),
            "duration": best.get("duration"),
        }

    @retry(
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, max=2),
        reraise=True,
    )
    def _get_route(self, url: str) -> Dict[str, Any]:
        response = self.session.get(
            url,
            params={"overview": "full", "geometries": "geojson"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise RoutingError("OSRM returned invalid JSON") from e


# Export for use in other modules
__all__ = ['MapService']
