# mapparser/api/services/route_service.py
"""Service layer tying resolution, parsing and labelling together."""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from mapparser.api.geocoding import Geocoder
from mapparser.api.location import summarize_location
from mapparser.api.models import ParsedRoute, ResolutionError, Trip, Waypoint
from mapparser.api.names import (
    clean_waypoint_name,
    has_empty_waypoint_sentinel,
    is_coordinate_name,
    is_low_quality,
    is_numeric_name,
)
from mapparser.api.resolver import BROWSER, FAST, UrlResolver, normalize_route_url
from mapparser.api.url_parser import parse_map_url

logger = logging.getLogger(__name__)


def current_year() -> str:
    return str(datetime.now().year)


def overlay_names(waypoints: Sequence[Waypoint], names: Sequence[str]) -> None:
    """Write scraped names onto parsed waypoints at matching indices."""
    for wp, raw in zip(waypoints, names):
        if raw and raw.strip():
            wp.name = clean_waypoint_name(raw)
            wp.full_name = raw


class RouteService:
    """Resolves a route link and parses it, escalating to browser mode once.

    Args:
        resolver: Any object with ``resolve(url, mode) -> ResolvedRouteInfo``.
        geocoder: Optional geocoder for names and trip locations.
    """

    def __init__(self, resolver: UrlResolver, geocoder: Optional[Geocoder] = None):
        self.resolver = resolver
        self.geocoder = geocoder

    def resolve_and_parse(self, raw_url: str, use_browser: bool = False) -> ParsedRoute:
        """Resolve ``raw_url`` and return its waypoints.

        The fast resolver is tried first unless ``use_browser`` is set. A
        failed or low-quality fast result is retried exactly once in browser
        mode; whatever that returns is final. Never raises for network
        problems: the input URL itself is parsed as a last resort.
        """
        target = normalize_route_url(raw_url)
        if not target:
            return ParsedRoute()

        mode = BROWSER if use_browser else FAST
        route, escalate = self._attempt(target, mode)
        if escalate and mode == FAST:
            logger.info("Poor quality result, retrying with browser mode...")
            route, _ = self._attempt(target, BROWSER)
        return route

    def analyze(self, raw_url: str, use_browser: bool = False) -> ParsedRoute:
        """Full interactive flow: resolve, parse, then name coordinate stops."""
        route = self.resolve_and_parse(raw_url, use_browser=use_browser)
        if self.geocoder is not None:
            self.upgrade_coordinate_names(route.waypoints)
        return route

    def _attempt(self, target: str, mode: str) -> Tuple[ParsedRoute, bool]:
        try:
            info = self.resolver.resolve(target, mode)
        except (ResolutionError, requests.RequestException, OSError) as e:
            logger.warning(f"Resolution error ({mode}) for {target}: {e}")
            return ParsedRoute(parse_map_url(target), [], target), True

        if info.error:
            logger.warning(f"Resolver degraded for {target}: {info.error}")

        waypoints = parse_map_url(info.resolved_url)

        if info.waypoint_names:
            overlay_names(waypoints, info.waypoint_names)
            return ParsedRoute(waypoints, list(info.waypoint_names), info.resolved_url), False

        escalate = not info.browser_used and (
            has_empty_waypoint_sentinel(info.resolved_url) or is_low_quality(waypoints)
        )
        return ParsedRoute(waypoints, [], info.resolved_url), escalate

    def upgrade_coordinate_names(self, waypoints: List[Waypoint]) -> None:
        """Replace coordinate or house-number names with reverse-geocoded ones."""
        for wp in waypoints:
            if wp.coords is None:
                continue
            if not (is_coordinate_name(wp.name) or is_numeric_name(wp.name)):
                continue
            try:
                result = self.geocoder.reverse(wp.coords.lat, wp.coords.lng)
            except requests.RequestException as e:
                logger.error(f"Failed to reverse geocode {wp.name}: {e}")
                continue
            if not result or not result.full_address:
                continue

            parts = [p.strip() for p in result.full_address.split(",")]
            name = parts[0]
            if is_numeric_name(name) and len(parts) > 1:
                name = f"{name} {parts[1]}"
            wp.name = name
            wp.full_name = result.full_address

    def summarize(self, route: ParsedRoute) -> str:
        """Location label for a parsed route ("" when nothing fits)."""
        query = route.waypoints if route.waypoints else route.raw_names
        return summarize_location(query, self.geocoder)

    def build_trip_fields(self, link: str) -> Dict[str, str]:
        """Year, location and route summary for a link about to be saved."""
        route = self.resolve_and_parse(link)
        return {
            "year": current_year(),
            "location": self.summarize(route),
            "route_summary": route.route_summary,
        }

    def fill_missing_trip_fields(self, trip: Trip) -> bool:
        """Fill blank year/location/summary on ``trip``; True if it changed."""
        needs_year = not (trip.year or "").strip()
        needs_location = not (trip.location or "").strip()
        needs_summary = not (trip.route_summary or "").strip()

        if not (needs_year or needs_location or needs_summary) or not (trip.link or "").strip():
            return False

        route = self.resolve_and_parse(trip.link)
        changed = False

        if needs_year:
            trip.year = current_year()
            changed = True
        if needs_summary and route.waypoints:
            trip.route_summary = route.route_summary
            changed = True
        if needs_location:
            location = self.summarize(route)
            if location:
                trip.location = location
                changed = True

        if changed:
            logger.info(f"Filled missing fields for trip {trip.id}")
        return changed
