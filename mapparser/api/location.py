# mapparser/api/location.py
"""Derive a single "Region, Country" label for a route.

The destination is geocoded first (coordinates preferred over its name,
with one retry on the unshortened name). When that yields nothing, a local
heuristic votes over the comma-separated tails of the waypoint names.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Union

import requests

from mapparser.api.geocoding import Geocoder
from mapparser.api.models import GeocodeResult, MapParserError, Waypoint
from mapparser.api.names import (
    clean_waypoint_name,
    is_coordinate_name,
    is_numeric_name,
    is_placeholder_name,
)

logger = logging.getLogger(__name__)

MAX_BARE_NAME_LENGTH = 30
_DIGITS_RE = re.compile(r"\d+")
_SPACES_RE = re.compile(r"\s+")

RouteInput = Union[Sequence[Waypoint], Sequence[str], str]


def summarize_location(route: RouteInput, geocoder: Optional[Geocoder] = None) -> str:
    """Return "Region, Country" for ``route`` or ``""`` when nothing fits.

    ``route`` may be parsed waypoints, a list of raw scraped names, or a
    single comma-joined name string.
    """
    waypoints = as_waypoints(route)
    if not waypoints:
        return ""

    if geocoder is not None:
        location = geocode_destination(waypoints[-1], geocoder)
        if location:
            return location
        logger.info("Geocoding found nothing for destination, using name heuristic")

    return fallback_location(waypoints)


def as_waypoints(route: RouteInput) -> List[Waypoint]:
    if isinstance(route, str):
        route = [route] if route.strip() else []
    waypoints: List[Waypoint] = []
    for item in route:
        if isinstance(item, Waypoint):
            waypoints.append(item)
        elif item and item.strip():
            waypoints.append(Waypoint(name=clean_waypoint_name(item), full_name=item))
    return waypoints


def geocode_destination(destination: Waypoint, geocoder: Geocoder) -> str:
    """Geocode one waypoint, retrying once with its full name."""
    result: Optional[GeocodeResult] = None
    try:
        if destination.coords is not None:
            result = geocoder.reverse(destination.coords.lat, destination.coords.lng)
        elif _is_queryable(destination.name):
            result = geocoder.geocode(destination.name)

        full_name = destination.full_name
        if result is None and full_name and full_name != destination.name and _is_queryable(full_name):
            logger.debug(f"Retrying geocode with full name: {full_name}")
            result = geocoder.geocode(full_name)
    except (requests.RequestException, MapParserError) as e:
        logger.warning(f"Geocoder unavailable for '{destination.name}': {e}")
        return ""

    return result.location if result else ""


def fallback_location(waypoints: Sequence[Waypoint]) -> str:
    """Most frequent "Region, Country" among the waypoint name tails.

    Ties go to the first combination seen. Without any multi-part name the
    destination's own short name is used when it looks like a place.
    """
    tally: dict = {}
    for wp in waypoints:
        parts = _name_parts(wp)
        if len(parts) < 2:
            continue
        country = parts[-1]
        region = _strip_digits(parts[-2])
        if region and country:
            key = f"{region}, {country}"
            tally[key] = tally.get(key, 0) + 1

    if tally:
        return max(tally, key=tally.get)

    for wp in reversed(waypoints):
        parts = _name_parts(wp)
        if len(parts) >= 2:
            return f"{parts[-2]}, {parts[-1]}"

    first = waypoints[-1].name.split(",")[0].strip()
    if (
        first
        and len(first) <= MAX_BARE_NAME_LENGTH
        and not is_numeric_name(first)
        and not is_coordinate_name(first)
        and not is_placeholder_name(first)
        and not first.startswith("Point (")
    ):
        return first
    return ""


def _name_parts(wp: Waypoint) -> List[str]:
    label = wp.full_name or wp.name
    if not label or is_coordinate_name(label) or is_coordinate_name(wp.name):
        return []
    return [p.strip() for p in label.split(",") if p.strip()]


def _strip_digits(text: str) -> str:
    return _SPACES_RE.sub(" ", _DIGITS_RE.sub("", text)).strip(" -")


def _is_queryable(name: str) -> bool:
    return bool(name) and not is_coordinate_name(name) and not is_placeholder_name(name)
