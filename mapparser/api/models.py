"""Shared data structures for route parsing.

Waypoints, resolver output and trip records live here so the parser,
the resolver and the HTTP layer all agree on one definition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Coords:
    """A WGS84 position."""

    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass
class Waypoint:
    """A single stop on a route, in route order."""

    name: str  # short display label, e.g. "Golden Gate Bridge"
    full_name: Optional[str] = None  # unshortened name, used as a geocoding retry
    coords: Optional[Coords] = None

    def to_dict(self) -> dict:
        data = {"name": self.name}
        if self.full_name:
            data["fullName"] = self.full_name
        if self.coords is not None:
            data["coords"] = self.coords.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Waypoint":
        coords = data.get("coords")
        return cls(
            name=str(data.get("name") or ""),
            full_name=data.get("fullName") or data.get("full_name"),
            coords=Coords(float(coords["lat"]), float(coords["lng"])) if coords else None,
        )


@dataclass
class ResolvedRouteInfo:
    """What a resolver learned about a raw route link."""

    original_url: str
    resolved_url: str
    waypoint_names: Optional[List[str]] = None  # index-aligned with parsed waypoints
    browser_used: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "originalUrl": self.original_url,
            "resolvedUrl": self.resolved_url,
        }
        if self.waypoint_names is not None:
            data["waypointNames"] = list(self.waypoint_names)
        if self.browser_used:
            data["browserUsed"] = True
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class GeocodeResult:
    """A geocoder hit: a "Region, Country" label plus the full address."""

    location: str
    full_address: str = ""

    def to_dict(self) -> dict:
        return {"location": self.location, "full_address": self.full_address}


@dataclass
class ParsedRoute:
    """Waypoints of one resolved link and the raw names scraped for it."""

    waypoints: List[Waypoint] = field(default_factory=list)
    raw_names: List[str] = field(default_factory=list)
    resolved_url: str = ""

    @property
    def route_summary(self) -> str:
        return " → ".join(wp.name for wp in self.waypoints)

    def to_dict(self) -> dict:
        return {
            "waypoints": [wp.to_dict() for wp in self.waypoints],
            "rawNames": list(self.raw_names),
            "resolvedUrl": self.resolved_url,
            "routeSummary": self.route_summary,
        }


@dataclass
class Trip:
    """A saved route. Persistence is owned elsewhere; we only fill fields."""

    id: int
    user_id: int
    name: str
    link: str
    year: Optional[str] = None
    location: Optional[str] = None
    note: Optional[str] = None
    route_summary: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "link": self.link,
            "year": self.year,
            "location": self.location,
            "note": self.note,
            "route_summary": self.route_summary,
            "created_at": self.created_at.isoformat(),
        }


class MapParserError(Exception):
    """Base error for the route pipeline."""


class ResolutionError(MapParserError):
    """A route link could not be resolved (network failure or timeout)."""


class RoutingError(MapParserError):
    """The road-routing backend failed or returned no route."""


class NoRouteFound(RoutingError):
    """The routing backend answered but had no route for the stops."""
