# mapparser/api/geocoding.py
"""Geocoding collaborators used to label a route with "Region, Country".

Two backends share one small interface (``geocode`` for a free-text query,
``reverse`` for a coordinate):

* :class:`GoogleGeocoder` – Google Geocoding API through ``googlemaps``;
  used when ``GOOGLE_MAPS_API_KEY`` is configured.
* :class:`NominatimGeocoder` – OpenStreetMap Nominatim over ``requests``;
  keyless fallback.

Both are lenient: network or parsing problems are logged and reported as
"not found" (``None``) so callers can degrade instead of failing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import googlemaps
import requests
from googlemaps.exceptions import ApiError, Timeout, TransportError

from mapparser.api.config import get_google_maps_config, get_nominatim_config
from mapparser.api.models import GeocodeResult

logger = logging.getLogger(__name__)

# Most specific administrative level first.
NOMINATIM_REGION_KEYS = (
    "state",
    "province",
    "region",
    "state_district",
    "county",
    "municipality",
    "city",
    "town",
    "village",
)
GOOGLE_REGION_TYPES = (
    "administrative_area_level_1",
    "administrative_area_level_2",
    "locality",
)


class Geocoder(Protocol):
    def geocode(self, query: str) -> Optional[GeocodeResult]: ...

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]: ...


def format_location(region: str, country: str) -> str:
    """Join region and country, falling back to whichever one exists."""
    if region and country:
        return f"{region}, {country}"
    return country or region or ""


# ────────────────────────────────────────────────────────────────────────────────
# Google
# ────────────────────────────────────────────────────────────────────────────────
class GoogleGeocoder:
    """Geocoder backed by the Google Geocoding API."""

    def __init__(self, client: Optional[googlemaps.Client] = None, language: str = "en"):
        self._client = client
        self.language = language

    def _get_client(self) -> Optional[googlemaps.Client]:
        """Return a cached googlemaps.Client instance."""
        if self._client is None:
            cfg = get_google_maps_config()
            api_key = cfg.get("api_key", "")
            if not api_key:
                logger.error("No Google Maps API key found in config")
                return None
            try:
                logger.info(f"Initializing Google Maps client with key: {api_key[:10]}...")
                self._client = googlemaps.Client(key=api_key)
            except ValueError as e:
                logger.error(f"Failed to initialize Google Maps client: {e}")
                return None
        return self._client

    def geocode(self, query: str) -> Optional[GeocodeResult]:
        client = self._get_client()
        if client is None or not query:
            return None
        try:
            logger.debug(f"Geocoding query: {query}")
            results = client.geocode(query, language=self.language)
        except (ApiError, TransportError, Timeout) as e:
            logger.error(f"Geocoding error for '{query}': {e}")
            return None
        return self._to_result(results, query)

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        client = self._get_client()
        if client is None:
            return None
        try:
            logger.debug(f"Reverse geocoding {lat},{lng}")
            results = client.reverse_geocode((lat, lng), language=self.language)
        except (ApiError, TransportError, Timeout) as e:
            logger.error(f"Reverse geocoding error for {lat},{lng}: {e}")
            return None
        return self._to_result(results, f"{lat},{lng}")

    @staticmethod
    def _to_result(results: List[Dict[str, Any]], label: str) -> Optional[GeocodeResult]:
        if not results:
            logger.warning(f"No results found for: {label}")
            return None

        top = results[0]
        components = top.get("address_components") or []
        region = ""
        for wanted in GOOGLE_REGION_TYPES:
            region = next(
                (c.get("long_name", "") for c in components if wanted in c.get("types", [])),
                "",
            )
            if region:
                break
        country = next(
            (c.get("short_name", "").upper() for c in components if "country" in c.get("types", [])),
            "",
        )

        location = format_location(region, country)
        if not location:
            return None
        return GeocodeResult(location=location, full_address=top.get("formatted_address", ""))


# ────────────────────────────────────────────────────────────────────────────────
# Nominatim
# ────────────────────────────────────────────────────────────────────────────────
class NominatimGeocoder:
    """Geocoder backed by OpenStreetMap Nominatim."""

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[dict] = None):
        cfg = config or get_nominatim_config()
        self.base_url = cfg["base_url"]
        self.timeout = cfg["timeout"]
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": cfg["user_agent"]})

    def geocode(self, query: str) -> Optional[GeocodeResult]:
        if not query:
            return None
        params = {
            "q": query,
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
            "accept-language": "en",
        }
        data = self._get("/search", params, query)
        if not isinstance(data, list) or not data:
            logger.warning(f"No results found for query: {query}")
            return None
        return self._to_result(data[0])

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        params = {
            "lat": lat,
            "lon": lng,
            "format": "json",
            "accept-language": "en",
        }
        data = self._get("/reverse", params, f"{lat},{lng}")
        if not isinstance(data, dict) or "address" not in data:
            logger.warning(f"No results found for {lat},{lng}")
            return None
        return self._to_result(data)

    def _get(self, endpoint: str, params: Dict[str, Any], label: str) -> Any:
        try:
            response = self.session.get(
                f"{self.base_url}{endpoint}", params=params, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Nominatim request failed for '{label}': {e}")
        except ValueError as e:
            logger.error(f"Nominatim returned invalid JSON for '{label}': {e}")
        return None

    @staticmethod
    def _to_result(place: Dict[str, Any]) -> Optional[GeocodeResult]:
        address = place.get("address") or {}
        region = next((address[k] for k in NOMINATIM_REGION_KEYS if address.get(k)), "")
        country_code = address.get("country_code")
        country = country_code.upper() if country_code else address.get("country", "")

        location = format_location(region, country)
        if not location:
            return None
        return GeocodeResult(location=location, full_address=place.get("display_name", ""))


def get_default_geocoder() -> Geocoder:
    """Google when an API key is configured, Nominatim otherwise."""
    cfg = get_google_maps_config()
    if cfg.get("api_key"):
        return GoogleGeocoder(language=cfg["language"])
    return NominatimGeocoder()


__all__ = [
    "Geocoder",
    "GoogleGeocoder",
    "NominatimGeocoder",
    "format_location",
    "get_default_geocoder",
]
