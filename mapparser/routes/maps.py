# mapparser/routes/maps.py
"""Route-link API blueprint."""

import logging
from typing import Optional
from urllib.parse import unquote

from flask import Blueprint, Response, jsonify, request

from mapparser.api.export import to_csv, to_kml
from mapparser.api.geocoding import Geocoder, get_default_geocoder
from mapparser.api.location import summarize_location
from mapparser.api.models import Coords, NoRouteFound, ResolutionError, RoutingError, Waypoint
from mapparser.api.resolver import FAST, GoogleMapsResolver
from mapparser.api.services.map_service import MapService
from mapparser.api.services.route_service import RouteService

logger = logging.getLogger(__name__)

KML_MIMETYPE = "application/vnd.google-earth.kml+xml"


def create_maps_blueprint(
    route_service: Optional[RouteService] = None,
    map_service: Optional[MapService] = None,
    geocoder: Optional[Geocoder] = None,
):
    """Create and configure the maps API blueprint.

    Args:
        route_service: Resolution + parsing pipeline; built from the default
            resolver and geocoder when omitted
        map_service: Road routing helper
        geocoder: Geocoder used by ``/api/geocode``

    Returns:
        Configured Flask Blueprint
    """
    geocoder = geocoder or (route_service.geocoder if route_service else None) or get_default_geocoder()
    route_service = route_service or RouteService(GoogleMapsResolver(), geocoder)
    map_service = map_service or MapService()

    maps_bp = Blueprint("maps", __name__, url_prefix="/api")

    @maps_bp.route("/resolve")
    def api_resolve():
        """Resolve a raw link to its Google Maps URL."""
        url_param = request.args.get("url")
        if not url_param:
            return jsonify({"error": "Missing URL parameter"}), 400

        url = unquote(url_param)
        mode = request.args.get("mode", FAST)
        try:
            info = route_service.resolver.resolve(url, mode)
        except ResolutionError as e:
            logger.error(f"Resolution error: {e}")
            return jsonify({"error": "Failed to resolve URL"}), 500
        return jsonify(info.to_dict())

    @maps_bp.route("/parse")
    def api_parse():
        """Resolve, parse and name the waypoints of a route link."""
        url_param = request.args.get("url")
        if not url_param:
            return jsonify({"error": "Missing URL parameter"}), 400

        use_browser = request.args.get("mode") == "browser"
        route = route_service.analyze(url_param, use_browser=use_browser)
        if not route.waypoints:
            return jsonify({"error": "No waypoints found. Ensure it is a valid Directions link."}), 404

        payload = route.to_dict()
        payload["bounds"] = MapService.calculate_bounds(route.waypoints)
        return jsonify(payload)

    @maps_bp.route("/geocode")
    def api_geocode():
        """Forward (``query``) or reverse (``lat``/``lng``) geocoding."""
        query = request.args.get("query")
        lat = request.args.get("lat")
        lng = request.args.get("lng")

        if lat and lng:
            try:
                result = geocoder.reverse(float(lat), float(lng))
            except ValueError:
                return jsonify({"error": "Invalid coordinates"}), 400
        elif query:
            result = geocoder.geocode(query)
        else:
            return jsonify({"error": "Missing query or coordinates"}), 400

        if result is None:
            return jsonify({"error": "No results found"}), 404
        return jsonify(result.to_dict())

    @maps_bp.route("/location", methods=["POST"])
    def api_location():
        """Summarize a route as "Region, Country"."""
        data = request.get_json(silent=True) or {}
        try:
            if data.get("waypoints"):
                route = _decode_waypoints(data["waypoints"])
            else:
                route = [str(name) for name in data.get("names") or []]
        except (KeyError, TypeError, ValueError, AttributeError):
            return jsonify({"error": "Invalid waypoints"}), 400
        return jsonify({"location": summarize_location(route, geocoder)})

    @maps_bp.route("/route", methods=["POST"])
    def api_route():
        """Road route through the given coordinates."""
        data = request.get_json(silent=True) or {}
        try:
            raw_coords = data.get("coordinates") or []
            coordinates = [Coords(float(c["lat"]), float(c["lng"])) for c in raw_coords]
            result = map_service.fetch_road_route(coordinates, data.get("mode", "driving"))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            return jsonify({"error": str(e) or "At least 2 coordinates are required"}), 400
        except NoRouteFound:
            return jsonify({"error": "No route found"}), 404
        except RoutingError as e:
            logger.error(f"Routing error: {e}")
            return jsonify({"error": "Failed to fetch route"}), 500
        return jsonify(result)

    @maps_bp.route("/export/csv", methods=["POST"])
    def api_export_csv():
        try:
            waypoints = _waypoints_from_body()
        except (KeyError, TypeError, ValueError, AttributeError):
            return jsonify({"error": "Invalid waypoints"}), 400
        return Response(
            to_csv(waypoints),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=route.csv"},
        )

    @maps_bp.route("/export/kml", methods=["POST"])
    def api_export_kml():
        try:
            waypoints = _waypoints_from_body()
        except (KeyError, TypeError, ValueError, AttributeError):
            return jsonify({"error": "Invalid waypoints"}), 400
        return Response(
            to_kml(waypoints),
            mimetype=KML_MIMETYPE,
            headers={"Content-Disposition": "attachment; filename=route.kml"},
        )

    return maps_bp


def _waypoints_from_body():
    data = request.get_json(silent=True) or {}
    return _decode_waypoints(data.get("waypoints") or [])


def _decode_waypoints(items):
    """Raises KeyError, TypeError, ValueError or AttributeError on bad input."""
    if not isinstance(items, list):
        raise TypeError("waypoints must be a list")
    return [Waypoint.from_dict(wp) for wp in items]
