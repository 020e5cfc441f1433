from datetime import datetime
from unittest.mock import MagicMock

from mapparser.api.models import Coords, GeocodeResult, ResolutionError, Trip
from mapparser.api.services.route_service import RouteService, current_year

SHORT_LINK = "https://maps.app.goo.gl/AbCdEfGhIjK1"

# Two stops known only by position: parser names them "lat, lng".
UNNAMED_ROUTE = (
    "https://www.google.com/maps/dir/data=!4m10!4m9"
    "!1m5!1m1!1sA!2m2!1d-122.4783!2d37.8199"
    "!1m5!1m1!1sB!2m2!1d-122.423!2d37.8267"
)
NAMED_ROUTE = (
    "https://www.google.com/maps/dir/Pier+39,+San+Francisco,+CA/Alcatraz+Island,+San+Francisco,+CA/"
    "data=!4m10!4m9!1m5!1m1!1sA!2m2!1d-122.41!2d37.81!1m5!1m1!1sB!2m2!1d-122.423!2d37.8267"
)


def test_good_fast_result_needs_one_call(stub_resolver, resolved):
    resolver = stub_resolver(fast=resolved(NAMED_ROUTE, original_url=SHORT_LINK))
    route = RouteService(resolver).resolve_and_parse(SHORT_LINK)

    assert resolver.calls == [(SHORT_LINK, "fast")]
    assert [wp.name for wp in route.waypoints] == ["Pier 39", "Alcatraz Island"]
    assert route.route_summary == "Pier 39 → Alcatraz Island"


def test_low_quality_escalates_exactly_once(stub_resolver, resolved):
    resolver = stub_resolver(
        fast=resolved(UNNAMED_ROUTE),
        browser=resolved(UNNAMED_ROUTE, browser_used=True),
    )
    route = RouteService(resolver).resolve_and_parse(SHORT_LINK)

    assert resolver.calls == [(SHORT_LINK, "fast"), (SHORT_LINK, "browser")]
    assert route.waypoints[0].name == "37.8199, -122.4783"


def test_escalation_is_final_even_if_browser_flag_missing(stub_resolver, resolved):
    resolver = stub_resolver(fast=resolved(UNNAMED_ROUTE), browser=resolved(UNNAMED_ROUTE))
    RouteService(resolver).resolve_and_parse(SHORT_LINK)

    assert len(resolver.calls) == 2


def test_scraped_names_override_parsed_names(stub_resolver, resolved):
    scraped = ["Golden Gate Bridge, San Francisco, CA 94129, USA", "Alcatraz Island, San Francisco, CA"]
    resolver = stub_resolver(
        fast=resolved(UNNAMED_ROUTE),
        browser=resolved(UNNAMED_ROUTE, waypoint_names=scraped, browser_used=True),
    )
    route = RouteService(resolver).resolve_and_parse(SHORT_LINK)

    assert [wp.name for wp in route.waypoints] == ["Golden Gate Bridge", "Alcatraz Island"]
    assert route.waypoints[0].full_name == scraped[0]
    assert route.waypoints[0].coords == Coords(37.8199, -122.4783)
    assert route.raw_names == scraped


def test_deep_link_starts_in_browser_mode(stub_resolver, resolved):
    resolver = stub_resolver(browser=resolved(UNNAMED_ROUTE, browser_used=True))
    RouteService(resolver).resolve_and_parse(SHORT_LINK, use_browser=True)

    assert resolver.calls == [(SHORT_LINK, "browser")]


def test_sentinel_in_resolved_url_escalates(stub_resolver, resolved):
    sentinel_url = "https://www.google.com/maps/dir/''/Alcatraz+Island/"
    resolver = stub_resolver(
        fast=resolved(sentinel_url),
        browser=resolved(NAMED_ROUTE, browser_used=True),
    )
    route = RouteService(resolver).resolve_and_parse(SHORT_LINK)

    assert [mode for _, mode in resolver.calls] == ["fast", "browser"]
    assert route.waypoints[0].name == "Pier 39"


def test_total_resolution_failure_parses_input(stub_resolver):
    resolver = stub_resolver(fast=ResolutionError("timeout"), browser=ResolutionError("timeout"))
    route = RouteService(resolver).resolve_and_parse(NAMED_ROUTE)

    assert len(resolver.calls) == 2
    assert [wp.name for wp in route.waypoints] == ["Pier 39", "Alcatraz Island"]
    assert route.resolved_url == NAMED_ROUTE


def test_builtin_timeout_degrades_to_input_url(stub_resolver):
    resolver = stub_resolver(fast=TimeoutError("timed out"), browser=TimeoutError("timed out"))
    route = RouteService(resolver).resolve_and_parse("https://www.google.com/maps/dir/A/B/")

    assert [mode for _, mode in resolver.calls] == ["fast", "browser"]
    assert [wp.name for wp in route.waypoints] == ["A", "B"]


def test_input_is_normalized(stub_resolver, resolved):
    resolver = stub_resolver(fast=lambda url: resolved(NAMED_ROUTE, original_url=url))
    service = RouteService(resolver)

    service.resolve_and_parse("  AbCdEfGhIjK1 ")
    service.resolve_and_parse("maps.app.goo.gl/xyz")

    assert resolver.calls == [
        ("https://maps.app.goo.gl/AbCdEfGhIjK1", "fast"),
        ("https://maps.app.goo.gl/xyz", "fast"),
    ]


def test_blank_input_never_calls_resolver(stub_resolver):
    resolver = stub_resolver()
    route = RouteService(resolver).resolve_and_parse("   ")

    assert route.waypoints == []
    assert resolver.calls == []


def test_analyze_upgrades_coordinate_names(stub_resolver, resolved):
    geocoder = MagicMock()
    geocoder.reverse.side_effect = [
        GeocodeResult("California, US", "39, Pier 39, San Francisco, CA 94133, USA"),
        None,
    ]
    resolver = stub_resolver(
        fast=resolved(UNNAMED_ROUTE),
        browser=resolved(UNNAMED_ROUTE, browser_used=True),
    )
    route = RouteService(resolver, geocoder).analyze(SHORT_LINK)

    assert route.waypoints[0].name == "39 Pier 39"
    assert route.waypoints[0].full_name == "39, Pier 39, San Francisco, CA 94133, USA"
    assert route.waypoints[1].name == "37.8267, -122.4230"


def test_build_trip_fields(stub_resolver, resolved):
    geocoder = MagicMock()
    geocoder.reverse.return_value = GeocodeResult("California, US")
    resolver = stub_resolver(fast=resolved(NAMED_ROUTE))
    fields = RouteService(resolver, geocoder).build_trip_fields(SHORT_LINK)

    assert fields == {
        "year": current_year(),
        "location": "California, US",
        "route_summary": "Pier 39 → Alcatraz Island",
    }


def test_fill_missing_trip_fields_keeps_existing_values(stub_resolver, resolved):
    resolver = stub_resolver(fast=resolved(NAMED_ROUTE))
    trip = Trip(id=3, user_id=1, name="Bay", link=SHORT_LINK, location="Somewhere, US",
                created_at=datetime(2025, 1, 1))

    assert RouteService(resolver).fill_missing_trip_fields(trip) is True
    assert trip.location == "Somewhere, US"
    assert trip.year == current_year()
    assert trip.route_summary == "Pier 39 → Alcatraz Island"


def test_complete_trip_is_left_alone(stub_resolver):
    resolver = stub_resolver()
    trip = Trip(id=3, user_id=1, name="Bay", link=SHORT_LINK, year="2024",
                location="California, US", route_summary="A → B")

    assert RouteService(resolver).fill_missing_trip_fields(trip) is False
    assert resolver.calls == []
