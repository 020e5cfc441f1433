from unittest.mock import MagicMock

import pytest
import requests

from mapparser.api.models import ResolutionError
from mapparser.api.resolver import (
    BROWSER,
    GoogleMapsResolver,
    RenderedPage,
    force_english,
    normalize_route_url,
    unwrap_consent,
)

CONFIG = {"timeout": 5, "short_link_host": "maps.app.goo.gl", "user_agent": "test-agent"}
SHORT_LINK = "https://maps.app.goo.gl/AbCdEfGhIjK1"
DIRECTIONS = "https://www.google.com/maps/dir/Pier+39/Alcatraz+Island/"
SENTINEL = "https://www.google.com/maps/dir/%27%27/Alcatraz+Island/"


def _session(final_url=None, error=None):
    session = MagicMock()
    if error is not None:
        session.head.side_effect = error
    else:
        session.head.return_value.url = final_url
    return session


def test_directions_link_is_already_resolved():
    session = _session()
    info = GoogleMapsResolver(session=session, config=CONFIG).resolve(DIRECTIONS)

    assert info.resolved_url == DIRECTIONS
    assert info.browser_used is False
    session.head.assert_not_called()


def test_short_link_follows_redirects():
    session = _session(final_url=DIRECTIONS)
    info = GoogleMapsResolver(session=session, config=CONFIG).resolve(SHORT_LINK)

    assert info.original_url == SHORT_LINK
    assert info.resolved_url == DIRECTIONS
    session.head.assert_called_once_with(SHORT_LINK, allow_redirects=True, timeout=5)


def test_consent_page_is_unwrapped():
    consent = "https://consent.google.com/ml?continue=https://www.google.com/maps/dir/A/B/&gl=US"
    info = GoogleMapsResolver(session=_session(final_url=consent), config=CONFIG).resolve(SHORT_LINK)

    assert info.resolved_url == "https://www.google.com/maps/dir/A/B/"


def test_fast_network_failure_raises():
    resolver = GoogleMapsResolver(session=_session(error=requests.ConnectionError("down")), config=CONFIG)

    with pytest.raises(ResolutionError):
        resolver.resolve(SHORT_LINK)


def test_sentinel_after_redirect_upgrades_to_browser():
    renderer = MagicMock(return_value=RenderedPage(
        url="https://www.google.com/maps/dir/Pier+39/Alcatraz+Island/?hl=en",
        waypoint_names=["Pier 39, San Francisco, CA", "''", "  ", "Alcatraz Island"],
    ))
    resolver = GoogleMapsResolver(session=_session(final_url=SENTINEL), renderer=renderer, config=CONFIG)
    info = resolver.resolve(SHORT_LINK)

    assert info.original_url == SHORT_LINK
    assert info.browser_used is True
    assert info.waypoint_names == ["Pier 39, San Francisco, CA", "Alcatraz Island"]
    rendered_url = renderer.call_args.args[0]
    assert "hl=en" in rendered_url and "gl=us" in rendered_url


def test_sentinel_directions_link_goes_straight_to_browser():
    renderer = MagicMock(return_value=RenderedPage(url=DIRECTIONS, waypoint_names=["Pier 39"]))
    session = _session()
    info = GoogleMapsResolver(session=session, renderer=renderer, config=CONFIG).resolve(SENTINEL)

    assert info.waypoint_names == ["Pier 39"]
    session.head.assert_not_called()


def test_browser_mode_without_renderer_follows_redirects():
    info = GoogleMapsResolver(session=_session(final_url=DIRECTIONS), config=CONFIG).resolve(SHORT_LINK, BROWSER)

    assert info.resolved_url == DIRECTIONS
    assert info.browser_used is True
    assert info.waypoint_names == []
    assert info.error is None


def test_browser_failure_degrades_to_input_url():
    renderer = MagicMock(side_effect=RuntimeError("browser crashed"))
    session = _session(error=requests.Timeout("slow"))
    info = GoogleMapsResolver(session=session, renderer=renderer, config=CONFIG).resolve(SHORT_LINK, BROWSER)

    assert info.resolved_url == SHORT_LINK
    assert info.browser_used is True
    assert info.error == "browser crashed"


def test_normalize_route_url():
    assert normalize_route_url("AbCdEfGhIjK1", "maps.app.goo.gl") == SHORT_LINK
    assert normalize_route_url("goo.gl/maps/xyz") == "https://goo.gl/maps/xyz"
    assert normalize_route_url("short") == "https://short"
    assert normalize_route_url(" http://example.com ") == "http://example.com"
    assert normalize_route_url("") == ""


def test_force_english_keeps_existing_query():
    url = force_english("https://www.google.com/maps/dir/A/B/?entry=ttu&hl=de")

    assert url.startswith("https://www.google.com/maps/dir/A/B/?")
    assert "entry=ttu" in url and "hl=en" in url and "gl=us" in url
    assert "hl=de" not in url


def test_unwrap_consent_leaves_other_urls():
    assert unwrap_consent(DIRECTIONS) == DIRECTIONS
