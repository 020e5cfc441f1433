# mapparser/api/resolver.py
"""Resolve raw route links (short links, consent pages) to Google Maps URLs.

Two strategies exist:

* fast – an HTTP ``HEAD`` that follows redirects; cheap but only sees what
  Google renders server-side.
* browser – hands the link to an injected :data:`BrowserRenderer` which can
  observe client-side resolved place names. The renderer is an opaque
  collaborator (a headless browser service, a test stub...); without one the
  browser path degrades to the fast path.

Anything satisfying :class:`UrlResolver` can be passed to the route service,
so tests never have to launch a browser or touch the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol
from urllib.parse import parse_qs, parse_qsl, unquote, urlencode, urlsplit, urlunsplit

import requests

from mapparser.api.config import get_resolver_config
from mapparser.api.models import ResolutionError, ResolvedRouteInfo
from mapparser.api.names import has_empty_waypoint_sentinel, is_empty_sentinel

logger = logging.getLogger(__name__)

FAST = "fast"
BROWSER = "browser"

CONSENT_HOST = "consent.google.com"


@dataclass
class RenderedPage:
    """What a browser renderer saw after navigating to a link."""

    url: str
    waypoint_names: List[str] = field(default_factory=list)


BrowserRenderer = Callable[[str], RenderedPage]


class UrlResolver(Protocol):
    def resolve(self, url: str, mode: str = FAST) -> ResolvedRouteInfo: ...


def normalize_route_url(raw: str, short_link_host: Optional[str] = None) -> str:
    """Turn user input into an absolute URL.

    A bare token (no dot, no slash, at least 10 characters) is taken as a
    short-link id; anything else without a scheme gets ``https://``.
    """
    target = (raw or "").strip()
    if not target:
        return ""
    if target.startswith("http"):
        return target
    if "." not in target and "/" not in target and len(target) >= 10:
        host = short_link_host or get_resolver_config()["short_link_host"]
        return f"https://{host}/{target}"
    return f"https://{target}"


def is_directions_url(url: str) -> bool:
    return "/dir/" in url


def unwrap_consent(url: str) -> str:
    """Return the ``continue`` target of a Google consent interstitial."""
    parts = urlsplit(url)
    if parts.netloc.endswith(CONSENT_HOST):
        target = parse_qs(parts.query).get("continue")
        if target:
            return unquote(target[0])
    return url


def force_english(url: str) -> str:
    """Pin ``hl=en&gl=us`` so rendered names do not depend on server locale."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    query.update({"hl": "en", "gl": "us"})
    return urlunsplit(parts._replace(query=urlencode(query, safe="!:,@")))


class GoogleMapsResolver:
    """Resolver implementing the server-side resolve policy.

    * direct ``/dir/`` links are already resolved and returned as-is
    * an empty-waypoint sentinel, or ``mode="browser"``, goes to the browser
    * otherwise redirects are followed; a resolved link that still carries
      the sentinel is re-resolved in the browser
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        renderer: Optional[BrowserRenderer] = None,
        config: Optional[dict] = None,
    ):
        cfg = config or get_resolver_config()
        self.timeout = cfg["timeout"]
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": cfg["user_agent"],
            "Accept-Language": "en-US,en;q=0.9",
        })
        self.renderer = renderer

    def resolve(self, url: str, mode: str = FAST) -> ResolvedRouteInfo:
        """Resolve ``url``.

        Raises:
            ResolutionError: fast mode only, when the redirect chain fails.
        """
        if has_empty_waypoint_sentinel(url) or mode == BROWSER:
            return self.resolve_with_browser(url)

        if is_directions_url(url):
            return ResolvedRouteInfo(original_url=url, resolved_url=url)

        resolved = self.follow_redirects(url)
        if has_empty_waypoint_sentinel(resolved):
            logger.info("Resolved link has unnamed waypoints, upgrading to browser mode")
            info = self.resolve_with_browser(resolved)
            info.original_url = url
            return info

        return ResolvedRouteInfo(original_url=url, resolved_url=resolved)

    def follow_redirects(self, url: str) -> str:
        try:
            response = self.session.head(url, allow_redirects=True, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Redirect resolution failed for {url}: {e}")
            raise ResolutionError(f"Failed to resolve URL: {url}") from e
        return unwrap_consent(response.url)

    def resolve_with_browser(self, url: str) -> ResolvedRouteInfo:
        """Browser resolution; never raises.

        Falls back to a plain redirect-follow, then to the input itself.
        """
        if self.renderer is not None:
            try:
                page = self.renderer(force_english(url))
                names = [n for n in page.waypoint_names if n and n.strip() and not is_empty_sentinel(n)]
                logger.info(f"Browser resolved {url} with {len(names)} waypoint names")
                return ResolvedRouteInfo(
                    original_url=url,
                    resolved_url=page.url or url,
                    waypoint_names=names,
                    browser_used=True,
                )
            except Exception as e:
                logger.error(f"Browser rendering failed for {url}: {e}")
                error = str(e)
        else:
            logger.debug("No browser renderer configured, following redirects instead")
            error = None

        try:
            resolved = self.follow_redirects(url)
        except ResolutionError as e:
            return ResolvedRouteInfo(
                original_url=url,
                resolved_url=url,
                waypoint_names=[],
                browser_used=True,
                error=error or str(e),
            )
        return ResolvedRouteInfo(
            original_url=url,
            resolved_url=resolved,
            waypoint_names=[],
            browser_used=True,
        )


__all__ = [
    "BROWSER",
    "FAST",
    "BrowserRenderer",
    "GoogleMapsResolver",
    "RenderedPage",
    "UrlResolver",
    "force_english",
    "normalize_route_url",
    "unwrap_consent",
]
