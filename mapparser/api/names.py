# mapparser/api/names.py
"""Waypoint name helpers.

``clean_waypoint_name`` shortens a resolved place name for display. The
predicates below are shared by the parser and the escalation policy so both
agree on what a "coordinate name" or a "placeholder name" looks like.
"""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import unquote

from mapparser.api.models import Waypoint

# Both halves need a decimal point; "37,-122" is not treated as coordinates.
STRICT_COORD_RE = re.compile(r"^-?\d+\.\d+,\s*-?\d+\.\d+$")
NUMERIC_RE = re.compile(r"^\d+$")

POSTCODE_MARKER = "邮政编码"
PLACEHOLDER_PREFIX = "Waypoint "
EMPTY_SENTINELS = ("''", '""')


def clean_waypoint_name(raw: str) -> str:
    """Return the display-worthy part of a raw place name.

    * Coordinate pairs are returned unchanged.
    * Chinese addresses carrying a postcode block keep their first
      whitespace-separated token.
    * Everything else keeps the first comma-separated clause.
    """
    if not raw:
        return ""
    text = raw.strip()
    if STRICT_COORD_RE.match(text):
        return raw
    if POSTCODE_MARKER in raw:
        tokens = raw.split()
        return tokens[0] if tokens else ""
    return raw.split(",")[0].strip()


def is_coordinate_name(name: str) -> bool:
    return bool(name) and bool(STRICT_COORD_RE.match(name.strip()))


def is_numeric_name(name: str) -> bool:
    return bool(name) and bool(NUMERIC_RE.match(name.strip()))


def is_placeholder_name(name: str) -> bool:
    return name.startswith(PLACEHOLDER_PREFIX)


def is_empty_sentinel(token: str) -> bool:
    """Google writes ``''`` for a waypoint it could not name."""
    return token.strip() in EMPTY_SENTINELS


def is_low_quality(waypoints: Iterable[Waypoint]) -> bool:
    """True when any waypoint only has a coordinate or placeholder label."""
    return any(
        is_coordinate_name(wp.name) or is_placeholder_name(wp.name)
        for wp in waypoints
    )


def has_empty_waypoint_sentinel(url: str) -> bool:
    """Check a resolved link for an unnamed waypoint segment in its path."""
    if not url:
        return False
    if "/''/" in url or "/%27%27/" in url:
        return True
    decoded = unquote(url)
    return "/''/" in decoded
