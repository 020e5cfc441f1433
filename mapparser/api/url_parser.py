# mapparser/api/url_parser.py
"""Google Maps directions-link parser.

Turns a resolved Google Maps URL into an ordered list of :class:`Waypoint`.
Names come from the ``/dir/`` path segments; coordinates come from the
``data=`` payload, an undocumented ``!<field><type><value>`` encoding. Only
empirically observed fields are decoded:

* ``!1m<n>`` followed by ``!1m1!1s`` or ``!2m2!1d`` opens a waypoint block
* ``!2m2!1d<lng>!2d<lat>`` is the waypoint position inside a block
* ``!1d<lng>!2d<lat>`` is a looser lng/lat pair
* ``!3d<lat>!4d<lng>`` is a placemark position (note the swapped order)

Known limitation: block splitting is a best-effort heuristic. Routes with
complex via-point structures can still misalign names and coordinates.
New field patterns belong here as additional fallbacks.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from mapparser.api.models import Coords, Waypoint
from mapparser.api.names import clean_waypoint_name, is_empty_sentinel

logger = logging.getLogger(__name__)

DIR_MARKER = "/dir/"
DATA_MARKER = "/data="
NAME_STOP_PREFIXES = ("@", "data=", "am=")

_NUM = r"(-?\d+(?:\.\d+)?)"

BLOCK_START_RE = re.compile(r"!1m\d+(?=!1m1!1s|!2m2!1d)")
BLOCK_COORD_RE = re.compile(rf"!2m2!1d{_NUM}!2d{_NUM}")
LNG_LAT_RE = re.compile(rf"!1d{_NUM}!2d{_NUM}")
LAT_LNG_RE = re.compile(rf"!3d{_NUM}!4d{_NUM}")
VIEWPORT_RE = re.compile(rf"@{_NUM},{_NUM}")
NAME_COORD_RE = re.compile(rf"^{_NUM},\s*{_NUM}$")


def parse_map_url(url: str) -> List[Waypoint]:
    """Return the waypoints encoded in ``url``, or ``[]`` if it is not a URL."""
    try:
        parts = urlsplit(url)
    except (ValueError, TypeError) as exc:
        logger.warning("Parse error for %r: %s", url, exc)
        return []

    if not parts.scheme or not parts.netloc:
        logger.debug("Not an absolute URL: %r", url)
        return []

    path = parts.path
    is_directions = DIR_MARKER in path

    names = extract_names(path) if is_directions else []
    coords = extract_coords(_data_payload(parts.query, path), is_directions)

    # The viewport centre only stands in when nothing names a stop.
    if not names and not any(coords):
        viewport = VIEWPORT_RE.search(path)
        if viewport:
            coords = [Coords(lat=float(viewport.group(1)), lng=float(viewport.group(2)))]

    waypoints = _merge(names, coords)
    return [_promote_coordinate_name(wp) for wp in waypoints]


def extract_names(path: str) -> List[str]:
    """Percent-decoded raw name tokens from a ``/dir/`` path, in route order."""
    names: List[str] = []
    remainder = path.split(DIR_MARKER, 1)[1]
    for segment in remainder.split("/"):
        if not segment:
            continue
        if segment.startswith(NAME_STOP_PREFIXES):
            break
        names.append(unquote(segment).replace("+", " "))
    return names


def extract_coords(data: str, is_directions: bool) -> List[Optional[Coords]]:
    """Coordinates from a ``data=`` payload.

    For directions links the payload is split into waypoint blocks and each
    block contributes its *first* position; later pairs in the same block
    are via/drag points. Blocks without any position keep their slot as
    ``None`` so indices stay aligned with the path names.
    """
    if not data:
        return []

    if is_directions:
        per_block = [_block_coords(block) for block in split_blocks(data)]
        if any(per_block):
            return per_block

    coords: List[Optional[Coords]] = [
        Coords(lat=float(lat), lng=float(lng)) for lng, lat in LNG_LAT_RE.findall(data)
    ]
    if not coords:
        coords = [
            Coords(lat=float(lat), lng=float(lng)) for lat, lng in LAT_LNG_RE.findall(data)
        ]
    return coords


def split_blocks(data: str) -> List[str]:
    """Cut a directions payload into per-waypoint blocks (preamble dropped)."""
    starts = [m.start() for m in BLOCK_START_RE.finditer(data)]
    ends = starts[1:] + [len(data)]
    return [data[start:end] for start, end in zip(starts, ends)]


def _block_coords(block: str) -> Optional[Coords]:
    match = BLOCK_COORD_RE.search(block) or LNG_LAT_RE.search(block)
    if not match:
        return None
    lng, lat = match.groups()
    return Coords(lat=float(lat), lng=float(lng))


def _data_payload(query: str, path: str) -> str:
    values = parse_qs(query).get("data")
    if values and values[0]:
        return values[0]
    if DATA_MARKER in path:
        return unquote(path.split(DATA_MARKER, 1)[1])
    return ""


def _merge(names: List[str], coords: List[Optional[Coords]]) -> List[Waypoint]:
    count = len(names) if names else len(coords)
    waypoints: List[Waypoint] = []

    for i in range(count):
        raw = names[i] if i < len(names) else ""
        coord = coords[i] if i < len(coords) else None

        if is_empty_sentinel(raw):
            raw = ""
        name = clean_waypoint_name(raw) if raw.strip() else ""
        full_name: Optional[str] = raw if name else None

        if not name:
            if coord is not None:
                name = f"{coord.lat:.4f}, {coord.lng:.4f}"
            else:
                name = f"Waypoint {i + 1}"

        waypoints.append(Waypoint(name=name, full_name=full_name, coords=coord))

    return waypoints


def _promote_coordinate_name(wp: Waypoint) -> Waypoint:
    """A stop named ``"lat,lng"`` without coordinates gets them from its name."""
    if wp.coords is not None:
        return wp
    match = NAME_COORD_RE.match(wp.name.strip())
    if not match:
        return wp
    return Waypoint(
        name=f"Point ({wp.name})",
        full_name=wp.full_name,
        coords=Coords(lat=float(match.group(1)), lng=float(match.group(2))),
    )
