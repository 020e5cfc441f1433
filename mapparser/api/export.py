# mapparser/api/export.py
"""CSV and KML renderings of a waypoint list.

All functions here are pure and total: missing coordinates become empty
CSV cells or KML ``<address>`` elements, never errors.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence
from xml.sax.saxutils import escape

from mapparser.api.models import Trip, Waypoint

CSV_HEADER = "Name,Address,Latitude,Longitude"
TRIPS_CSV_HEADER = ["Name", "Route", "Year", "Location", "Itinerary", "Created", "Notes"]
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

_XML_ENTITIES = {"'": "&apos;", '"': "&quot;"}


def to_csv(waypoints: Sequence[Waypoint]) -> str:
    """Render waypoints as CSV, one row per stop, header always present."""
    lines = [CSV_HEADER]
    for index, wp in enumerate(waypoints, 1):
        safe_name = _csv_escape(wp.name)
        lat = format_number(wp.coords.lat) if wp.coords else ""
        lng = format_number(wp.coords.lng) if wp.coords else ""
        lines.append(f'"{index}. {safe_name}","{safe_name}",{lat},{lng}')
    return "\n".join(lines) + "\n"


def to_kml(waypoints: Sequence[Waypoint], title: str = "Imported Route") -> str:
    """Render waypoints as a KML 2.2 document.

    Each stop becomes a Placemark (a Point when coordinates are known, an
    ``<address>`` otherwise). A "Route Path" LineString joining the located
    stops is appended when at least two of them have coordinates.
    """
    kml = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<kml xmlns="{KML_NAMESPACE}">',
        "  <Document>",
        f"    <name>{xml_escape(title)}</name>",
        "    <description>Converted from Google Maps Link</description>",
    ]

    for index, wp in enumerate(waypoints, 1):
        safe_desc = xml_escape(wp.name)
        kml.append("    <Placemark>")
        kml.append(f"      <name>{xml_escape(f'{index}. {wp.name}')}</name>")
        kml.append(f"      <description>{safe_desc}</description>")
        if wp.coords:
            kml.append("      <Point>")
            kml.append(f"        <coordinates>{_kml_coord(wp)}</coordinates>")
            kml.append("      </Point>")
        else:
            kml.append(f"      <address>{safe_desc}</address>")
        kml.append("    </Placemark>")

    located = [wp for wp in waypoints if wp.coords]
    if len(located) > 1:
        kml.append("    <Placemark>")
        kml.append("      <name>Route Path</name>")
        kml.append("      <LineString>")
        kml.append("        <coordinates>")
        kml.extend(f"          {_kml_coord(wp)}" for wp in located)
        kml.append("        </coordinates>")
        kml.append("      </LineString>")
        kml.append("    </Placemark>")

    kml.append("  </Document>")
    kml.append("</kml>")
    return "\n".join(kml) + "\n"


def trips_to_csv(trips: Iterable[Trip]) -> str:
    """Render saved trips as CSV; every field is quoted."""
    rows: List[str] = [",".join(TRIPS_CSV_HEADER)]
    for trip in trips:
        fields = [
            trip.name,
            trip.link,
            trip.year or "",
            trip.location or "",
            trip.route_summary or "",
            trip.created_at.strftime("%Y-%m-%d"),
            trip.note or "",
        ]
        rows.append(",".join(f'"{_csv_escape(value)}"' for value in fields))
    return "\n".join(rows)


def xml_escape(text: str) -> str:
    return escape(text, _XML_ENTITIES)


def format_number(value: float) -> str:
    """Fixed-point text for a coordinate; trailing zeros and ``.0`` are dropped."""
    text = f"{float(value):.10f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _csv_escape(text: str) -> str:
    return text.replace('"', '""')


def _kml_coord(wp: Waypoint) -> str:
    return f"{format_number(wp.coords.lng)},{format_number(wp.coords.lat)},0"
