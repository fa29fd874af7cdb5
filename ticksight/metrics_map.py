from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

from ticksight.aggregate import city_timeline
from ticksight.filters import MapFilters, filter_sightings
from ticksight.lookups import CITY_COORDINATES, DATE_RANGE_LABELS, canonical_city, severity_color, severity_for


def share_url(city: str, base_url: str = "") -> str:
    """Link that reopens the map with ``city`` selected."""
    return f"{base_url.rstrip('/')}/?" + urlencode({"page": "map", "city": city}, quote_via=quote)


def directions_url(city: str) -> str:
    return "https://www.google.com/maps/search/?" + urlencode({"api": 1, "query": f"{city}, UK"}, quote_via=quote)


def with_severity(sighting: Dict[str, Any]) -> Dict[str, Any]:
    level = severity_for(sighting.get("species"))
    return {**sighting, "severity": level, "severityLabel": level.capitalize()}


def build_markers(sightings: List[Dict[str, Any]], severity: str = "") -> List[Dict[str, Any]]:
    """One marker per sighting located in a known city, optionally limited to one severity."""
    markers: List[Dict[str, Any]] = []
    for s in sightings:
        city = s.get("location")
        coords = CITY_COORDINATES.get(city) if city else None
        if coords is None:
            continue
        level = severity_for(s.get("species"))
        if severity and level != severity:
            continue
        markers.append(
            {
                "lat": coords[0],
                "lng": coords[1],
                "city": city,
                "date": s.get("date"),
                "species": s.get("species"),
                "latinName": s.get("latinName"),
                "imagePath": s.get("imagePath"),
                "source": s.get("source") or "api",
                "severity": level,
                "color": severity_color(level),
            }
        )
    return markers


def compute_map(
    filters: MapFilters,
    ctx: Dict[str, Any],
    *,
    now: Optional[datetime] = None,
    base_url: str = "",
    city: Optional[str] = None,
) -> Dict[str, Any]:
    combined: List[Dict[str, Any]] = ctx.get("combined", []) or []
    sightings = filter_sightings(combined, filters.species, filters.date_range, now=now)
    markers = build_markers(sightings, filters.severity)

    cities = sorted({m["city"] for m in markers})
    timelines = {c: [with_severity(s) for s in city_timeline(sightings, c, limit=10)] for c in cities}
    links = {c: {"share": share_url(c, base_url), "directions": directions_url(c)} for c in cities}
    selected = canonical_city(city) if city else None
    if selected not in timelines:
        selected = cities[0] if cities else None

    species_options = sorted({str(s["species"]) for s in combined if s.get("species")})
    return {
        "filters": asdict(filters),
        "date_range_label": DATE_RANGE_LABELS.get(filters.date_range, DATE_RANGE_LABELS[""]),
        "species_options": species_options,
        "sightings": sightings,
        "user_sightings": ctx.get("user_rows", []) or [],
        "markers": markers,
        "timelines": timelines,
        "links": links,
        "selected_city": selected,
        "counts": {
            "api": len(ctx.get("api_sightings", []) or []),
            "user": len(ctx.get("user_sightings", []) or []),
            "filtered": len(sightings),
            "markers": len(markers),
        },
    }
