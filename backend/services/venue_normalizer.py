"""
Turn raw Overpass elements into Venue objects.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from domain.models import UNNAMED_VENUE, AddressParts, Coordinates, Venue
from services.opening_hours import evaluate_open_now

logger = logging.getLogger(__name__)

# (tag, ((osm key, value), ...)) in display priority order. A tag is added
# when any of its key/value pairs is present on the element.
AMENITY_TAGS: Tuple[Tuple[str, Tuple[Tuple[str, str], ...]], ...] = (
    ("WiFi", (("wifi", "yes"), ("internet_access", "wlan"))),
    ("Takeaway", (("takeaway", "yes"),)),
    ("Outdoor Seating", (("outdoor_seating", "yes"),)),
    ("Wheelchair Accessible", (("wheelchair", "yes"),)),
    ("Smoking Allowed", (("smoking", "yes"),)),
)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _extract_coordinates(raw: Dict[str, Any]) -> Optional[Coordinates]:
    """Nodes carry lat/lon directly; ways and relations only have a center."""
    lat = _as_float(raw.get("lat"))
    lng = _as_float(raw.get("lon"))
    if lat is None or lng is None:
        center = raw.get("center") or {}
        if isinstance(center, dict):
            lat = _as_float(center.get("lat"))
            lng = _as_float(center.get("lon"))
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinates(lat=lat, lng=lng)


def _venue_id(raw: Dict[str, Any], coords: Coordinates) -> str:
    osm_id = raw.get("id")
    if osm_id is None or osm_id == "":
        return f"osm-{coords.lat:.6f},{coords.lng:.6f}"
    # Overpass ids are only unique per element type
    element_type = raw.get("type")
    if element_type:
        return f"osm-{element_type}-{osm_id}"
    return f"osm-{osm_id}"


def derive_tags(tags: Dict[str, Any]) -> list[str]:
    result: list[str] = []
    for label, matches in AMENITY_TAGS:
        if any(tags.get(key) == value for key, value in matches):
            result.append(label)
    return result


def _rating(tags: Dict[str, Any]) -> Optional[float]:
    value = _as_float(tags.get("rating"))
    if value is None or not 0.0 <= value <= 5.0:
        return None
    return value


def _address(tags: Dict[str, Any]) -> Optional[str]:
    full = tags.get("addr:full")
    if full:
        return str(full)
    parts = [tags.get("addr:housenumber"), tags.get("addr:street"), tags.get("addr:city")]
    joined = " ".join(str(p) for p in parts if p)
    return joined or None


def normalize_record(raw: Dict[str, Any], instant: datetime) -> Optional[Venue]:
    """
    Map one raw venue record to a Venue, or None if it has no usable location.

    ``instant`` is the moment open/closed status is evaluated for.
    """
    if not isinstance(raw, dict):
        return None
    coords = _extract_coordinates(raw)
    if coords is None:
        logger.debug("Dropping venue record %r without usable coordinates", raw.get("id"))
        return None

    tags = raw.get("tags") or {}
    if not isinstance(tags, dict):
        tags = {}

    hours = tags.get("opening_hours")
    address_parts = AddressParts(
        street=tags.get("addr:street") or None,
        city=tags.get("addr:city") or None,
        postcode=tags.get("addr:postcode") or None,
    )

    return Venue(
        id=_venue_id(raw, coords),
        name=str(tags.get("name") or "").strip() or UNNAMED_VENUE,
        coordinates=coords,
        address=_address(tags),
        address_parts=address_parts,
        rating=_rating(tags),
        open_now=evaluate_open_now(hours if isinstance(hours, str) else None, instant),
        tags=derive_tags(tags),
    )
