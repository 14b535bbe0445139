"""
Travel time estimates and outbound navigation links.

The public routing server only offers a driving profile, so its durations
are ignored and travel time is derived from distance and a fixed speed for
the chosen mode.
"""
from __future__ import annotations

import re
from typing import Dict, Optional

from domain.models import TransportMode

SPEED_KMH: Dict[TransportMode, float] = {
    TransportMode.WALK: 5.0,
    TransportMode.BIKE: 15.0,
    TransportMode.CAR: 50.0,
}

_MOBILE_UA_RE = re.compile(r"Android|iPhone|iPad|iPod", re.IGNORECASE)


def estimate_travel_seconds(distance_m: float, mode: TransportMode) -> float:
    return (distance_m / 1000.0) / SPEED_KMH[mode] * 3600.0


def format_travel_time(seconds: float) -> str:
    """Render a duration like "1 h 5 min", "12 min 30 s" or "45 s"."""
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours} h {minutes} min"
    if minutes > 0:
        return f"{minutes} min {secs} s" if secs else f"{minutes} min"
    return f"{secs} s"


def build_navigation_links(lat: float, lng: float) -> Dict[str, str]:
    return {
        "osm": f"https://www.openstreetmap.org/directions?to={lat},{lng}",
        "google": f"https://www.google.com/maps/dir/?api=1&destination={lat},{lng}",
        "apple": f"https://maps.apple.com/?daddr={lat},{lng}",
    }


def is_mobile_user_agent(user_agent: Optional[str]) -> bool:
    return bool(user_agent) and bool(_MOBILE_UA_RE.search(user_agent))


def primary_navigation_link(lat: float, lng: float, user_agent: Optional[str] = None) -> str:
    """Google Maps on phones and tablets, OpenStreetMap everywhere else."""
    links = build_navigation_links(lat, lng)
    return links["google"] if is_mobile_user_agent(user_agent) else links["osm"]
