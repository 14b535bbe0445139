"""
Café source backed by the OpenStreetMap Overpass API.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

OVERPASS_URL = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
OVERPASS_TIMEOUT_SEC = float(os.getenv("OVERPASS_TIMEOUT", "25.0"))


class VenueSourceError(Exception):
    """The venue provider could not deliver a usable answer."""


def build_cafe_query(lat: float, lng: float, radius_m: float) -> str:
    around = f"(around:{radius_m:.0f},{lat},{lng})"
    return (
        "[out:json];\n"
        "(\n"
        f'  node["amenity"="cafe"]{around};\n'
        f'  way["amenity"="cafe"]{around};\n'
        f'  relation["amenity"="cafe"]{around};\n'
        ");\n"
        "out center meta;"
    )


class OverpassClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = OVERPASS_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url or OVERPASS_URL
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def fetch_nearby_cafes(self, lat: float, lng: float, radius_m: float) -> List[Dict[str, Any]]:
        """Return raw Overpass elements for cafés within radius_m of (lat, lng)."""
        query = build_cafe_query(lat, lng, radius_m)
        try:
            resp = self.session.post(self.base_url, data={"data": query}, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            self.logger.error("Overpass request failed for lat=%.6f lon=%.6f: %s", lat, lng, exc)
            raise VenueSourceError(f"Overpass API error: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise VenueSourceError(f"Overpass API returned invalid JSON: {exc}") from exc

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            raise VenueSourceError("Overpass API response has no elements list")

        self.logger.debug(
            "OverpassClient.fetch_nearby_cafes: lat=%.6f lon=%.6f radius_m=%.1f got %d elements",
            lat,
            lng,
            radius_m,
            len(elements),
        )
        return elements


_default_overpass_client: Optional[OverpassClient] = None


def get_default_overpass_client() -> OverpassClient:
    global _default_overpass_client
    if _default_overpass_client is None:
        _default_overpass_client = OverpassClient()
    return _default_overpass_client
