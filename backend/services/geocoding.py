"""Reverse geocoding helpers using OpenStreetMap Nominatim.

Nominatim allows at most one request per second per application, so every
lookup in the process is expected to pass through the shared RateGate
returned by ``get_default_rate_gate()``.
"""

from __future__ import annotations

import os
import time
import threading
import logging
import re
from typing import Any, Callable, Optional

import requests

NOMINATIM_BASE_URL = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org/reverse")
logger = logging.getLogger(__name__)
_session = requests.Session()
_MIN_INTERVAL_SEC = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.0"))
_TIMEOUT_SEC = float(os.getenv("NOMINATIM_TIMEOUT", "5.0"))
_logged_ua = False
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT")
NOMINATIM_REFERER = os.getenv("NOMINATIM_REFERER")

FALLBACK_UA = "cafe-finder/0.1 (contact: example@example.com)"
if NOMINATIM_USER_AGENT is None:
    logger.warning(
        "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
        "This may violate Nominatim usage policy."
    )

def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)

_ua_value = NOMINATIM_USER_AGENT or FALLBACK_UA
NOMINATIM_HEADERS = {
    "User-Agent": _ua_value,
}
if NOMINATIM_REFERER:
    NOMINATIM_HEADERS["Referer"] = NOMINATIM_REFERER

# Order in which structured address components are joined.
_ADDRESS_COMPONENTS = (
    ("house_number",),
    ("road", "street"),
    ("neighbourhood",),
    ("suburb",),
    ("city", "town", "village"),
    ("postcode",),
    ("state",),
)


class AddressLookupError(Exception):
    """Raised when the address lookup provider cannot be reached or answers garbage."""


class RateGate:
    """
    Spaces calls at least ``min_interval`` seconds apart.

    The first call on an idle gate goes through immediately. Waiters are
    serialized by a lock, so one gate shared across threads keeps the whole
    process under the provider's limit.
    """

    def __init__(
        self,
        min_interval: float = _MIN_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_ts: Optional[float] = None

    def wait(self) -> None:
        with self._lock:
            if self._last_ts is not None:
                delta = self._clock() - self._last_ts
                if delta < self.min_interval:
                    self._sleep(self.min_interval - delta)
            self._last_ts = self._clock()


_default_rate_gate: Optional[RateGate] = None
_default_rate_gate_lock = threading.Lock()


def get_default_rate_gate() -> RateGate:
    global _default_rate_gate
    with _default_rate_gate_lock:
        if _default_rate_gate is None:
            _default_rate_gate = RateGate()
        return _default_rate_gate


def format_address_components(payload: dict[str, Any]) -> Optional[str]:
    """
    Build a one-line address from a Nominatim reverse response.

    Structured components win; the free-text ``display_name`` is only used
    when none of them are present.
    """
    address = payload.get("address") or {}
    parts: list[str] = []
    if isinstance(address, dict):
        for keys in _ADDRESS_COMPONENTS:
            for key in keys:
                value = address.get(key)
                if value:
                    parts.append(str(value))
                    break
    if parts:
        return ", ".join(parts)
    return payload.get("display_name") or None


def reverse_geocode_address(lat: float, lng: float) -> Optional[str]:
    """Reverse geocode a coordinate into a street address.

    Returns None when Nominatim has no result for the point. Network and JSON
    errors raise AddressLookupError. This does not rate limit by itself;
    go through the RateGate before calling it.
    """
    global _logged_ua
    if not _logged_ua:
        logger.debug("Nominatim User-Agent: %s", _redact_email(_ua_value))
        _logged_ua = True

    params = {
        "format": "json",
        "lat": str(lat),
        "lon": str(lng),
        "zoom": "18",
        "addressdetails": "1",
    }

    try:
        resp = _session.get(
            NOMINATIM_BASE_URL, params=params, headers=NOMINATIM_HEADERS, timeout=_TIMEOUT_SEC
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise AddressLookupError(f"Nominatim reverse geocode error for lat={lat} lon={lng}: {exc}") from exc

    try:
        data = resp.json()
    except ValueError as exc:
        raise AddressLookupError(f"Nominatim reverse geocode JSON error for lat={lat} lon={lng}: {exc}") from exc

    if not isinstance(data, dict) or data.get("error"):
        return None
    return format_address_components(data)
