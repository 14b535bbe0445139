"""
Core domain models for the café discovery pipeline.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


UNNAMED_VENUE = "Unnamed Cafe"
ADDRESS_UNAVAILABLE = "Address unavailable"


class GeolocationFailure(str, Enum):
    """Why the user's reference location could not be obtained."""
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"

    @property
    def message(self) -> str:
        return _GEOLOCATION_MESSAGES[self]


_GEOLOCATION_MESSAGES = {
    GeolocationFailure.PERMISSION_DENIED: "Location permission denied",
    GeolocationFailure.UNAVAILABLE: "Location information unavailable",
    GeolocationFailure.TIMEOUT: "Location request timed out",
    GeolocationFailure.UNKNOWN: "An unknown error occurred",
}


class TransportMode(str, Enum):
    """Travel modes offered for directions."""
    WALK = "walk"
    BIKE = "bike"
    CAR = "car"


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class AddressParts:
    """Partial structured address taken straight from the venue record."""
    street: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None

    @property
    def has_locality(self) -> bool:
        return bool(self.street or self.city)

    def formatted(self) -> Optional[str]:
        parts = [p for p in (self.street, self.city, self.postcode) if p]
        return ", ".join(parts) if parts else None


@dataclass
class Venue:
    """
    A discoverable café.

    Built once per raw provider record per query. `address` may be filled in
    later by the address resolver and `distance_meters` is set per query when
    a reference location is known; everything else stays as constructed.
    """
    id: str
    name: str
    coordinates: Coordinates
    address: Optional[str] = None
    address_parts: Optional[AddressParts] = None
    rating: Optional[float] = None
    open_now: Optional[bool] = None  # None means unknown
    tags: List[str] = field(default_factory=list)
    distance_meters: Optional[float] = None

    @property
    def lat(self) -> float:
        return self.coordinates.lat

    @property
    def lng(self) -> float:
        return self.coordinates.lng

    @property
    def display_address(self) -> str:
        """Full address when known, otherwise the partial one, otherwise a placeholder."""
        if self.address:
            return self.address
        if self.address_parts:
            formatted = self.address_parts.formatted()
            if formatted:
                return formatted
        return ADDRESS_UNAVAILABLE


@dataclass
class Query:
    """Parameters of a single discovery call. Never persisted."""
    radius_meters: float
    evaluation_instant: datetime
    reference_location: Optional[Coordinates] = None
    free_text_filter: str = ""
    location_error: Optional[GeolocationFailure] = None

    def __post_init__(self) -> None:
        if not self.radius_meters > 0:
            raise ValueError(f"radius_meters must be positive, got {self.radius_meters!r}")
