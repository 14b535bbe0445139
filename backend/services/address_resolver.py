from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from domain.models import Venue
from services.geocoding import RateGate, get_default_rate_gate, reverse_geocode_address

logger = logging.getLogger(__name__)

MAX_LOOKUPS_PER_BATCH = 30

AddressLookup = Callable[[float, float], Optional[str]]


@dataclass
class ResolveSummary:
    attempted: int = 0
    resolved: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    cancelled: bool = False


def select_address_candidates(venues: Sequence[Venue], max_count: int) -> List[Venue]:
    """
    Pick the venues worth a reverse lookup: no address yet, partial street/city
    data first, then input order, capped at max_count.
    """
    eligible = [v for v in venues if not v.address]
    # sorted() is stable, so input order breaks ties
    eligible = sorted(
        eligible,
        key=lambda v: 0 if v.address_parts and v.address_parts.has_locality else 1,
    )
    return eligible[: max(max_count, 0)]


def resolve_missing_addresses(
    venues: Sequence[Venue],
    max_count: Optional[int] = None,
    lookup: AddressLookup = reverse_geocode_address,
    gate: Optional[RateGate] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ResolveSummary:
    """
    Fill in ``address`` on venues that lack one, one lookup at a time.

    Every call goes through the rate gate. A failed or empty lookup leaves the
    venue untouched and the batch carries on. Setting ``cancel_event`` stops
    the batch before the next call; addresses already written stay.
    """
    if max_count is None:
        max_count = min(len(venues), MAX_LOOKUPS_PER_BATCH)
    gate = gate or get_default_rate_gate()
    summary = ResolveSummary()

    for venue in select_address_candidates(venues, max_count):
        if cancel_event is not None and cancel_event.is_set():
            summary.cancelled = True
            logger.info("Address resolution cancelled after %d lookups", summary.attempted)
            break
        gate.wait()
        summary.attempted += 1
        try:
            address = lookup(venue.lat, venue.lng)
        except Exception as exc:
            logger.warning("Failed to geocode venue %s: %s", venue.id, exc)
            summary.failed.append(venue.id)
            continue
        if address:
            venue.address = address
            summary.resolved.append(venue.id)
        else:
            logger.debug("No address found for venue %s at %.6f,%.6f", venue.id, venue.lat, venue.lng)
            summary.failed.append(venue.id)

    logger.debug(
        "resolve_missing_addresses: attempted=%d resolved=%d failed=%d",
        summary.attempted,
        len(summary.resolved),
        len(summary.failed),
    )
    return summary
