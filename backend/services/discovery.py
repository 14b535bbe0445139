"""
Discovery pipeline: raw venue records in, ranked Venue list out.

Stages, each finished before the next starts:
1. Normalize raw records (unusable ones dropped)
2. Reverse geocode venues still missing an address
3. Annotate distance from the reference location
4. Radius filter
5. Free-text filter on name/address
6. Stable sort by distance

Without a reference location stages 3, 4 and 6 are skipped and venues keep
their normalization order.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from domain.models import Query, Venue
from services.address_resolver import MAX_LOOKUPS_PER_BATCH, ResolveSummary, resolve_missing_addresses
from services.geo import haversine_distance_m
from services.venue_normalizer import normalize_record
from settings import settings

logger = logging.getLogger(__name__)

AddressResolver = Callable[..., ResolveSummary]


class DiscoveryCancelled(Exception):
    """Raised when a caller abandons discovery; ``venues`` holds what was produced so far."""

    def __init__(self, stage: str, venues: List[Venue]):
        super().__init__(f"discovery cancelled before {stage}")
        self.stage = stage
        self.venues = venues


def _check_cancelled(cancel_event: Optional[threading.Event], stage: str, venues: List[Venue]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise DiscoveryCancelled(stage, venues)


def normalize_records(raw_records: Iterable[Dict[str, Any]], query: Query) -> List[Venue]:
    """Normalize records, keeping the first venue seen for any id."""
    venues: List[Venue] = []
    seen: set[str] = set()
    dropped = 0
    for raw in raw_records:
        venue = normalize_record(raw, query.evaluation_instant)
        if venue is None:
            dropped += 1
            continue
        if venue.id in seen:
            logger.debug("Skipping duplicate venue id %s", venue.id)
            continue
        seen.add(venue.id)
        venues.append(venue)
    if dropped:
        logger.info("Dropped %d venue record(s) without usable coordinates", dropped)
    return venues


def matches_text(venue: Venue, needle: str) -> bool:
    """``needle`` must already be trimmed and lower-cased."""
    if needle in venue.name.lower():
        return True
    return bool(venue.address) and needle in venue.address.lower()


def discover(
    raw_records: Iterable[Dict[str, Any]],
    query: Query,
    resolver: Optional[AddressResolver] = resolve_missing_addresses,
    cancel_event: Optional[threading.Event] = None,
) -> List[Venue]:
    """
    Run the full discovery pipeline for one query.

    Pass ``resolver=None`` to skip address enrichment. Select results by
    ``Venue.id`` afterwards; positions change whenever the query does.
    """
    venues = normalize_records(raw_records, query)

    _check_cancelled(cancel_event, "address resolution", venues)
    if resolver is not None and settings.ADDRESS_LOOKUP_ENABLED:
        max_count = min(len(venues), settings.ADDRESS_LOOKUP_MAX, MAX_LOOKUPS_PER_BATCH)
        missing = [v for v in venues if not v.address]
        summary = resolver(missing, max_count=max_count, cancel_event=cancel_event)
        if summary.cancelled:
            raise DiscoveryCancelled("distance annotation", venues)

    _check_cancelled(cancel_event, "distance annotation", venues)
    reference = query.reference_location
    if reference is not None:
        for venue in venues:
            venue.distance_meters = haversine_distance_m(reference, venue.coordinates)
        venues = [v for v in venues if v.distance_meters <= query.radius_meters]
    elif query.location_error is not None:
        logger.info("Reference location unavailable (%s); skipping distance ranking", query.location_error.value)

    _check_cancelled(cancel_event, "text filter", venues)
    needle = (query.free_text_filter or "").strip().lower()
    if needle:
        venues = [v for v in venues if matches_text(v, needle)]

    if reference is not None:
        venues.sort(key=lambda v: v.distance_meters)

    logger.info(
        "discover: %d venue(s) returned (radius=%.0fm, filter=%r, located=%s)",
        len(venues),
        query.radius_meters,
        needle,
        reference is not None,
    )
    return venues


def find_venue(venues: Iterable[Venue], venue_id: Optional[str]) -> Optional[Venue]:
    """Look up a venue by identity, never by position."""
    if not venue_id:
        return None
    for venue in venues:
        if venue.id == venue_id:
            return venue
    return None
