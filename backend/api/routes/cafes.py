"""
Café discovery API routes.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Header, HTTPException, Query as QueryParam
from pydantic import BaseModel, Field

from domain.models import Coordinates, GeolocationFailure, Query, TransportMode, Venue
from services.address_resolver import resolve_missing_addresses
from services.discovery import discover
from services.geo import format_distance
from services.travel import (
    build_navigation_links,
    estimate_travel_seconds,
    format_travel_time,
    primary_navigation_link,
)
from services.venue_source import VenueSourceError, get_default_overpass_client
from settings import settings

router = APIRouter()
logger = logging.getLogger(__name__)


class AddressPartsResponse(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None


class TravelEstimateResponse(BaseModel):
    mode: TransportMode
    seconds: float
    label: str


class VenueResponse(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    address: Optional[str] = None
    address_parts: Optional[AddressPartsResponse] = None
    display_address: str
    rating: Optional[float] = None
    open_now: Optional[bool] = None
    tags: List[str] = []
    distance_meters: Optional[float] = None
    distance_label: str
    travel: Optional[TravelEstimateResponse] = None
    navigation_url: str
    navigation_links: Dict[str, str]


class DiscoveryResponse(BaseModel):
    count: int
    venues: List[VenueResponse]
    location_error: Optional[GeolocationFailure] = None
    location_error_message: Optional[str] = None


class LocationRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class RankRequest(BaseModel):
    records: List[Dict[str, Any]]
    location: Optional[LocationRequest] = None
    location_error: Optional[GeolocationFailure] = None
    radius_meters: float = Field(default=settings.DEFAULT_RADIUS_METERS, gt=0)
    q: str = ""
    at: Optional[datetime] = None
    mode: TransportMode = TransportMode.CAR
    resolve_addresses: bool = False


def venue_to_response(venue: Venue, mode: TransportMode, user_agent: Optional[str] = None) -> VenueResponse:
    """Convert a domain Venue to the API response shape."""
    travel = None
    if venue.distance_meters is not None:
        seconds = estimate_travel_seconds(venue.distance_meters, mode)
        travel = TravelEstimateResponse(mode=mode, seconds=seconds, label=format_travel_time(seconds))
    parts = venue.address_parts
    return VenueResponse(
        id=venue.id,
        name=venue.name,
        lat=venue.lat,
        lng=venue.lng,
        address=venue.address,
        address_parts=AddressPartsResponse(street=parts.street, city=parts.city, postcode=parts.postcode)
        if parts
        else None,
        display_address=venue.display_address,
        rating=venue.rating,
        open_now=venue.open_now,
        tags=list(venue.tags),
        distance_meters=venue.distance_meters,
        distance_label=format_distance(venue.distance_meters),
        travel=travel,
        navigation_url=primary_navigation_link(venue.lat, venue.lng, user_agent),
        navigation_links=build_navigation_links(venue.lat, venue.lng),
    )


def _to_response(
    venues: List[Venue],
    mode: TransportMode,
    user_agent: Optional[str],
    location_error: Optional[GeolocationFailure] = None,
) -> DiscoveryResponse:
    return DiscoveryResponse(
        count=len(venues),
        venues=[venue_to_response(v, mode, user_agent) for v in venues],
        location_error=location_error,
        location_error_message=location_error.message if location_error else None,
    )


@router.get("/nearby", response_model=DiscoveryResponse)
def nearby_cafes(
    lat: float = QueryParam(..., ge=-90, le=90),
    lng: float = QueryParam(..., ge=-180, le=180),
    radius: float = QueryParam(settings.DEFAULT_RADIUS_METERS, gt=0),
    q: str = "",
    mode: TransportMode = TransportMode.CAR,
    user_agent: Optional[str] = Header(default=None),
):
    """
    Fetch cafés around a point and return them ranked by distance.

    Stages:
    1. Fetch raw elements from Overpass
    2. Normalize, geocode missing addresses, filter, sort
    """
    try:
        records = get_default_overpass_client().fetch_nearby_cafes(lat, lng, radius)
    except VenueSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    query = Query(
        radius_meters=radius,
        evaluation_instant=datetime.now(),
        reference_location=Coordinates(lat=lat, lng=lng),
        free_text_filter=q,
    )
    venues = discover(records, query)
    return _to_response(venues, mode, user_agent)


@router.post("/rank", response_model=DiscoveryResponse)
def rank_cafes(body: RankRequest, user_agent: Optional[str] = Header(default=None)):
    """Rank caller-supplied raw records without fetching from the venue source."""
    query = Query(
        radius_meters=body.radius_meters,
        evaluation_instant=body.at or datetime.now(),
        reference_location=Coordinates(lat=body.location.lat, lng=body.location.lng) if body.location else None,
        free_text_filter=body.q,
        location_error=body.location_error if body.location is None else None,
    )
    resolver = resolve_missing_addresses if body.resolve_addresses else None
    venues = discover(body.records, query, resolver=resolver)
    return _to_response(venues, body.mode, user_agent, query.location_error)
