"""Candidate lookup for a session's filters."""

import logging
from dataclasses import dataclass
from uuid import UUID

from dine_match.adapters.places_client import PlacesClient
from dine_match.domain.candidates import Candidate, CandidatePhoto
from dine_match.domain.sessions import (
    DEFAULT_CATEGORY,
    Location,
    SessionFilters,
    SessionRecord,
)
from dine_match.services.cache import Cache

_PRICE_LEVELS = {
    "PRICE_LEVEL_FREE": 0,
    "PRICE_LEVEL_INEXPENSIVE": 1,
    "PRICE_LEVEL_MODERATE": 2,
    "PRICE_LEVEL_EXPENSIVE": 3,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4,
}
_BROAD_TYPES = ["restaurant", "cafe", "bar"]
_MAX_PHOTOS = 3

_logger = logging.getLogger(__name__)


@dataclass
class CandidateService:
    """Resolves session filters into a candidate list."""

    places_client: PlacesClient
    cache: Cache
    ttl_seconds: int = 600
    max_results: int = 20

    async def search(
        self, location: Location, filters: SessionFilters
    ) -> list[Candidate]:
        """Search candidates near a location that satisfy the filters."""
        included_types = (
            [filters.category]
            if filters.category and filters.category != DEFAULT_CATEGORY
            else list(_BROAD_TYPES)
        )
        payload = await self.places_client.search_nearby(
            lat=location.lat,
            lng=location.lng,
            radius=float(filters.max_distance),
            included_types=included_types,
            max_results=self.max_results,
        )
        places = payload.get("places") or []
        candidates = [_parse_place(place) for place in places if isinstance(place, dict)]
        if filters.price_levels:
            accepted = set(filters.price_levels)
            candidates = [c for c in candidates if c.price_level in accepted]
        _logger.info(
            "Candidate search returned %s of %s places", len(candidates), len(places)
        )
        return candidates

    async def for_session(self, session: SessionRecord) -> list[Candidate]:
        """Return the candidate list for a session, computed once per TTL."""
        cache_key = f"candidates:{session.id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached
        candidates = await self.search(session.location, session.filters)
        self.cache.set(cache_key, candidates, ttl_seconds=self.ttl_seconds)
        return candidates

    def forget(self, session_id: UUID) -> None:
        """Drop the cached list for a retired session."""
        self.cache.delete(f"candidates:{session_id}")


def _parse_place(place: dict) -> Candidate:
    display_name = place.get("displayName") or {}
    raw_location = place.get("location") or {}
    location = None
    if "latitude" in raw_location and "longitude" in raw_location:
        location = Location(
            lat=float(raw_location["latitude"]), lng=float(raw_location["longitude"])
        )
    photos = [
        CandidatePhoto(
            name=str(photo.get("name", "")),
            width=photo.get("widthPx"),
            height=photo.get("heightPx"),
        )
        for photo in (place.get("photos") or [])[:_MAX_PHOTOS]
    ]
    return Candidate(
        id=str(place.get("id", "")),
        name=str(display_name.get("text") or "Unknown"),
        address=place.get("formattedAddress"),
        rating=float(place.get("rating") or 0),
        price_level=_PRICE_LEVELS.get(str(place.get("priceLevel")), 0),
        location=location,
        photos=photos,
        types=list(place.get("types") or []),
    )
