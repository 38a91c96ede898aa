"""JSON shapes returned by the HTTP API."""

from dine_match.domain.candidates import Candidate
from dine_match.domain.sessions import SessionFilters, SessionRecord
from dine_match.domain.swipes import MatchResult, SwipeStats


def serialize_filters(filters: SessionFilters) -> dict[str, object]:
    return {
        "maxDistance": filters.max_distance,
        "category": filters.category,
        "priceLevels": list(filters.price_levels),
    }


def serialize_session(
    session: SessionRecord, include_created_at: bool = False
) -> dict[str, object]:
    """Return the public view of a session; the join key is included."""
    payload: dict[str, object] = {
        "sessionId": str(session.id),
        "key": session.key,
        "filters": serialize_filters(session.filters),
        "location": {"lat": session.location.lat, "lng": session.location.lng},
        "participantCount": session.participant_count,
        "status": session.status,
    }
    if include_created_at:
        payload["createdAt"] = session.created_at.isoformat()
    return payload


def serialize_match(match: MatchResult) -> dict[str, object]:
    return {**match.candidate_snapshot, "candidateId": match.candidate_id}


def serialize_stats(stats: SwipeStats) -> dict[str, object]:
    return {
        "totalSwipes": stats.total_swipes,
        "byParticipant": stats.by_participant,
        "byDirection": stats.by_direction,
    }


def serialize_candidate(candidate: Candidate) -> dict[str, object]:
    return {
        "id": candidate.id,
        "name": candidate.name,
        "address": candidate.address,
        "rating": candidate.rating,
        "priceLevel": candidate.price_level,
        "photos": [
            {"name": photo.name, "width": photo.width, "height": photo.height}
            for photo in candidate.photos
        ],
        "location": (
            {"lat": candidate.location.lat, "lng": candidate.location.lng}
            if candidate.location
            else None
        ),
        "types": candidate.types,
    }
