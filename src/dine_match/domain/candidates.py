"""Candidate models returned by the search collaborator."""

from dataclasses import dataclass, field

from dine_match.domain.sessions import Location


@dataclass(frozen=True)
class CandidatePhoto:
    """Reference to a provider-hosted photo."""

    name: str
    width: int | None
    height: int | None


@dataclass(frozen=True)
class Candidate:
    """A restaurant participants can accept or reject."""

    id: str
    name: str
    address: str | None
    rating: float
    price_level: int
    location: Location | None
    photos: list[CandidatePhoto] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
