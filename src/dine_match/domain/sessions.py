"""Domain models for matching sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import UUID

SessionStatus = Literal["waiting", "active", "completed"]

MAX_PARTICIPANTS = 2
DEFAULT_MAX_DISTANCE_M = 5000
DEFAULT_CATEGORY = "restaurant"
DEFAULT_PRICE_LEVELS = (1, 2, 3, 4)


@dataclass(frozen=True)
class Location:
    """Geographic coordinate pair."""

    lat: float
    lng: float


@dataclass(frozen=True)
class SessionFilters:
    """Search criteria forwarded to the candidate source."""

    max_distance: int = DEFAULT_MAX_DISTANCE_M
    category: str = DEFAULT_CATEGORY
    price_levels: tuple[int, ...] = DEFAULT_PRICE_LEVELS


@dataclass(frozen=True)
class Participant:
    """A live connection admitted to a session."""

    connection_handle: str
    joined_at: datetime


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted matching session."""

    id: UUID
    key: str
    filters: SessionFilters
    location: Location
    status: SessionStatus
    created_at: datetime
    participants: tuple[Participant, ...] = field(default_factory=tuple)
    version: int = 0

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def has_participant(self, connection_handle: str) -> bool:
        """Return true when the handle is currently a member."""
        return any(
            participant.connection_handle == connection_handle
            for participant in self.participants
        )


@dataclass(frozen=True)
class Retired:
    """Signals that the last participant left and the session was deleted."""

    session_id: UUID


def status_for_count(count: int) -> SessionStatus:
    """Return the membership-derived status for a participant count."""
    return "active" if count == MAX_PARTICIPANTS else "waiting"
