"""Domain models for swipes and matches."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import UUID

SwipeDirection = Literal["left", "right"]

SWIPE_DIRECTIONS: tuple[SwipeDirection, ...] = ("left", "right")


@dataclass(frozen=True)
class SwipeRecord:
    """A participant's recorded decision on one candidate."""

    id: UUID
    session_id: UUID
    participant_handle: str
    candidate_id: str
    direction: SwipeDirection
    candidate_snapshot: dict[str, object]
    created_at: datetime


@dataclass(frozen=True)
class MatchResult:
    """A candidate accepted by at least two distinct participants."""

    candidate_id: str
    candidate_snapshot: dict[str, object]
    participant_handles: frozenset[str]

    @property
    def rating(self) -> float:
        value = self.candidate_snapshot.get("rating")
        return float(value) if isinstance(value, int | float) else 0.0


@dataclass(frozen=True)
class SwipeStats:
    """Aggregate swipe counts for a session."""

    total_swipes: int
    by_participant: dict[str, dict[str, int]] = field(default_factory=dict)
    by_direction: dict[str, int] = field(default_factory=dict)
