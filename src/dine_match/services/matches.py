"""Match computation over the swipe ledger."""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from dine_match.domain.swipes import (
    SWIPE_DIRECTIONS,
    MatchResult,
    SwipeRecord,
    SwipeStats,
)
from dine_match.services.swipes import SwipeLedger

MIN_MATCH_PARTICIPANTS = 2


def compute_matches(swipes: Iterable[SwipeRecord]) -> list[MatchResult]:
    """Return candidates swiped right by at least two distinct participants.

    Left swipes are ignored, so callers may pass either the full ledger or a
    pre-filtered list of right swipes. Results follow the order in which each
    candidate first appears.
    """
    snapshots: dict[str, dict[str, object]] = {}
    handles: dict[str, set[str]] = {}
    for swipe in swipes:
        if swipe.direction != "right":
            continue
        snapshots.setdefault(swipe.candidate_id, swipe.candidate_snapshot)
        handles.setdefault(swipe.candidate_id, set()).add(swipe.participant_handle)
    return [
        MatchResult(
            candidate_id=candidate_id,
            candidate_snapshot=snapshots[candidate_id],
            participant_handles=frozenset(participants),
        )
        for candidate_id, participants in handles.items()
        if len(participants) >= MIN_MATCH_PARTICIPANTS
    ]


def sort_by_rating(matches: Iterable[MatchResult]) -> list[MatchResult]:
    """Order matches by snapshot rating, highest first."""
    return sorted(matches, key=lambda match: match.rating, reverse=True)


def swipe_stats(swipes: Iterable[SwipeRecord]) -> SwipeStats:
    """Count swipes per participant and per direction."""
    by_participant: dict[str, dict[str, int]] = {}
    by_direction = dict.fromkeys(SWIPE_DIRECTIONS, 0)
    total = 0
    for swipe in swipes:
        total += 1
        counts = by_participant.setdefault(
            swipe.participant_handle, dict.fromkeys(SWIPE_DIRECTIONS, 0)
        )
        counts[swipe.direction] += 1
        by_direction[swipe.direction] += 1
    return SwipeStats(
        total_swipes=total,
        by_participant=by_participant,
        by_direction=by_direction,
    )


@dataclass
class MatchService:
    """Computes matches and statistics for a session on demand."""

    ledger: SwipeLedger

    def compute_matches(self, session_id: UUID) -> list[MatchResult]:
        """Return the current match set for a session."""
        return compute_matches(self.ledger.list_swipes(session_id, "right"))

    def is_match(self, session_id: UUID, candidate_id: str) -> MatchResult | None:
        """Return the match for a candidate if it currently qualifies."""
        for match in self.compute_matches(session_id):
            if match.candidate_id == candidate_id:
                return match
        return None

    def get_stats(self, session_id: UUID) -> SwipeStats:
        """Return swipe statistics for a session."""
        return swipe_stats(self.ledger.list_swipes(session_id))
