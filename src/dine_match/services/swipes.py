"""Swipe ledger with first-decision-wins semantics."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from dine_match.domain.swipes import SwipeDirection, SwipeRecord

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SwipeRepository(Protocol):
    """Persistence interface for swipe records."""

    def create_swipe(  # noqa: PLR0913
        self,
        session_id: UUID,
        participant_handle: str,
        candidate_id: str,
        direction: SwipeDirection,
        candidate_snapshot: dict[str, object],
        created_at: datetime,
    ) -> SwipeRecord:
        """Insert a swipe, raising DuplicateSwipeError on a repeated decision."""

    def list_swipes(
        self, session_id: UUID, direction: SwipeDirection | None = None
    ) -> list[SwipeRecord]:
        """Return swipes for a session, optionally filtered by direction."""


@dataclass
class SwipeLedger:
    """Append-only record of participant decisions."""

    repository: SwipeRepository
    clock: Callable[[], datetime] = _utcnow

    def record_swipe(  # noqa: PLR0913
        self,
        session_id: UUID,
        participant_handle: str,
        candidate_id: str,
        direction: SwipeDirection,
        candidate_snapshot: dict[str, object] | None = None,
    ) -> SwipeRecord:
        """Record a decision; a repeated decision raises DuplicateSwipeError."""
        record = self.repository.create_swipe(
            session_id=session_id,
            participant_handle=participant_handle,
            candidate_id=candidate_id,
            direction=direction,
            candidate_snapshot=dict(candidate_snapshot or {}),
            created_at=self.clock(),
        )
        _logger.debug(
            "Swipe %s on %s by %s in session %s",
            direction,
            candidate_id,
            participant_handle,
            session_id,
        )
        return record

    def list_swipes(
        self, session_id: UUID, direction: SwipeDirection | None = None
    ) -> list[SwipeRecord]:
        """Return recorded swipes for a session."""
        return self.repository.list_swipes(session_id, direction)
