"""Supabase-backed swipe repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from dine_match.adapters.supabase_rows import is_unique_violation, parse_timestamp
from dine_match.domain.errors import DuplicateSwipeError
from dine_match.domain.swipes import SwipeDirection, SwipeRecord
from dine_match.services.swipes import SwipeRepository

_TABLE = "swipes"
_COLUMNS = (
    "id, session_id, participant_handle, candidate_id, direction, "
    "candidate_snapshot, created_at"
)


@dataclass
class SupabaseSwipeRepository(SwipeRepository):
    """Supabase implementation for the swipe ledger."""

    client: Client

    def create_swipe(  # noqa: PLR0913
        self,
        session_id: UUID,
        participant_handle: str,
        candidate_id: str,
        direction: SwipeDirection,
        candidate_snapshot: dict[str, object],
        created_at: datetime,
    ) -> SwipeRecord:
        """Insert a swipe row; the unique index rejects repeats."""
        try:
            response = (
                self.client.table(_TABLE)
                .insert(
                    {
                        "session_id": str(session_id),
                        "participant_handle": participant_handle,
                        "candidate_id": candidate_id,
                        "direction": direction,
                        "candidate_snapshot": candidate_snapshot,
                        "created_at": created_at.isoformat(),
                    }
                )
                .execute()
            )
        except APIError as exc:
            if is_unique_violation(exc):
                raise DuplicateSwipeError() from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to record swipe")
        return _to_swipe(response.data[0])

    def list_swipes(
        self, session_id: UUID, direction: SwipeDirection | None = None
    ) -> list[SwipeRecord]:
        """Return swipes for a session in insertion order."""
        query = self.client.table(_TABLE).select(_COLUMNS).eq(
            "session_id", str(session_id)
        )
        if direction is not None:
            query = query.eq("direction", direction)
        response = query.order("created_at").execute()
        return [_to_swipe(row) for row in response.data or []]


def _to_swipe(row: dict) -> SwipeRecord:
    return SwipeRecord(
        id=UUID(row["id"]),
        session_id=UUID(row["session_id"]),
        participant_handle=row["participant_handle"],
        candidate_id=row["candidate_id"],
        direction=row["direction"],
        candidate_snapshot=row.get("candidate_snapshot") or {},
        created_at=parse_timestamp(row["created_at"]),
    )
