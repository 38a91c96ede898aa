"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from dine_match.adapters.supabase_rows import is_unique_violation, parse_timestamp
from dine_match.domain.errors import SessionKeyConflictError
from dine_match.domain.sessions import (
    Location,
    Participant,
    SessionFilters,
    SessionRecord,
    SessionStatus,
)
from dine_match.services.sessions import SessionRepository

_TABLE = "match_sessions"
_COLUMNS = (
    "id, key, filters, location, participants, participant_count, version, status, "
    "created_at"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for matching sessions."""

    client: Client

    def create_session(
        self,
        key: str,
        filters: SessionFilters,
        location: Location,
        created_at: datetime,
    ) -> SessionRecord:
        """Create a session row and return it."""
        try:
            response = (
                self.client.table(_TABLE)
                .insert(
                    {
                        "key": key,
                        "filters": {
                            "max_distance": filters.max_distance,
                            "category": filters.category,
                            "price_levels": list(filters.price_levels),
                        },
                        "location": {"lat": location.lat, "lng": location.lng},
                        "participants": [],
                        "participant_count": 0,
                        "version": 0,
                        "status": "waiting",
                        "created_at": created_at.isoformat(),
                    }
                )
                .execute()
            )
        except APIError as exc:
            if is_unique_violation(exc):
                raise SessionKeyConflictError(key) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _to_session(response.data[0])

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def get_session_by_key(self, key: str) -> SessionRecord | None:
        """Return a session by join key, if present."""
        response = (
            self.client.table(_TABLE).select(_COLUMNS).eq("key", key).limit(1).execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def update_membership(
        self,
        session_id: UUID,
        participants: tuple[Participant, ...],
        status: SessionStatus,
        expected_version: int,
    ) -> SessionRecord | None:
        """Conditionally replace membership; None when the row changed since read."""
        response = (
            self.client.table(_TABLE)
            .update(
                {
                    "participants": [
                        {
                            "connection_handle": participant.connection_handle,
                            "joined_at": participant.joined_at.isoformat(),
                        }
                        for participant in participants
                    ],
                    "participant_count": len(participants),
                    "version": expected_version + 1,
                    "status": status,
                }
            )
            .eq("id", str(session_id))
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            return None
        return _to_session(response.data[0])

    def delete_session(self, session_id: UUID, expected_version: int) -> bool:
        """Conditionally delete a session row."""
        response = (
            self.client.table(_TABLE)
            .delete()
            .eq("id", str(session_id))
            .eq("version", expected_version)
            .execute()
        )
        return bool(response.data)

    def delete_sessions_created_before(self, cutoff: datetime) -> list[UUID]:
        """Delete expired sessions; swipes cascade."""
        response = (
            self.client.table(_TABLE)
            .delete()
            .lt("created_at", cutoff.isoformat())
            .execute()
        )
        return [UUID(row["id"]) for row in response.data or []]

    def list_sessions(self, limit: int) -> list[SessionRecord]:
        """Return the most recently created sessions."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_to_session(row) for row in response.data or []]


def _to_session(row: dict) -> SessionRecord:
    filters = row.get("filters") or {}
    location = row.get("location") or {}
    return SessionRecord(
        id=UUID(row["id"]),
        key=row["key"],
        filters=SessionFilters(
            max_distance=int(filters.get("max_distance", 5000)),
            category=str(filters.get("category", "restaurant")),
            price_levels=tuple(filters.get("price_levels", (1, 2, 3, 4))),
        ),
        location=Location(lat=float(location["lat"]), lng=float(location["lng"])),
        status=row["status"],
        created_at=parse_timestamp(row["created_at"]),
        participants=tuple(
            Participant(
                connection_handle=item["connection_handle"],
                joined_at=parse_timestamp(item["joined_at"]),
            )
            for item in row.get("participants") or []
        ),
        version=int(row.get("version") or 0),
    )
