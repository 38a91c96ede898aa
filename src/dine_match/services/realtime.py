"""Realtime event routing between session participants."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from dine_match.domain.errors import (
    DineMatchError,
    DuplicateSwipeError,
    NotParticipantError,
    SessionNotFoundError,
)
from dine_match.domain.sessions import MAX_PARTICIPANTS, Retired, SessionRecord
from dine_match.domain.swipes import SwipeDirection
from dine_match.services.keys import normalize_key
from dine_match.services.matches import MIN_MATCH_PARTICIPANTS, MatchService
from dine_match.services.sessions import SessionLifecycleService
from dine_match.services.swipes import SwipeLedger

_logger = logging.getLogger(__name__)


class Connection(Protocol):
    """A live transport connection identified by an ephemeral handle."""

    @property
    def handle(self) -> str:
        """Return the connection handle."""

    async def send(self, event: str, data: dict[str, object]) -> None:
        """Deliver an outbound event to this connection."""


class BroadcastGroups:
    """Maps session ids to the connections joined to them."""

    def __init__(self) -> None:
        self._groups: dict[UUID, dict[str, Connection]] = {}
        self._sessions_by_handle: dict[str, set[UUID]] = {}

    def add(self, session_id: UUID, connection: Connection) -> None:
        self._groups.setdefault(session_id, {})[connection.handle] = connection
        self._sessions_by_handle.setdefault(connection.handle, set()).add(session_id)

    def remove(self, session_id: UUID, handle: str) -> None:
        group = self._groups.get(session_id)
        if group is not None:
            group.pop(handle, None)
            if not group:
                del self._groups[session_id]
        self._unlink(handle, session_id)

    def drop(self, session_id: UUID) -> list[Connection]:
        """Remove a whole group and return the connections it held."""
        group = self._groups.pop(session_id, {})
        for handle in group:
            self._unlink(handle, session_id)
        return list(group.values())

    def members(self, session_id: UUID) -> list[Connection]:
        return list(self._groups.get(session_id, {}).values())

    def handles(self, session_id: UUID) -> set[str]:
        return set(self._groups.get(session_id, {}))

    def is_member(self, session_id: UUID, handle: str) -> bool:
        return handle in self._groups.get(session_id, {})

    def sessions_for(self, handle: str) -> list[UUID]:
        return list(self._sessions_by_handle.get(handle, set()))

    def __len__(self) -> int:
        return len(self._groups)

    def _unlink(self, handle: str, session_id: UUID) -> None:
        sessions = self._sessions_by_handle.get(handle)
        if sessions is None:
            return
        sessions.discard(session_id)
        if not sessions:
            del self._sessions_by_handle[handle]


@dataclass
class EventRouter:
    """Applies inbound events to the core and fans out state changes."""

    lifecycle: SessionLifecycleService
    ledger: SwipeLedger
    matches: MatchService
    groups: BroadcastGroups = field(default_factory=BroadcastGroups)
    completions: dict[UUID, set[str]] = field(default_factory=dict)

    async def join(
        self, connection: Connection, session_id: UUID, key: str | None = None
    ) -> None:
        """Admit a connection and broadcast the new session state."""
        try:
            if key is not None:
                current = self.lifecycle.get_session(session_id)
                if current.key != normalize_key(key):
                    raise SessionNotFoundError()
            session = await self.lifecycle.admit_participant(
                session_id, connection.handle
            )
        except DineMatchError as exc:
            await self.reject(connection, exc)
            return
        self.groups.add(session_id, connection)
        await self._broadcast(session_id, "session-updated", session_state(session))

    async def swipe(  # noqa: PLR0913
        self,
        connection: Connection,
        session_id: UUID,
        candidate_id: str,
        direction: SwipeDirection,
        candidate_snapshot: dict[str, object] | None = None,
    ) -> None:
        """Record a swipe and relay it to the other member."""
        if not self.groups.is_member(session_id, connection.handle):
            await self.reject(connection, NotParticipantError())
            return
        if not await self._ensure_live(session_id):
            return
        try:
            self.ledger.record_swipe(
                session_id=session_id,
                participant_handle=connection.handle,
                candidate_id=candidate_id,
                direction=direction,
                candidate_snapshot=candidate_snapshot,
            )
        except DuplicateSwipeError:
            _logger.info(
                "Ignoring duplicate swipe on %s by %s in session %s",
                candidate_id,
                connection.handle,
                session_id,
            )
            return
        await self._broadcast(
            session_id,
            "peer-swiped",
            {"candidateId": candidate_id, "direction": direction},
            exclude=connection.handle,
        )
        if direction != "right":
            return
        match = self.matches.is_match(session_id, candidate_id)
        if match is not None and len(match.participant_handles) == (
            MIN_MATCH_PARTICIPANTS
        ):
            await self._broadcast(
                session_id,
                "match-found",
                {"candidateId": candidate_id, "candidate": match.candidate_snapshot},
            )

    async def complete(self, connection: Connection, session_id: UUID) -> None:
        """Mark a member as done swiping and tell the other member."""
        if not self.groups.is_member(session_id, connection.handle):
            await self.reject(connection, NotParticipantError())
            return
        if not await self._ensure_live(session_id):
            return
        done = self.completions.setdefault(session_id, set())
        done.add(connection.handle)
        await self._broadcast(
            session_id, "peer-completed", {}, exclude=connection.handle
        )
        members = self.groups.handles(session_id)
        if len(members) == MAX_PARTICIPANTS and members <= done:
            await self._broadcast(session_id, "swiping-completed", {})

    async def disconnect(self, connection: Connection) -> None:
        """Remove a lost connection from every session it had joined."""
        for session_id in self.groups.sessions_for(connection.handle):
            self.groups.remove(session_id, connection.handle)
            self.completions.get(session_id, set()).discard(connection.handle)
            try:
                result = await self.lifecycle.remove_participant(
                    session_id, connection.handle
                )
            except SessionNotFoundError:
                self._forget(session_id)
                continue
            except DineMatchError:
                _logger.warning(
                    "Failed to remove %s from session %s",
                    connection.handle,
                    session_id,
                    exc_info=True,
                )
                continue
            if isinstance(result, Retired):
                self._forget(session_id)
                continue
            await self._broadcast(
                session_id, "session-updated", session_state(result)
            )

    async def expire_sessions(self, session_ids: Iterable[UUID]) -> None:
        """Notify and drop members of sessions removed by retention."""
        for session_id in session_ids:
            members = self.groups.drop(session_id)
            self.completions.pop(session_id, None)
            for member in members:
                await self.reject(member, SessionNotFoundError("Session expired"))

    async def reject(self, connection: Connection, error: DineMatchError) -> None:
        """Report a failed operation to the originating connection only."""
        await self._send(
            connection, "error", {"kind": error.kind, "message": error.message}
        )

    async def _ensure_live(self, session_id: UUID) -> bool:
        """Expire the group of a session that outlived retention before a sweep."""
        try:
            self.lifecycle.get_session(session_id)
        except SessionNotFoundError:
            await self.expire_sessions([session_id])
            return False
        return True

    def _forget(self, session_id: UUID) -> None:
        self.groups.drop(session_id)
        self.completions.pop(session_id, None)

    async def _broadcast(
        self,
        session_id: UUID,
        event: str,
        data: dict[str, object],
        exclude: str | None = None,
    ) -> None:
        for member in self.groups.members(session_id):
            if member.handle != exclude:
                await self._send(member, event, data)

    async def _send(
        self, connection: Connection, event: str, data: dict[str, object]
    ) -> None:
        try:
            await connection.send(event, data)
        except Exception:
            _logger.exception("Failed to deliver %s to %s", event, connection.handle)


def session_state(session: SessionRecord) -> dict[str, object]:
    """Build the session-updated payload."""
    return {
        "sessionId": str(session.id),
        "participantCount": session.participant_count,
        "status": session.status,
    }
