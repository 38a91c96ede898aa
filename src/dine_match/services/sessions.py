"""Session lifecycle state machine with per-session serialization."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from dine_match.domain.errors import (
    InvalidKeyFormatError,
    KeyGenerationExhaustedError,
    MembershipConflictError,
    SessionFullError,
    SessionKeyConflictError,
    SessionNotFoundError,
)
from dine_match.domain.sessions import (
    MAX_PARTICIPANTS,
    Location,
    Participant,
    Retired,
    SessionFilters,
    SessionRecord,
    SessionStatus,
    status_for_count,
)
from dine_match.services.keys import KeyGenerator, is_valid_key_format, normalize_key

_logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for matching sessions."""

    def create_session(
        self,
        key: str,
        filters: SessionFilters,
        location: Location,
        created_at: datetime,
    ) -> SessionRecord:
        """Create a waiting session, raising SessionKeyConflictError on a taken key."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def get_session_by_key(self, key: str) -> SessionRecord | None:
        """Return a session by join key, if present."""

    def update_membership(
        self,
        session_id: UUID,
        participants: tuple[Participant, ...],
        status: SessionStatus,
        expected_version: int,
    ) -> SessionRecord | None:
        """Replace membership iff the stored version still equals expected_version.

        A successful write bumps the version, so any concurrent change between
        read and write makes the call return None.
        """

    def delete_session(self, session_id: UUID, expected_version: int) -> bool:
        """Delete a session iff the stored version still equals expected_version."""

    def delete_sessions_created_before(self, cutoff: datetime) -> list[UUID]:
        """Delete sessions created before the cutoff and return their ids."""

    def list_sessions(self, limit: int) -> list[SessionRecord]:
        """Return the most recent sessions."""


class SessionLocks:
    """One asyncio lock per live session id."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}

    def for_session(self, session_id: UUID) -> asyncio.Lock:
        """Return the lock guarding a session, creating it on first use."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def discard(self, session_id: UUID) -> None:
        """Forget the lock for a retired session."""
        self._locks.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._locks

    def __len__(self) -> int:
        return len(self._locks)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionLifecycleService:
    """Owns session status and membership transitions."""

    repository: SessionRepository
    key_generator: KeyGenerator
    locks: SessionLocks = field(default_factory=SessionLocks)
    retention: timedelta = timedelta(hours=24)
    key_generation_attempts: int = 10
    write_attempts: int = 3
    clock: Callable[[], datetime] = _utcnow

    def create_session(
        self, filters: SessionFilters, location: Location
    ) -> SessionRecord:
        """Persist a new waiting session under a collision-free key."""
        for attempt in range(1, self.key_generation_attempts + 1):
            key = self.key_generator.generate_key()
            try:
                session = self.repository.create_session(
                    key=key,
                    filters=filters,
                    location=location,
                    created_at=self.clock(),
                )
            except SessionKeyConflictError:
                _logger.info("Join key collision on attempt %s", attempt)
                self._purge_if_expired(self.repository.get_session_by_key(key))
                continue
            _logger.info("Session %s created with key %s", session.id, session.key)
            return session
        raise KeyGenerationExhaustedError()

    def join_by_key(self, key: str) -> SessionRecord:
        """Look up a joinable session without admitting the caller."""
        if not is_valid_key_format(key):
            raise InvalidKeyFormatError()
        session = self.repository.get_session_by_key(normalize_key(key))
        if session is None or self._is_expired(session):
            raise SessionNotFoundError()
        if session.participant_count >= MAX_PARTICIPANTS:
            raise SessionFullError()
        return session

    def get_session(self, session_id: UUID) -> SessionRecord:
        """Return a live session or raise SessionNotFoundError."""
        session = self.repository.get_session(session_id)
        if session is None or self._is_expired(session):
            raise SessionNotFoundError()
        return session

    def list_sessions(self, limit: int = 20) -> list[SessionRecord]:
        """Return recent sessions that are still within retention."""
        return [
            session
            for session in self.repository.list_sessions(limit)
            if not self._is_expired(session)
        ]

    async def admit_participant(
        self, session_id: UUID, connection_handle: str
    ) -> SessionRecord:
        """Add a connection to a session, idempotent for existing members."""
        try:
            async with self.locks.for_session(session_id):
                return await self._admit(session_id, connection_handle)
        except SessionNotFoundError:
            self.locks.discard(session_id)
            raise

    async def remove_participant(
        self, session_id: UUID, connection_handle: str
    ) -> SessionRecord | Retired:
        """Remove a connection, retiring the session when it becomes empty."""
        try:
            async with self.locks.for_session(session_id):
                result = await self._remove(session_id, connection_handle)
        except SessionNotFoundError:
            self.locks.discard(session_id)
            raise
        if isinstance(result, Retired):
            self.locks.discard(session_id)
        return result

    async def _admit(self, session_id: UUID, connection_handle: str) -> SessionRecord:
        for _ in range(self.write_attempts):
            session = await asyncio.to_thread(self.get_session, session_id)
            if session.has_participant(connection_handle):
                return session
            if session.participant_count >= MAX_PARTICIPANTS:
                raise SessionFullError()
            participants = (
                *session.participants,
                Participant(
                    connection_handle=connection_handle,
                    joined_at=self.clock(),
                ),
            )
            updated = await asyncio.to_thread(
                self.repository.update_membership,
                session_id,
                participants=participants,
                status=_next_status(session, len(participants)),
                expected_version=session.version,
            )
            if updated is not None:
                _logger.info(
                    "Connection %s joined session %s (%s/%s)",
                    connection_handle,
                    session_id,
                    updated.participant_count,
                    MAX_PARTICIPANTS,
                )
                return updated
            _logger.warning(
                "Membership of session %s changed during admission", session_id
            )
        raise MembershipConflictError()

    async def _remove(
        self, session_id: UUID, connection_handle: str
    ) -> SessionRecord | Retired:
        for _ in range(self.write_attempts):
            session = await asyncio.to_thread(self.get_session, session_id)
            if not session.has_participant(connection_handle):
                return session
            remaining = tuple(
                participant
                for participant in session.participants
                if participant.connection_handle != connection_handle
            )
            if not remaining:
                deleted = await asyncio.to_thread(
                    self.repository.delete_session,
                    session_id,
                    expected_version=session.version,
                )
                if deleted:
                    _logger.info("Session %s retired", session_id)
                    return Retired(session_id=session_id)
                continue
            updated = await asyncio.to_thread(
                self.repository.update_membership,
                session_id,
                participants=remaining,
                status=_next_status(session, len(remaining)),
                expected_version=session.version,
            )
            if updated is not None:
                _logger.info(
                    "Connection %s left session %s", connection_handle, session_id
                )
                return updated
        raise MembershipConflictError()

    def purge_expired(self) -> list[UUID]:
        """Delete sessions past the retention window and return their ids."""
        cutoff = self.clock() - self.retention
        purged = self.repository.delete_sessions_created_before(cutoff)
        for session_id in purged:
            self.locks.discard(session_id)
        if purged:
            _logger.info("Purged %s expired sessions", len(purged))
        return purged

    def _is_expired(self, session: SessionRecord) -> bool:
        return self.clock() - session.created_at >= self.retention

    def _purge_if_expired(self, session: SessionRecord | None) -> None:
        if session is not None and self._is_expired(session):
            self.repository.delete_session(
                session.id, expected_version=session.version
            )
            self.locks.discard(session.id)


def _next_status(session: SessionRecord, count: int) -> SessionStatus:
    if session.status == "completed":
        return "completed"
    return status_for_count(count)
