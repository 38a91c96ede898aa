"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from dine_match.adapters.places_client import PlacesClient
from dine_match.config import Settings
from dine_match.containers import AppContainer
from dine_match.domain.errors import DuplicateSwipeError, SessionKeyConflictError
from dine_match.domain.sessions import (
    Location,
    Participant,
    SessionFilters,
    SessionRecord,
    SessionStatus,
)
from dine_match.domain.swipes import SwipeDirection, SwipeRecord
from dine_match.services.cache import InMemoryCache
from dine_match.services.candidates import CandidateService
from dine_match.services.keys import KeyGenerator
from dine_match.services.matches import MatchService
from dine_match.services.realtime import EventRouter
from dine_match.services.sessions import SessionLifecycleService, SessionRepository
from dine_match.services.swipes import SwipeLedger, SwipeRepository


@dataclass
class FakeClock:
    """Controllable clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class SequenceKeyGenerator(KeyGenerator):
    """Key generator returning queued keys, then a fallback."""

    keys: list[str] = field(default_factory=list)
    fallback: str = "ZZZZ"
    issued: list[str] = field(default_factory=list)

    def generate_key(self) -> str:
        key = self.keys.pop(0) if self.keys else self.fallback
        self.issued.append(key)
        return key


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[UUID, SessionRecord] = field(default_factory=dict)

    def create_session(
        self,
        key: str,
        filters: SessionFilters,
        location: Location,
        created_at: datetime,
    ) -> SessionRecord:
        if any(session.key == key for session in self.sessions.values()):
            raise SessionKeyConflictError(key)
        session = SessionRecord(
            id=uuid4(),
            key=key,
            filters=filters,
            location=location,
            status="waiting",
            created_at=created_at,
        )
        self.sessions[session.id] = session
        return session

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        return self.sessions.get(session_id)

    def get_session_by_key(self, key: str) -> SessionRecord | None:
        for session in self.sessions.values():
            if session.key == key:
                return session
        return None

    def update_membership(
        self,
        session_id: UUID,
        participants: tuple[Participant, ...],
        status: SessionStatus,
        expected_version: int,
    ) -> SessionRecord | None:
        session = self.sessions.get(session_id)
        if session is None or session.version != expected_version:
            return None
        updated = replace(
            session,
            participants=participants,
            status=status,
            version=session.version + 1,
        )
        self.sessions[session_id] = updated
        return updated

    def delete_session(self, session_id: UUID, expected_version: int) -> bool:
        session = self.sessions.get(session_id)
        if session is None or session.version != expected_version:
            return False
        del self.sessions[session_id]
        return True

    def delete_sessions_created_before(self, cutoff: datetime) -> list[UUID]:
        expired = [
            session.id
            for session in self.sessions.values()
            if session.created_at < cutoff
        ]
        for session_id in expired:
            del self.sessions[session_id]
        return expired

    def list_sessions(self, limit: int) -> list[SessionRecord]:
        ordered = sorted(
            self.sessions.values(), key=lambda session: session.created_at, reverse=True
        )
        return ordered[:limit]


@dataclass
class InMemorySwipeRepository(SwipeRepository):
    """In-memory swipe repository enforcing the unique triple."""

    swipes: dict[tuple[UUID, str, str], SwipeRecord] = field(default_factory=dict)

    def create_swipe(  # noqa: PLR0913
        self,
        session_id: UUID,
        participant_handle: str,
        candidate_id: str,
        direction: SwipeDirection,
        candidate_snapshot: dict[str, object],
        created_at: datetime,
    ) -> SwipeRecord:
        key = (session_id, participant_handle, candidate_id)
        if key in self.swipes:
            raise DuplicateSwipeError()
        record = SwipeRecord(
            id=uuid4(),
            session_id=session_id,
            participant_handle=participant_handle,
            candidate_id=candidate_id,
            direction=direction,
            candidate_snapshot=candidate_snapshot,
            created_at=created_at,
        )
        self.swipes[key] = record
        return record

    def list_swipes(
        self, session_id: UUID, direction: SwipeDirection | None = None
    ) -> list[SwipeRecord]:
        return [
            record
            for record in self.swipes.values()
            if record.session_id == session_id
            and (direction is None or record.direction == direction)
        ]


@dataclass
class FakeConnection:
    """Router connection that records delivered events."""

    handle: str
    events: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    async def send(self, event: str, data: dict[str, object]) -> None:
        self.events.append((event, data))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]

    def last(self, event: str) -> dict[str, object]:
        for name, data in reversed(self.events):
            if name == event:
                return data
        raise AssertionError(f"{event} was never sent to {self.handle}")


@dataclass
class FakePlacesClient(PlacesClient):
    """Places client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "places": [
                {
                    "id": "place-1",
                    "displayName": {"text": "Noodle Bar"},
                    "formattedAddress": "1 Main St",
                    "rating": 4.6,
                    "priceLevel": "PRICE_LEVEL_MODERATE",
                    "location": {"latitude": 40.7, "longitude": -74.0},
                    "photos": [
                        {"name": f"places/place-1/photos/{index}", "widthPx": 800}
                        for index in range(5)
                    ],
                    "types": ["restaurant"],
                },
                {
                    "id": "place-2",
                    "displayName": {"text": "Steakhouse"},
                    "rating": 4.2,
                    "priceLevel": "PRICE_LEVEL_VERY_EXPENSIVE",
                },
            ]
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

    async def search_nearby(  # noqa: PLR0913
        self,
        lat: float,
        lng: float,
        radius: float,
        included_types: list[str],
        max_results: int = 20,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "lat": lat,
                "lng": lng,
                "radius": radius,
                "included_types": included_types,
                "max_results": max_results,
            }
        )
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        places_api_key="places-key",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def swipe_repository() -> InMemorySwipeRepository:
    return InMemorySwipeRepository()


@pytest.fixture
def key_generator() -> SequenceKeyGenerator:
    return SequenceKeyGenerator(keys=["ABCD", "EFGH", "IJKL", "MNOP"])


@pytest.fixture
def session_service(
    session_repository: InMemorySessionRepository,
    key_generator: SequenceKeyGenerator,
    clock: FakeClock,
) -> SessionLifecycleService:
    return SessionLifecycleService(
        repository=session_repository,
        key_generator=key_generator,
        clock=clock,
    )


@pytest.fixture
def swipe_ledger(
    swipe_repository: InMemorySwipeRepository, clock: FakeClock
) -> SwipeLedger:
    return SwipeLedger(swipe_repository, clock=clock)


@pytest.fixture
def match_service(swipe_ledger: SwipeLedger) -> MatchService:
    return MatchService(swipe_ledger)


@pytest.fixture
def event_router(
    session_service: SessionLifecycleService,
    swipe_ledger: SwipeLedger,
    match_service: MatchService,
) -> EventRouter:
    return EventRouter(
        lifecycle=session_service,
        ledger=swipe_ledger,
        matches=match_service,
    )


@pytest.fixture
def places_client() -> FakePlacesClient:
    return FakePlacesClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    session_service: SessionLifecycleService,
    swipe_ledger: SwipeLedger,
    match_service: MatchService,
    event_router: EventRouter,
    places_client: FakePlacesClient,
) -> AppContainer:
    candidate_service = CandidateService(
        places_client=places_client,
        cache=InMemoryCache(),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_service=session_service,
        swipe_ledger=swipe_ledger,
        match_service=match_service,
        event_router=event_router,
        candidate_service=candidate_service,
        close_resources=close_resources,
    )
