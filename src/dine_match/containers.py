"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from dine_match.adapters.places_client import HttpxPlacesClient
from dine_match.adapters.supabase_session_repository import SupabaseSessionRepository
from dine_match.adapters.supabase_swipe_repository import SupabaseSwipeRepository
from dine_match.config import Settings
from dine_match.services.cache import InMemoryCache
from dine_match.services.candidates import CandidateService
from dine_match.services.keys import RandomKeyGenerator
from dine_match.services.matches import MatchService
from dine_match.services.realtime import EventRouter
from dine_match.services.sessions import SessionLifecycleService
from dine_match.services.swipes import SwipeLedger


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_service: SessionLifecycleService
    swipe_ledger: SwipeLedger
    match_service: MatchService
    event_router: EventRouter
    candidate_service: CandidateService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_service = SessionLifecycleService(
        repository=SupabaseSessionRepository(supabase_client),
        key_generator=RandomKeyGenerator(),
        retention=timedelta(hours=resolved_settings.session_retention_hours),
        key_generation_attempts=resolved_settings.key_generation_attempts,
    )
    swipe_ledger = SwipeLedger(SupabaseSwipeRepository(supabase_client))
    match_service = MatchService(swipe_ledger)
    event_router = EventRouter(
        lifecycle=session_service,
        ledger=swipe_ledger,
        matches=match_service,
    )
    places_client = HttpxPlacesClient.create(
        api_key=resolved_settings.places_api_key,
        base_url=resolved_settings.places_base_url,
    )
    candidate_service = CandidateService(
        places_client=places_client,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.candidate_cache_ttl_seconds,
    )

    async def close_resources() -> None:
        await places_client.close()

    return AppContainer(
        settings=resolved_settings,
        session_service=session_service,
        swipe_ledger=swipe_ledger,
        match_service=match_service,
        event_router=event_router,
        candidate_service=candidate_service,
        close_resources=close_resources,
    )
