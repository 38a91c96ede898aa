"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import httpx
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dine_match.api.admin import router as admin_router
from dine_match.api.models import (
    CreateSessionRequest,
    JoinSessionRequest,
    SwipeRequest,
)
from dine_match.api.realtime import router as realtime_router
from dine_match.api.serializers import (
    serialize_candidate,
    serialize_filters,
    serialize_match,
    serialize_session,
    serialize_stats,
)
from dine_match.app_logging import configure_logging
from dine_match.config import parse_allowed_origins
from dine_match.containers import AppContainer
from dine_match.domain.errors import DineMatchError
from dine_match.domain.sessions import (
    DEFAULT_CATEGORY,
    DEFAULT_MAX_DISTANCE_M,
    DEFAULT_PRICE_LEVELS,
    Location,
    SessionFilters,
)
from dine_match.services.matches import sort_by_rating

_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "session_full": status.HTTP_409_CONFLICT,
    "duplicate_swipe": status.HTTP_409_CONFLICT,
    "conflict": status.HTTP_409_CONFLICT,
    "invalid_key_format": status.HTTP_400_BAD_REQUEST,
    "invalid_event": status.HTTP_400_BAD_REQUEST,
    "not_participant": status.HTTP_403_FORBIDDEN,
    "key_generation_exhausted": status.HTTP_503_SERVICE_UNAVAILABLE,
}

_logger = logging.getLogger(__name__)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            _sweep_forever(
                app.state.container,
                app.state.container.settings.retention_sweep_interval_seconds,
            )
        )
        yield
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.frontend_url),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(admin_router)
    app.include_router(realtime_router)

    @app.exception_handler(DineMatchError)
    async def handle_domain_error(
        request: Request, exc: DineMatchError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=_ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST),
            content={"error": exc.message, "kind": exc.kind},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(
        body: CreateSessionRequest, request: Request
    ) -> dict[str, object]:
        """Create a waiting session with search filters."""
        state_container: AppContainer = request.app.state.container
        filters = SessionFilters(
            max_distance=body.max_distance or DEFAULT_MAX_DISTANCE_M,
            category=body.category or DEFAULT_CATEGORY,
            price_levels=tuple(body.price_levels or DEFAULT_PRICE_LEVELS),
        )
        session = state_container.session_service.create_session(
            filters=filters,
            location=Location(lat=body.location.lat, lng=body.location.lng),
        )
        return {
            "sessionId": str(session.id),
            "key": session.key,
            "filters": serialize_filters(session.filters),
            "status": session.status,
        }

    @app.post("/api/sessions/join")
    async def join_session(
        body: JoinSessionRequest, request: Request
    ) -> dict[str, object]:
        """Look up a joinable session by key."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_service.join_by_key(body.key)
        return serialize_session(session)

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> dict[str, object]:
        """Return session details."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_service.get_session(session_id)
        return serialize_session(session, include_created_at=True)

    @app.get("/api/sessions/{session_id}/matches")
    async def get_matches(session_id: UUID, request: Request) -> dict[str, object]:
        """Return candidates both participants liked, best rated first."""
        state_container: AppContainer = request.app.state.container
        state_container.session_service.get_session(session_id)
        matches = sort_by_rating(
            state_container.match_service.compute_matches(session_id)
        )
        return {
            "matches": [serialize_match(match) for match in matches],
            "count": len(matches),
        }

    @app.get("/api/sessions/{session_id}/stats")
    async def get_stats(session_id: UUID, request: Request) -> dict[str, object]:
        """Return swipe statistics for a session."""
        state_container: AppContainer = request.app.state.container
        state_container.session_service.get_session(session_id)
        return serialize_stats(state_container.match_service.get_stats(session_id))

    @app.post("/api/swipes", status_code=status.HTTP_201_CREATED)
    async def record_swipe(body: SwipeRequest, request: Request) -> dict[str, object]:
        """Record a swipe outside the realtime channel."""
        state_container: AppContainer = request.app.state.container
        state_container.session_service.get_session(body.session_id)
        record = state_container.swipe_ledger.record_swipe(
            session_id=body.session_id,
            participant_handle=body.participant_handle,
            candidate_id=body.candidate_id,
            direction=body.direction,
            candidate_snapshot=body.candidate,
        )
        return {"success": True, "swipeId": str(record.id)}

    @app.get("/api/candidates")
    async def list_candidates(
        request: Request, session_id: UUID = Query(alias="sessionId")
    ) -> dict[str, object]:
        """Return candidates matching the session's filters."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_service.get_session(session_id)
        try:
            candidates = await state_container.candidate_service.for_session(session)
        except httpx.HTTPError as exc:
            _logger.exception(
                "Candidate search failed", extra={"session_id": str(session_id)}
            )
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to fetch candidates",
            ) from exc
        return {
            "candidates": [serialize_candidate(candidate) for candidate in candidates],
            "count": len(candidates),
        }

    return app


async def run_retention_sweep(container: AppContainer) -> list[UUID]:
    """Purge expired sessions and release their realtime state."""
    purged = container.session_service.purge_expired()
    await container.event_router.expire_sessions(purged)
    for session_id in purged:
        container.candidate_service.forget(session_id)
    return purged


async def _sweep_forever(container: AppContainer, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_retention_sweep(container)
        except Exception:
            _logger.exception("Retention sweep failed")
