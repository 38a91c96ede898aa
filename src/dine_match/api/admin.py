"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from dine_match.api.serializers import serialize_session

if TYPE_CHECKING:
    from dine_match.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(request: Request, limit: int = 20) -> dict[str, object]:
    """Return recent live sessions with their connected member counts."""
    container: AppContainer = request.app.state.container
    groups = container.event_router.groups
    sessions = []
    for session in container.session_service.list_sessions(limit):
        payload = serialize_session(session, include_created_at=True)
        payload["connectedCount"] = len(groups.handles(session.id))
        sessions.append(payload)
    return {"sessions": sessions}
