"""Pydantic models for HTTP and realtime payloads."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LocationPayload(BaseModel):
    """Latitude/longitude pair."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class CreateSessionRequest(_CamelModel):
    """Body for creating a session."""

    location: LocationPayload
    max_distance: int | None = Field(default=None, alias="maxDistance", gt=0)
    category: str | None = None
    price_levels: list[int] | None = Field(default=None, alias="priceLevels")


class JoinSessionRequest(BaseModel):
    """Body for looking up a session by join key."""

    key: str


class SwipeRequest(_CamelModel):
    """Body for recording a swipe over HTTP."""

    session_id: UUID = Field(alias="sessionId")
    participant_handle: str = Field(alias="participantHandle", min_length=1)
    candidate_id: str = Field(alias="candidateId", min_length=1)
    direction: Literal["left", "right"]
    candidate: dict[str, object] | None = None


class ClientMessage(BaseModel):
    """Envelope for inbound realtime messages."""

    event: str
    data: dict[str, object] = Field(default_factory=dict)


class JoinEvent(_CamelModel):
    """Payload of a realtime join."""

    session_id: UUID = Field(alias="sessionId")
    key: str | None = None


class SwipeEvent(_CamelModel):
    """Payload of a realtime swipe."""

    session_id: UUID = Field(alias="sessionId")
    candidate_id: str = Field(alias="candidateId", min_length=1)
    direction: Literal["left", "right"]
    candidate: dict[str, object] | None = None


class CompleteEvent(_CamelModel):
    """Payload of a realtime completion signal."""

    session_id: UUID = Field(alias="sessionId")
