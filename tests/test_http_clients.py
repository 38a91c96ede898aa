"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from dine_match.adapters.places_client import HttpxPlacesClient


def test_places_client_search_nearby() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"places": [{"id": "place-1"}]})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxPlacesClient(
        api_key="places-key",
        base_url="https://places.test/v1",
        http_client=async_client,
    )

    result = asyncio.run(
        client.search_nearby(
            lat=40.7,
            lng=-74.0,
            radius=1500.0,
            included_types=["cafe"],
            max_results=5,
        )
    )

    assert result == {"places": [{"id": "place-1"}]}
    request = seen[0]
    assert request.url.path == "/v1/places:searchNearby"
    assert request.headers["X-Goog-Api-Key"] == "places-key"
    assert "places.displayName" in request.headers["X-Goog-FieldMask"]
    payload = json.loads(request.content.decode())
    assert payload["includedTypes"] == ["cafe"]
    assert payload["maxResultCount"] == 5
    assert payload["locationRestriction"]["circle"] == {
        "center": {"latitude": 40.7, "longitude": -74.0},
        "radius": 1500.0,
    }


def test_places_client_raises_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}})

    transport = httpx.MockTransport(handler)
    client = HttpxPlacesClient(
        api_key="bad-key",
        base_url="https://places.test/v1",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(
            client.search_nearby(
                lat=0.0, lng=0.0, radius=100.0, included_types=["restaurant"]
            )
        )
