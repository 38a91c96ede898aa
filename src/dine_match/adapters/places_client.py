"""Google Places (New) API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

_SEARCH_FIELD_MASK = ",".join(
    [
        "places.id",
        "places.displayName",
        "places.formattedAddress",
        "places.priceLevel",
        "places.rating",
        "places.userRatingCount",
        "places.photos",
        "places.types",
        "places.location",
    ]
)


class PlacesClient(Protocol):
    """Interface for nearby place searches."""

    async def search_nearby(  # noqa: PLR0913
        self,
        lat: float,
        lng: float,
        radius: float,
        included_types: list[str],
        max_results: int = 20,
    ) -> dict[str, object]:
        """Search places around a point and return raw API data."""


@dataclass
class HttpxPlacesClient(PlacesClient):
    """HTTPX-backed Places client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxPlacesClient":
        """Create a Places client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_nearby(  # noqa: PLR0913
        self,
        lat: float,
        lng: float,
        radius: float,
        included_types: list[str],
        max_results: int = 20,
    ) -> dict[str, object]:
        """Search places with places:searchNearby."""
        url = f"{self.base_url}/places:searchNearby"
        response = await self.http_client.post(
            url,
            headers={
                "X-Goog-Api-Key": self.api_key,
                "X-Goog-FieldMask": _SEARCH_FIELD_MASK,
            },
            json={
                "locationRestriction": {
                    "circle": {
                        "center": {"latitude": lat, "longitude": lng},
                        "radius": radius,
                    }
                },
                "includedTypes": included_types,
                "maxResultCount": max_results,
            },
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
