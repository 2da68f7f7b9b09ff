"""Mock geocoding provider for tests and local development (no network calls)."""

from typing import Dict, Optional, Tuple, Union

from ...core.exceptions import UpstreamUnavailableException
from .base import AddressQuery, Coordinates, GeocodingProvider


def _key(query: Union[AddressQuery, str]) -> str:
    text = query.to_query() if isinstance(query, AddressQuery) else query
    return " ".join(text.lower().split())


class MockGeocodingProvider(GeocodingProvider):
    name = "mock"

    def __init__(self, known: Optional[Dict[str, Tuple[float, float]]] = None) -> None:
        self._table: Dict[str, Coordinates] = {}
        for query, (lat, lng) in (known or {}).items():
            self.register(query, lat, lng)
        self.calls = 0
        self.fail = False

    def register(self, query: Union[AddressQuery, str], latitude: float, longitude: float) -> None:
        self._table[_key(query)] = Coordinates(latitude=latitude, longitude=longitude)

    async def resolve(self, query: AddressQuery) -> Optional[Coordinates]:
        self.calls += 1
        if self.fail:
            raise UpstreamUnavailableException(
                "Geocoding service is unavailable", code="GEOCODING_UNAVAILABLE"
            )
        return self._table.get(_key(query))
