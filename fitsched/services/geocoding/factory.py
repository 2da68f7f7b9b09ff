"""Factory for geocoding providers."""

from typing import Optional

from ...core.config import settings
from .base import GeocodingProvider
from .mock_provider import MockGeocodingProvider
from .nominatim_provider import NominatimProvider


def create_geocoding_provider(provider_override: Optional[str] = None) -> GeocodingProvider:
    name = (provider_override or settings.geocoding_provider or "nominatim").lower()
    provider: GeocodingProvider
    if name == "mock":
        provider = MockGeocodingProvider()
    else:
        provider = NominatimProvider()
    return provider
