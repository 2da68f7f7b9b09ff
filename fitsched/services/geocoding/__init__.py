from .base import AddressQuery, Coordinates, GeocodingProvider
from .factory import create_geocoding_provider
from .mock_provider import MockGeocodingProvider
from .nominatim_provider import NominatimProvider

__all__ = [
    "AddressQuery",
    "Coordinates",
    "GeocodingProvider",
    "MockGeocodingProvider",
    "NominatimProvider",
    "create_geocoding_provider",
]
