# fitsched/services/location_service.py
"""
Location Service for fitsched

Turns stored addresses into coordinates through the configured geocoding
provider and measures great-circle distance between them. Resolved
coordinates are cached by address so a gym is geocoded once per day rather
than once per recommendation request.
"""

import logging
import math
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.location import Location
from .base import BaseService
from .cache_service import CacheKeyBuilder, CacheService
from .geocoding.base import AddressQuery, Coordinates, GeocodingProvider
from .geocoding.factory import create_geocoding_provider

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    """Great-circle distance in kilometres, rounded to 2 decimals."""
    phi1 = math.radians(origin.latitude)
    phi2 = math.radians(target.latitude)
    dphi = math.radians(target.latitude - origin.latitude)
    dlambda = math.radians(target.longitude - origin.longitude)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


class LocationService(BaseService):
    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        geocoder: Optional[GeocodingProvider] = None,
    ):
        super().__init__(db, cache)
        self.geocoder = geocoder or create_geocoding_provider()

    @staticmethod
    def build_query(location: Location) -> AddressQuery:
        return AddressQuery(
            street=location.street,
            building_number=location.building_number,
            zip_code=location.zip_code,
            city=location.city,
        )

    @staticmethod
    def cache_key(query: AddressQuery) -> str:
        return CacheKeyBuilder.build(
            "geocode", "addr", CacheKeyBuilder.hash_complex_key(query.cache_material())
        )

    @BaseService.measure_operation("geocode_location")
    async def get_coordinates(
        self, location: Union[Location, AddressQuery]
    ) -> Optional[Coordinates]:
        """
        Coordinates for a stored address, or None when the provider has no match.

        Accepts a Location row or an already built AddressQuery, the latter for
        callers that must not touch the ORM from the event loop.

        Raises:
            UpstreamUnavailableException: If the provider cannot be reached
        """
        query = location if isinstance(location, AddressQuery) else self.build_query(location)
        key = self.cache_key(query)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return Coordinates.model_validate(cached)

        coords = await self.geocoder.resolve(query)
        if coords is None:
            self.logger.info(f"No coordinates found for '{query.to_query()}'")
            return None

        if self.cache is not None:
            self.cache.set(key, coords.model_dump(), ttl=settings.geocoding_cache_ttl_seconds)
        return coords

    @staticmethod
    def calculate_distance(origin: Coordinates, target: Coordinates) -> float:
        return haversine_km(origin, target)
