# fitsched/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

The cache and the geocoder are process-wide singletons: the cache holds
entries across requests and the geocoder owns the request throttle.
Everything else is built per request around the request's session.
"""

from datetime import datetime
from functools import lru_cache
import logging
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.cache_service import CacheService
from ...services.client_service import ClientService
from ...services.geocoding.base import GeocodingProvider
from ...services.geocoding.factory import create_geocoding_provider
from ...services.location_service import LocationService
from ...services.recommendation_service import RecommendationService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_cache_service_singleton() -> CacheService:
    """Get singleton cache service instance."""
    cache = CacheService()
    logger.info(f"Cache backend: {cache.backend}")
    return cache


def get_cache_service_dep() -> CacheService:
    """Get cache service instance for dependency injection."""
    return get_cache_service_singleton()


@lru_cache(maxsize=1)
def get_geocoder_singleton() -> GeocodingProvider:
    return create_geocoding_provider()


def get_geocoder() -> GeocodingProvider:
    return get_geocoder_singleton()


def get_clock() -> Callable[[], datetime]:
    """Wall clock used for notice periods and cache ages; overridden in tests."""
    return datetime.now


def get_booking_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingService:
    return BookingService(db, cache, clock=clock)


def get_availability_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
) -> AvailabilityService:
    return AvailabilityService(db, cache)


def get_recommendation_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    geocoder: GeocodingProvider = Depends(get_geocoder),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RecommendationService:
    """
    Get recommendation service instance with all dependencies.

    Args:
        db: Database session
        cache: Shared cache for entries and resolved coordinates
        geocoder: Shared, throttled geocoding provider
        clock: Time source for entry ages

    Returns:
        RecommendationService instance
    """
    location_service = LocationService(db, cache, geocoder)
    return RecommendationService(db, cache, location_service=location_service, clock=clock)


def get_client_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
) -> ClientService:
    return ClientService(db, cache)
