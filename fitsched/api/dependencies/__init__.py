"""FastAPI dependency providers."""

from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_cache_service_dep,
    get_client_service,
    get_clock,
    get_geocoder,
    get_recommendation_service,
)

__all__ = [
    "get_availability_service",
    "get_booking_service",
    "get_cache_service_dep",
    "get_client_service",
    "get_clock",
    "get_db",
    "get_geocoder",
    "get_recommendation_service",
]
