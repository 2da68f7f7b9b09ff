# fitsched/services/recommendation_service.py
"""
Recommendation Service for fitsched

Ranks bookable trainings for a client by distance from the client's home
address to the training's gym.

Pipeline:
1. Serve a cached entry younger than the TTL verbatim
2. Load the client with location, preferences and free availability
3. Filter the catalog by preferred type, PLANNED status, not already
   enrolled, and a window that fits inside one of the client's free windows
4. Geocode client and gyms, measure Haversine distance
5. Sort nearest first, keep the top N, cache with the computation time

Entries are invalidated by the collaborators that own the inputs: booking
writes, client location changes and preference changes.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core import time_interval
from ..core.config import settings
from ..core.exceptions import NotFoundException
from ..models.client import Client
from ..models.schedule import Window
from ..models.training import Training
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.recommendation import RecommendationCacheEntry, RecommendedTraining
from ..schemas.training import TrainingSummary
from .base import BaseService
from .cache_service import CacheKeyBuilder, CacheService
from .geocoding.base import AddressQuery, Coordinates, GeocodingProvider
from .location_service import LocationService

logger = logging.getLogger(__name__)


def recommendation_cache_key(client_id: str) -> str:
    return CacheKeyBuilder.build("recommendation", client_id)


def fits_free_window(window: Optional[Window], free_windows: List[Window]) -> bool:
    """True when ``window`` lies inside one of ``free_windows`` on the same day."""
    if window is None:
        return False
    return any(
        free.day_of_week == window.day_of_week
        and time_interval.fits_within(
            window.start_time, window.end_time, free.start_time, free.end_time
        )
        for free in free_windows
    )


@dataclass
class Candidate:
    training: TrainingSummary
    location_id: str
    address: AddressQuery


@dataclass
class RecommendationSnapshot:
    """Plain data read from the session, safe to use back on the event loop."""

    client_address: AddressQuery
    candidates: List[Candidate] = field(default_factory=list)


class RecommendationService(BaseService):
    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        location_service: Optional[LocationService] = None,
        geocoder: Optional[GeocodingProvider] = None,
        clock: Callable[[], datetime] = datetime.now,
        ttl_seconds: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        super().__init__(db, cache)
        self.location_service = location_service or LocationService(db, cache, geocoder)
        self.client_repository = RepositoryFactory.create_client_repository(db)
        self.training_repository = RepositoryFactory.create_training_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self._clock = clock
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else settings.recommendation_cache_ttl_seconds
        )
        self.limit = limit if limit is not None else settings.recommendation_limit

    @BaseService.measure_operation("get_recommendations")
    async def get_recommendations(self, client_id: str) -> List[RecommendedTraining]:
        """
        Ranked recommendations for a client, served from cache when fresh.

        Raises:
            NotFoundException: Client missing, no location, or ungeocodable address
            UpstreamUnavailableException: Geocoding provider failure
        """
        cached = self._read_cache(client_id)
        if cached is not None:
            return cached.results
        return await self._compute_and_store(client_id)

    @BaseService.measure_operation("recompute_recommendations")
    async def recompute(self, client_id: str) -> List[RecommendedTraining]:
        """Bypass the cache, recompute and refresh the stored entry."""
        return await self._compute_and_store(client_id)

    def invalidate(self, client_id: str) -> None:
        self.invalidate_cache(recommendation_cache_key(client_id))
        prometheus_metrics.record_recommendation_cache("invalidated")

    def _read_cache(self, client_id: str) -> Optional[RecommendationCacheEntry]:
        if self.cache is None:
            return None
        raw = self.cache.get(recommendation_cache_key(client_id))
        if raw is None:
            prometheus_metrics.record_recommendation_cache("miss")
            return None

        try:
            entry = RecommendationCacheEntry.model_validate(raw)
        except ValidationError as e:
            self.logger.warning(f"Discarding unreadable recommendation entry for {client_id}: {e}")
            prometheus_metrics.record_recommendation_cache("miss")
            return None

        age = self._clock() - entry.computed_at
        if age >= timedelta(seconds=self.ttl_seconds):
            prometheus_metrics.record_recommendation_cache("expired")
            return None

        prometheus_metrics.record_recommendation_cache("hit")
        return entry

    async def _compute_and_store(self, client_id: str) -> List[RecommendedTraining]:
        computed_at = self._clock()
        results = await self._compute(client_id)

        if self.cache is not None:
            entry = RecommendationCacheEntry(
                client_id=client_id, computed_at=computed_at, results=results
            )
            self.cache.set(
                recommendation_cache_key(client_id),
                entry.model_dump(mode="json"),
                ttl=self.ttl_seconds,
            )
        return results

    async def _compute(self, client_id: str) -> List[RecommendedTraining]:
        snapshot = await asyncio.to_thread(self._load_snapshot, client_id)

        client_coords = await self.location_service.get_coordinates(snapshot.client_address)
        if client_coords is None:
            raise NotFoundException(
                "Could not determine coordinates for client's location",
                code="CLIENT_LOCATION_UNRESOLVED",
            )

        ranked = await self._rank_by_distance(client_coords, snapshot.candidates)
        self.logger.info(
            f"Computed {len(ranked)} recommendations for client {client_id} "
            f"from {len(snapshot.candidates)} eligible trainings"
        )
        return ranked

    def _load_snapshot(self, client_id: str) -> RecommendationSnapshot:
        """Read everything the ranking needs from the database (runs in a worker thread)."""
        client = self.client_repository.get_with_profile(client_id)
        if client is None:
            raise NotFoundException(f"Client with ID {client_id} not found", code="CLIENT_NOT_FOUND")
        if client.location is None:
            raise NotFoundException(
                f"Client with ID {client_id} has no location set", code="CLIENT_LOCATION_NOT_FOUND"
            )

        candidates: List[Candidate] = []
        for training in self._eligible_trainings(client):
            gym = training.room.gym if training.room is not None else None
            if gym is None or gym.location is None:
                continue
            candidates.append(
                Candidate(
                    training=TrainingSummary.from_training(training),
                    location_id=gym.location_id,
                    address=LocationService.build_query(gym.location),
                )
            )

        return RecommendationSnapshot(
            client_address=LocationService.build_query(client.location), candidates=candidates
        )

    def _eligible_trainings(self, client: Client) -> List[Training]:
        preferred = list(client.preferences.training_types) if client.preferences else []
        catalog = self.training_repository.get_catalog(preferred or None)

        free_windows: List[Window] = []
        if client.schedule_id:
            free_windows = self.availability_repository.get_free_windows_for_schedule(
                client.schedule_id
            )

        return [
            training
            for training in catalog
            if training.is_planned
            and client.id not in training.client_ids
            and fits_free_window(training.window, free_windows)
        ]

    async def _rank_by_distance(
        self, origin: Coordinates, candidates: List[Candidate]
    ) -> List[RecommendedTraining]:
        gym_coords: Dict[str, Optional[Coordinates]] = {}
        ranked: List[RecommendedTraining] = []

        for candidate in candidates:
            if candidate.location_id not in gym_coords:
                gym_coords[candidate.location_id] = await self.location_service.get_coordinates(
                    candidate.address
                )
            coords = gym_coords[candidate.location_id]
            if coords is None:
                continue
            ranked.append(
                RecommendedTraining(
                    training=candidate.training,
                    distance_km=self.location_service.calculate_distance(origin, coords),
                )
            )

        ranked.sort(key=lambda item: (item.distance_km, item.training.id))
        return ranked[: self.limit]
