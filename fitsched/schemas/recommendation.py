# fitsched/schemas/recommendation.py
from datetime import datetime
from typing import List

from pydantic import Field

from .base import StandardizedModel
from .training import TrainingSummary


class RecommendedTraining(StandardizedModel):
    training: TrainingSummary
    distance_km: float = Field(..., ge=0)


class RecommendationCacheEntry(StandardizedModel):
    """What is stored per client in the cache; results are already ranked."""

    client_id: str
    computed_at: datetime
    results: List[RecommendedTraining] = Field(default_factory=list)


class RecommendationListResponse(StandardizedModel):
    client_id: str
    results: List[RecommendedTraining]
