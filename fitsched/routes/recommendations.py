# fitsched/routes/recommendations.py
"""
Recommendation routes

Endpoints:
    GET    /api/recommendations/{client_id}            → Ranked trainings (cached)
    POST   /api/recommendations/{client_id}/recompute  → Bypass and refresh the cache
    DELETE /api/recommendations/{client_id}            → Drop the cached entry
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from ..api.dependencies import get_recommendation_service
from ..core.exceptions import DomainException
from ..schemas.recommendation import RecommendationListResponse
from ..services.recommendation_service import RecommendationService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])


@router.get(
    "/{client_id}",
    response_model=RecommendationListResponse,
    responses={503: {"description": "Geocoding service unavailable"}},
)
async def get_recommendations(
    client_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationListResponse:
    try:
        results = await service.get_recommendations(client_id)
        return RecommendationListResponse(client_id=client_id, results=results)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{client_id}/recompute", response_model=RecommendationListResponse)
async def recompute_recommendations(
    client_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationListResponse:
    try:
        results = await service.recompute(client_id)
        return RecommendationListResponse(client_id=client_id, results=results)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def invalidate_recommendations(
    client_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
) -> Response:
    service.invalidate(client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
