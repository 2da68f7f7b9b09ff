# fitsched/routes/clients.py
"""
Client inputs to the recommendation ranking.

Endpoints:
    PUT /api/clients/{client_id}/location     → Replace the home address
    PUT /api/clients/{client_id}/preferences  → Replace training preferences
"""

import logging

from fastapi import APIRouter, Body, Depends

from ..api.dependencies import get_client_service
from ..core.exceptions import DomainException
from ..schemas.client import AddressUpdate, LocationResponse, PreferencesResponse, PreferencesUpdate
from ..services.client_service import ClientService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clients"])


@router.put("/{client_id}/location", response_model=LocationResponse)
def update_client_location(
    client_id: str,
    payload: AddressUpdate = Body(...),
    service: ClientService = Depends(get_client_service),
) -> LocationResponse:
    try:
        location = service.update_location(client_id, **payload.model_dump())
        return LocationResponse.model_validate(location)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.put("/{client_id}/preferences", response_model=PreferencesResponse)
def update_client_preferences(
    client_id: str,
    payload: PreferencesUpdate = Body(...),
    service: ClientService = Depends(get_client_service),
) -> PreferencesResponse:
    try:
        preferences = service.update_preferences(client_id, **payload.model_dump())
        return PreferencesResponse.model_validate(preferences)
    except DomainException as exc:
        handle_domain_exception(exc)
