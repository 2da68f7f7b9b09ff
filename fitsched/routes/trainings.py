# fitsched/routes/trainings.py
"""
Training routes

Endpoints:
    POST   /api/trainings                  → Create a training (PLANNED)
    GET    /api/trainings/{training_id}    → Get a training
    PATCH  /api/trainings/{training_id}    → Update participants or attributes
    POST   /api/trainings/{training_id}/cancel   → Cancel with notice policy
    POST   /api/trainings/{training_id}/complete → Complete and archive
    PUT    /api/trainings/{training_id}/window   → Place the training's window
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from ..api.dependencies import get_booking_service
from ..core.exceptions import DomainException
from ..schemas.schedule import TrainingWindowRequest, WindowResponse
from ..schemas.training import (
    TrainingCancel,
    TrainingComplete,
    TrainingCompletedResponse,
    TrainingCreate,
    TrainingResponse,
    TrainingUpdate,
)
from ..services.booking_service import BookingService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trainings"])


@router.post("", response_model=TrainingResponse, status_code=status.HTTP_201_CREATED)
def create_training(
    payload: TrainingCreate = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> TrainingResponse:
    try:
        training = service.create_training(
            trainer_id=payload.trainer_id,
            room_id=payload.room_id,
            price=payload.price,
            type=payload.type,
            client_ids=payload.client_ids,
        )
        return TrainingResponse.from_training(training)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/{training_id}", response_model=TrainingResponse)
def get_training(
    training_id: str,
    service: BookingService = Depends(get_booking_service),
) -> TrainingResponse:
    try:
        return TrainingResponse.from_training(service.get_training(training_id))
    except DomainException as exc:
        handle_domain_exception(exc)


@router.patch("/{training_id}", response_model=TrainingResponse)
def update_training(
    training_id: str,
    payload: TrainingUpdate = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> TrainingResponse:
    """
    Partially update a PLANNED training.

    Placed trainings are re-checked for conflicts against the new participant
    set; a conflict rejects the whole update.
    """
    try:
        training = service.update_training(training_id, **payload.model_dump(exclude_unset=True))
        return TrainingResponse.from_training(training)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{training_id}/cancel", response_model=TrainingResponse)
def cancel_training(
    training_id: str,
    payload: Optional[TrainingCancel] = Body(None),
    service: BookingService = Depends(get_booking_service),
) -> TrainingResponse:
    try:
        training = service.cancel_training(
            training_id, client_id=payload.client_id if payload else None
        )
        return TrainingResponse.from_training(training)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/{training_id}/complete", response_model=TrainingCompletedResponse)
def complete_training(
    training_id: str,
    payload: Optional[TrainingComplete] = Body(None),
    service: BookingService = Depends(get_booking_service),
) -> TrainingCompletedResponse:
    try:
        training, archived = service.complete_training(
            training_id, training_date=payload.training_date if payload else None
        )
        return TrainingCompletedResponse.build(training, archived)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.put("/{training_id}/window", response_model=WindowResponse)
def attach_training_window(
    training_id: str,
    payload: TrainingWindowRequest = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> WindowResponse:
    """Place (or re-place) the training's window on every participant's schedule."""
    try:
        window = service.attach_window(
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
            training_id=training_id,
            window_id=payload.window_id,
        )
        return WindowResponse.from_window(window)
    except DomainException as exc:
        handle_domain_exception(exc)
