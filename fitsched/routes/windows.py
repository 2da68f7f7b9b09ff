# fitsched/routes/windows.py
"""
Free availability windows.

Endpoints:
    POST   /api/windows              → Declare a free window on explicit schedules
    DELETE /api/windows/{window_id}  → Remove a window from every schedule
"""

import logging

from fastapi import APIRouter, Body, Depends, Response, status

from ..api.dependencies import get_booking_service
from ..core.exceptions import DomainException
from ..schemas.schedule import FreeWindowRequest, WindowResponse
from ..services.booking_service import BookingService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["windows"])


@router.post("", response_model=WindowResponse, status_code=status.HTTP_201_CREATED)
def create_free_window(
    payload: FreeWindowRequest = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> WindowResponse:
    try:
        window = service.attach_window(
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
            schedule_ids=payload.schedule_ids,
            window_id=payload.window_id,
        )
        return WindowResponse.from_window(window)
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/{window_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_window(
    window_id: str,
    service: BookingService = Depends(get_booking_service),
) -> Response:
    try:
        service.detach_window(window_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as exc:
        handle_domain_exception(exc)
