# fitsched/routes/schedules.py
import logging

from fastapi import APIRouter, Depends

from ..api.dependencies import get_availability_service
from ..core.exceptions import DomainException
from ..schemas.schedule import ScheduleDeletedResponse, ScheduleWindowsResponse, WindowResponse
from ..services.availability_service import AvailabilityService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedules"])


@router.get("/{schedule_id}/windows", response_model=ScheduleWindowsResponse)
def list_schedule_windows(
    schedule_id: str,
    service: AvailabilityService = Depends(get_availability_service),
) -> ScheduleWindowsResponse:
    try:
        windows = service.list_windows(schedule_id)
        return ScheduleWindowsResponse(
            schedule_id=schedule_id,
            windows=[WindowResponse.from_window(window) for window in windows],
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.delete("/{schedule_id}", response_model=ScheduleDeletedResponse)
def delete_schedule(
    schedule_id: str,
    service: AvailabilityService = Depends(get_availability_service),
) -> ScheduleDeletedResponse:
    """Delete a schedule; every window on it goes too."""
    try:
        removed = service.remove_schedule(schedule_id)
        return ScheduleDeletedResponse(schedule_id=schedule_id, windows_removed=removed)
    except DomainException as exc:
        handle_domain_exception(exc)
