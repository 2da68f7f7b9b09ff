# fitsched/services/availability_service.py
"""
Availability Service for fitsched

Schedule lifecycle for the registration collaborator: give an owner its
Schedule, list what is on it, and remove it together with its Windows.
"""

import logging
from typing import List, Optional, Set, Type, Union

from sqlalchemy.orm import Session

from ..core.enums import ScheduleOwnerKind
from ..core.exceptions import NotFoundException, ValidationException
from ..models.client import Client
from ..models.facility import Gym
from ..models.schedule import Schedule, Window
from ..models.trainer import Trainer
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .cache_service import CacheService
from .recommendation_service import recommendation_cache_key

logger = logging.getLogger(__name__)

Owner = Union[Trainer, Gym, Client]

OWNER_MODELS: dict[ScheduleOwnerKind, Type[Owner]] = {
    ScheduleOwnerKind.TRAINER: Trainer,
    ScheduleOwnerKind.GYM: Gym,
    ScheduleOwnerKind.CLIENT: Client,
}


class AvailabilityService(BaseService):
    def __init__(self, db: Session, cache: Optional[CacheService] = None):
        super().__init__(db, cache)
        self.repository = RepositoryFactory.create_availability_repository(db)

    @BaseService.measure_operation("ensure_schedule")
    def ensure_schedule(self, kind: Union[ScheduleOwnerKind, str], owner_id: str) -> Schedule:
        """
        Return the owner's Schedule, creating and linking one on first use.

        Raises:
            ValidationException: Unknown owner kind
            NotFoundException: Owner does not exist
        """
        try:
            owner_kind = ScheduleOwnerKind(kind)
        except ValueError:
            raise ValidationException(f"Unknown schedule owner kind '{kind}'", code="INVALID_OWNER_KIND")

        model = OWNER_MODELS[owner_kind]
        owner = self.db.get(model, owner_id)
        if owner is None:
            raise NotFoundException(
                f"{model.__name__} with ID {owner_id} not found",
                code=f"{owner_kind.value.upper()}_NOT_FOUND",
            )

        if owner.schedule_id:
            existing = self.repository.get_schedule(owner.schedule_id)
            if existing is not None:
                return existing

        with self.transaction():
            schedule = self.repository.create_schedule(owner_kind)
            owner.schedule_id = schedule.id

        self.logger.info(f"Created {owner_kind.value} schedule {schedule.id} for {owner_id}")
        return schedule

    @BaseService.measure_operation("list_windows")
    def list_windows(self, schedule_id: str) -> List[Window]:
        self._get_schedule_or_404(schedule_id)
        return self.repository.get_windows_for_schedule(schedule_id)

    @BaseService.measure_operation("remove_schedule")
    def remove_schedule(self, schedule_id: str) -> int:
        """
        Delete a Schedule and cascade to every Window on it.

        Returns:
            Number of Windows removed
        """
        self._get_schedule_or_404(schedule_id)

        affected_schedules: Set[str] = {schedule_id}
        affected_clients: Set[str] = set()
        for window in self.repository.get_windows_for_schedule(schedule_id):
            affected_schedules.update(window.schedule_ids)
            if window.training is not None:
                affected_clients.update(window.training.client_ids)
        affected_clients.update(self.repository.get_client_ids_for_schedules(affected_schedules))

        with self.transaction():
            removed = self.repository.delete_schedule(schedule_id) or 0

        self.logger.info(f"Removed schedule {schedule_id} with {removed} windows")
        self.invalidate_cache(*(recommendation_cache_key(cid) for cid in sorted(affected_clients)))
        return removed

    def _get_schedule_or_404(self, schedule_id: str) -> Schedule:
        schedule = self.repository.get_schedule(schedule_id)
        if schedule is None:
            raise NotFoundException(
                f"Schedule with ID {schedule_id} not found", code="SCHEDULE_NOT_FOUND"
            )
        return schedule
