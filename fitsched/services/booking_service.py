# fitsched/services/booking_service.py
"""
Booking Service for fitsched

Owns the training lifecycle and the placement of windows on participant
schedules:

- create / update / cancel / complete trainings
- attach a window to a training (conflict checked across trainer, gym and
  every client) or declare free availability on explicit schedules
- detach windows

Every write that touches windows locks the affected schedules, checks and
writes inside one transaction. Recommendation entries of the affected
clients are invalidated after the commit; cache failures are logged and do
not fail the write.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set, Union

from sqlalchemy.orm import Session

from ..core import time_interval
from ..core.config import settings
from ..core.enums import DayOfWeek, TrainingStatus, TrainingType
from ..core.exceptions import (
    InsufficientNoticeException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from ..models.client import Client
from ..models.facility import Room
from ..models.schedule import Window
from ..models.trainer import Trainer
from ..models.training import CompletedTraining, Training
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.availability_repository import schedule_ids as touched_ids
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .cache_service import CacheService
from .conflict_checker import CandidateWindow, ConflictChecker
from .recommendation_service import recommendation_cache_key

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """
    Training lifecycle and window placement.

    Status machine: PLANNED -> CANCELLED, PLANNED -> COMPLETED. Only PLANNED
    trainings can be changed or placed; the other two are terminal.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        clock: Callable[[], datetime] = datetime.now,
        cancellation_notice_minutes: Optional[int] = None,
    ):
        super().__init__(db, cache)
        self.training_repository = RepositoryFactory.create_training_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.client_repository = RepositoryFactory.create_client_repository(db)
        self.trainer_repository = RepositoryFactory.create_base_repository(db, Trainer)
        self.room_repository = RepositoryFactory.create_base_repository(db, Room)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db, self.availability_repository
        )
        self._clock = clock
        self.cancellation_notice_minutes = (
            settings.cancellation_notice_minutes
            if cancellation_notice_minutes is None
            else cancellation_notice_minutes
        )

    # Queries

    @BaseService.measure_operation("get_training")
    def get_training(self, training_id: str) -> Training:
        return self._get_training_or_404(training_id)

    # Training lifecycle

    @BaseService.measure_operation("create_training")
    def create_training(
        self,
        trainer_id: str,
        room_id: str,
        price: Union[Decimal, float, int, str],
        type: Union[TrainingType, str],
        client_ids: Sequence[str] = (),
    ) -> Training:
        """
        Create a PLANNED training. Windows are untouched; placement is a separate step.

        Raises:
            ValidationException: Bad price or type, duplicate client ids
            NotFoundException: Trainer, room or a client does not exist
        """
        amount = self._parse_price(price)
        type_value = self._parse_type(type)
        self._ensure_unique(client_ids)

        self._get_trainer_or_404(trainer_id)
        self._get_room_or_404(room_id)
        clients = self._get_clients_or_404(client_ids)

        with self.transaction():
            training = self.training_repository.create(
                trainer_id=trainer_id,
                room_id=room_id,
                price=amount,
                type=type_value,
                status=TrainingStatus.PLANNED.value,
            )
            self.training_repository.set_clients(training, clients)

        self.logger.info(
            f"Created training {training.id} ({type_value}) for trainer {trainer_id} "
            f"in room {room_id} with {len(clients)} clients"
        )
        self._invalidate_recommendations(client_ids)
        return self._get_training_or_404(training.id)

    @BaseService.measure_operation("update_training")
    def update_training(
        self,
        training_id: str,
        *,
        trainer_id: Optional[str] = None,
        room_id: Optional[str] = None,
        price: Optional[Union[Decimal, float, int, str]] = None,
        type: Optional[Union[TrainingType, str]] = None,
        client_ids: Optional[Sequence[str]] = None,
    ) -> Training:
        """
        Change participants or attributes of a PLANNED training.

        When the training has a window the full new participant set is
        conflict checked against it (excluding the window itself) and the
        window moves to the new participants' schedules. Any failure rejects
        the whole update.
        """
        training = self._get_training_or_404(training_id)
        self._ensure_planned(training, "update")

        new_trainer_id = trainer_id or training.trainer_id
        new_room_id = room_id or training.room_id
        new_price = self._parse_price(price) if price is not None else None
        new_type = self._parse_type(type) if type is not None else None

        if trainer_id is not None and trainer_id != training.trainer_id:
            self._get_trainer_or_404(trainer_id)
        if room_id is not None and room_id != training.room_id:
            self._get_room_or_404(room_id)

        old_client_ids = list(training.client_ids)
        new_clients: Optional[List[Client]] = None
        if client_ids is not None:
            self._ensure_unique(client_ids)
            new_clients = self._get_clients_or_404(client_ids)
        new_client_ids = list(client_ids) if client_ids is not None else old_client_ids

        window = self.availability_repository.get_window_for_training(training.id)
        previous_schedule_ids: Set[str] = set(window.schedule_ids) if window else set()

        with self.transaction():
            new_schedule_ids: Set[str] = set()
            if window is not None:
                touched = self.availability_repository.resolve_touched_schedules(
                    new_trainer_id, new_room_id, new_client_ids
                )
                new_schedule_ids = touched_ids(touched)
                self.availability_repository.lock_schedules(new_schedule_ids | previous_schedule_ids)
                self.conflict_checker.ensure_no_conflict(
                    self._candidate(window), touched, exclude_window_id=window.id
                )

            changes: dict[str, Any] = {"trainer_id": new_trainer_id, "room_id": new_room_id}
            if new_price is not None:
                changes["price"] = new_price
            if new_type is not None:
                changes["type"] = new_type
            self.training_repository.update(training.id, **changes)
            if new_clients is not None:
                self.training_repository.set_clients(training, new_clients)

            if window is not None:
                self.availability_repository.set_window_schedules(window, new_schedule_ids)

        affected = set(old_client_ids) | set(new_client_ids)
        affected.update(
            self.availability_repository.get_client_ids_for_schedules(previous_schedule_ids)
        )
        self._invalidate_recommendations(affected)
        self.logger.info(f"Updated training {training.id}")
        self.db.expire(training)
        return self._get_training_or_404(training.id)

    @BaseService.measure_operation("cancel_training")
    def cancel_training(self, training_id: str, client_id: Optional[str] = None) -> Training:
        """
        Cancel a PLANNED training.

        Raises:
            NotFoundException: Training does not exist
            InvalidStateException: Already cancelled/completed, or no window
            ValidationException: ``client_id`` is not enrolled
            InsufficientNoticeException: Less notice than the policy requires
        """
        training = self._get_training_or_404(training_id)
        if training.status == TrainingStatus.CANCELLED.value:
            raise InvalidStateException(
                "Training is already cancelled", code="TRAINING_ALREADY_CANCELLED"
            )
        self._ensure_planned(training, "cancel")

        if client_id is not None and client_id not in training.client_ids:
            raise ValidationException(
                f"Client {client_id} is not enrolled in this training",
                code="CLIENT_NOT_ENROLLED",
                details={"client_id": client_id, "training_id": training_id},
            )

        window = self.availability_repository.get_window_for_training(training.id)
        if window is None:
            raise InvalidStateException(
                "Training is not assigned to any window", code="TRAINING_WITHOUT_WINDOW"
            )

        now = self._clock()
        minutes_left = time_interval.minutes_until(window.start_time, now)
        if minutes_left < self.cancellation_notice_minutes:
            raise InsufficientNoticeException(self.cancellation_notice_minutes, minutes_left)

        with self.transaction():
            training.cancel(client_id, at=now)

        self.logger.info(
            f"Cancelled training {training.id} ({minutes_left} minutes before start)"
        )
        self._invalidate_recommendations(training.client_ids)
        return training

    @BaseService.measure_operation("complete_training")
    def complete_training(
        self, training_id: str, training_date: Optional[date] = None
    ) -> tuple[Training, List[CompletedTraining]]:
        """Mark a PLANNED training COMPLETED and archive one record per client."""
        training = self._get_training_or_404(training_id)
        self._ensure_planned(training, "complete")

        now = self._clock()
        held_on = training_date or now.date()
        gym_name = training.room.gym.name

        with self.transaction():
            training.complete(at=now)
            archived = [
                self.training_repository.archive_completion(training, client.id, held_on, gym_name)
                for client in training.clients
            ]

        self.logger.info(f"Completed training {training.id}, archived {len(archived)} records")
        self._invalidate_recommendations(training.client_ids)
        return training, archived

    # Window placement

    @BaseService.measure_operation("attach_window")
    def attach_window(
        self,
        day_of_week: Union[DayOfWeek, str],
        start_time: str,
        end_time: str,
        *,
        training_id: Optional[str] = None,
        schedule_ids: Optional[Sequence[str]] = None,
        window_id: Optional[str] = None,
    ) -> Window:
        """
        Place a window.

        With ``training_id`` the window is bound to the training and placed on
        every participant's schedule after a conflict check. With
        ``schedule_ids`` a free window is declared on those schedules and no
        conflict check runs.
        """
        if (training_id is None) == (schedule_ids is None):
            raise ValidationException(
                "Provide exactly one of training_id or schedule_ids", code="INVALID_ATTACH_MODE"
            )

        candidate = CandidateWindow(
            day_of_week=self._parse_day(day_of_week),
            start_time=time_interval.normalize(start_time),
            end_time=time_interval.normalize(end_time),
        )
        time_interval.validate_range(candidate.start_time, candidate.end_time)

        if training_id is not None:
            return self._attach_to_training(candidate, training_id, window_id)
        return self._place_free_window(candidate, list(schedule_ids or []), window_id)

    def _attach_to_training(
        self, candidate: CandidateWindow, training_id: str, window_id: Optional[str]
    ) -> Window:
        training = self._get_training_or_404(training_id)
        self._ensure_planned(training, "place")

        existing = self.availability_repository.get_window_for_training(training.id)
        target = existing
        if window_id is not None:
            target = self._get_window_or_404(window_id)
            if target.training_id is not None and target.training_id != training.id:
                raise InvalidStateException(
                    "Window is already assigned to another training",
                    code="WINDOW_ALREADY_BOOKED",
                    details={"window_id": window_id, "training_id": target.training_id},
                )
            if existing is not None and existing.id != target.id:
                raise InvalidStateException(
                    "Training already has a window; detach it first",
                    code="TRAINING_ALREADY_PLACED",
                    details={"window_id": existing.id},
                )
        previous_schedule_ids: Set[str] = set(target.schedule_ids) if target else set()

        with self.transaction():
            touched = self.availability_repository.resolve_touched_schedules(
                training.trainer_id, training.room_id, training.client_ids
            )
            new_schedule_ids = touched_ids(touched)
            self.availability_repository.lock_schedules(new_schedule_ids | previous_schedule_ids)
            self.conflict_checker.ensure_no_conflict(
                candidate, touched, exclude_window_id=target.id if target else None
            )
            window = self.availability_repository.assign_window(
                day_of_week=candidate.day_of_week,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                schedule_ids=new_schedule_ids,
                training_id=training.id,
                window_id=target.id if target else None,
            )

        self.logger.info(
            f"Placed training {training.id} at {candidate.day_of_week} "
            f"{candidate.start_time}-{candidate.end_time} on {len(new_schedule_ids)} schedules"
        )
        affected = set(training.client_ids)
        affected.update(
            self.availability_repository.get_client_ids_for_schedules(previous_schedule_ids)
        )
        self._invalidate_recommendations(affected)
        return window

    def _place_free_window(
        self, candidate: CandidateWindow, schedule_ids: List[str], window_id: Optional[str]
    ) -> Window:
        if not schedule_ids:
            raise ValidationException("At least one schedule id is required", code="NO_SCHEDULES")

        previous_schedule_ids: Set[str] = set()
        if window_id is not None:
            current = self._get_window_or_404(window_id)
            if current.is_booked:
                raise InvalidStateException(
                    "Booked windows are moved through their training",
                    code="WINDOW_ALREADY_BOOKED",
                    details={"window_id": window_id, "training_id": current.training_id},
                )
            previous_schedule_ids = set(current.schedule_ids)

        with self.transaction():
            window = self.availability_repository.assign_window(
                day_of_week=candidate.day_of_week,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                schedule_ids=schedule_ids,
                window_id=window_id,
            )

        self._invalidate_recommendations(
            self.availability_repository.get_client_ids_for_schedules(
                previous_schedule_ids | set(schedule_ids)
            )
        )
        return window

    @BaseService.measure_operation("detach_window")
    def detach_window(self, window_id: str) -> None:
        """Delete a window and its schedule memberships."""
        window = self._get_window_or_404(window_id)
        affected = set(
            self.availability_repository.get_client_ids_for_schedules(window.schedule_ids)
        )
        if window.training is not None:
            affected.update(window.training.client_ids)

        with self.transaction():
            self.availability_repository.delete_window(window_id)

        self.logger.info(f"Detached window {window_id}")
        self._invalidate_recommendations(affected)

    # Helpers

    def _invalidate_recommendations(self, client_ids: Iterable[str]) -> None:
        keys = [recommendation_cache_key(client_id) for client_id in sorted(set(client_ids))]
        if not keys:
            return
        self.invalidate_cache(*keys)
        for _ in keys:
            prometheus_metrics.record_recommendation_cache("invalidated")

    def _get_training_or_404(self, training_id: str) -> Training:
        training = self.training_repository.get_by_id(training_id)
        if training is None:
            raise NotFoundException(
                f"Training with ID {training_id} not found", code="TRAINING_NOT_FOUND"
            )
        return training

    def _get_trainer_or_404(self, trainer_id: str) -> Trainer:
        trainer = self.trainer_repository.get_by_id(trainer_id, load_relationships=False)
        if trainer is None:
            raise NotFoundException(
                f"Trainer with ID {trainer_id} not found", code="TRAINER_NOT_FOUND"
            )
        return trainer

    def _get_room_or_404(self, room_id: str) -> Room:
        room = self.room_repository.get_by_id(room_id, load_relationships=False)
        if room is None:
            raise NotFoundException(f"Room with ID {room_id} not found", code="ROOM_NOT_FOUND")
        return room

    def _get_clients_or_404(self, client_ids: Sequence[str]) -> List[Client]:
        clients = self.client_repository.get_by_ids(client_ids)
        missing = set(client_ids) - {client.id for client in clients}
        if missing:
            raise NotFoundException(
                "Client not found",
                code="CLIENT_NOT_FOUND",
                details={"client_ids": sorted(missing)},
            )
        by_id = {client.id: client for client in clients}
        return [by_id[client_id] for client_id in client_ids]

    def _get_window_or_404(self, window_id: str) -> Window:
        window = self.availability_repository.get_window(window_id)
        if window is None:
            raise NotFoundException(f"Window with ID {window_id} not found", code="WINDOW_NOT_FOUND")
        return window

    @staticmethod
    def _ensure_planned(training: Training, action: str) -> None:
        if not training.is_planned:
            raise InvalidStateException(
                f"Cannot {action} a training with status {training.status}",
                code="TRAINING_NOT_PLANNED",
                details={"training_id": training.id, "status": training.status},
            )

    @staticmethod
    def _ensure_unique(client_ids: Sequence[str]) -> None:
        seen: Set[str] = set()
        duplicates: Set[str] = set()
        for client_id in client_ids:
            if client_id in seen:
                duplicates.add(client_id)
            seen.add(client_id)
        if duplicates:
            raise ValidationException(
                "Client ids must be unique",
                code="DUPLICATE_CLIENTS",
                details={"duplicates": sorted(duplicates)},
            )

    @staticmethod
    def _parse_price(price: Union[Decimal, float, int, str]) -> Decimal:
        try:
            amount = Decimal(str(price))
        except (InvalidOperation, ValueError):
            raise ValidationException(f"Invalid price '{price}'", code="INVALID_PRICE")
        if not amount.is_finite() or amount < 0:
            raise ValidationException("Price must be a non-negative amount", code="INVALID_PRICE")
        return amount.quantize(Decimal("0.01"))

    @staticmethod
    def _parse_type(value: Union[TrainingType, str]) -> str:
        try:
            return TrainingType(value).value
        except ValueError:
            raise ValidationException(
                f"Unknown training type '{value}'",
                code="INVALID_TRAINING_TYPE",
                details={"allowed": [t.value for t in TrainingType]},
            )

    @staticmethod
    def _parse_day(value: Union[DayOfWeek, str]) -> str:
        try:
            return DayOfWeek(value).value
        except ValueError:
            raise ValidationException(
                f"Unknown day of week '{value}'",
                code="INVALID_DAY_OF_WEEK",
                details={"allowed": [d.value for d in DayOfWeek]},
            )

    @staticmethod
    def _candidate(window: Window) -> CandidateWindow:
        return CandidateWindow(
            day_of_week=window.day_of_week,
            start_time=window.start_time,
            end_time=window.end_time,
        )
