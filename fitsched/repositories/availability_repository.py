# fitsched/repositories/availability_repository.py
"""
AvailabilityRepository - Schedules, Windows and their membership.

A Window lives on every Schedule listed in window_schedules. The trainer's,
the gym's and each client's Schedule all hold the same Window once a training
is placed, which is what lets conflict checks look at one participant at a
time without knowing who else shares the slot.
"""

from dataclasses import dataclass
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.enums import DayOfWeek, ScheduleOwnerKind, TrainingStatus
from ..core.exceptions import NotFoundException, RepositoryException
from ..models.client import Client
from ..models.facility import Room
from ..models.schedule import Schedule, Window, WindowSchedule
from ..models.trainer import Trainer
from ..models.training import Training

logger = logging.getLogger(__name__)

DAY_ORDER: Dict[str, int] = {day.value: index for index, day in enumerate(DayOfWeek)}


@dataclass(frozen=True)
class TouchedSchedule:
    """A Schedule affected by a booking, tagged with the participant owning it."""

    schedule_id: str
    kind: ScheduleOwnerKind
    owner_id: str


def schedule_ids(touched: Iterable[TouchedSchedule]) -> Set[str]:
    return {item.schedule_id for item in touched}


def sort_windows(windows: Iterable[Window]) -> List[Window]:
    return sorted(windows, key=lambda w: (DAY_ORDER.get(w.day_of_week, 7), w.start_time, w.id))


class AvailabilityRepository:
    """Data access for Schedules and Windows. Never commits."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(__name__)

    # Participant resolution

    def resolve_touched_schedules(
        self, trainer_id: str, room_id: str, client_ids: Sequence[str]
    ) -> List[TouchedSchedule]:
        """
        Union of the trainer's, the room's gym's and each client's Schedule.

        Participants without a Schedule are skipped. The result is ordered
        trainer, gym, clients and de-duplicated by schedule id.
        """
        try:
            touched: List[TouchedSchedule] = []
            seen: Set[str] = set()

            def _add(schedule_id: Optional[str], kind: ScheduleOwnerKind, owner_id: str) -> None:
                if schedule_id and schedule_id not in seen:
                    seen.add(schedule_id)
                    touched.append(TouchedSchedule(schedule_id, kind, owner_id))

            trainer = self.db.get(Trainer, trainer_id)
            if trainer is not None:
                _add(trainer.schedule_id, ScheduleOwnerKind.TRAINER, trainer.id)

            room = self.db.get(Room, room_id)
            if room is not None and room.gym is not None:
                _add(room.gym.schedule_id, ScheduleOwnerKind.GYM, room.gym.id)

            if client_ids:
                clients = self.db.query(Client).filter(Client.id.in_(list(client_ids))).all()
                by_id = {client.id: client for client in clients}
                for client_id in client_ids:
                    client = by_id.get(client_id)
                    if client is not None:
                        _add(client.schedule_id, ScheduleOwnerKind.CLIENT, client.id)

            return touched
        except SQLAlchemyError as e:
            self.logger.error(f"Error resolving touched schedules: {str(e)}")
            raise RepositoryException(f"Failed to resolve schedules: {str(e)}")

    def lock_schedules(self, ids: Iterable[str]) -> List[Schedule]:
        """
        Row-lock the given Schedules for the rest of the transaction.

        Locks are taken in id order so concurrent writers touching overlapping
        sets cannot deadlock. SQLite ignores FOR UPDATE.
        """
        id_list = sorted(set(ids))
        if not id_list:
            return []
        try:
            return cast(
                List[Schedule],
                self.db.query(Schedule)
                .filter(Schedule.id.in_(id_list))
                .order_by(Schedule.id)
                .with_for_update()
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking schedules {id_list}: {str(e)}")
            raise RepositoryException(f"Failed to lock schedules: {str(e)}")

    # Window queries

    def windows_booked(
        self, schedule_id: str, day_of_week: str, exclude_window_id: Optional[str] = None
    ) -> List[Window]:
        """Windows on a Schedule and day that hold a PLANNED training."""
        try:
            query = (
                self.db.query(Window)
                .join(WindowSchedule, WindowSchedule.window_id == Window.id)
                .join(Training, Training.id == Window.training_id)
                .filter(
                    WindowSchedule.schedule_id == schedule_id,
                    Window.day_of_week == day_of_week,
                    Training.status == TrainingStatus.PLANNED.value,
                )
            )
            if exclude_window_id:
                query = query.filter(Window.id != exclude_window_id)
            return cast(List[Window], query.order_by(Window.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booked windows for {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booked windows: {str(e)}")

    def get_window(self, window_id: str) -> Optional[Window]:
        try:
            return cast(
                Optional[Window],
                self.db.query(Window)
                .options(selectinload(Window.schedules))
                .filter(Window.id == window_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting window {window_id}: {str(e)}")
            raise RepositoryException(f"Failed to get window: {str(e)}")

    def get_window_for_training(self, training_id: str) -> Optional[Window]:
        try:
            return cast(
                Optional[Window],
                self.db.query(Window)
                .options(selectinload(Window.schedules))
                .filter(Window.training_id == training_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting window for training {training_id}: {str(e)}")
            raise RepositoryException(f"Failed to get window: {str(e)}")

    def get_windows_for_schedule(
        self, schedule_id: str, day_of_week: Optional[str] = None
    ) -> List[Window]:
        """All Windows on a Schedule, ordered Monday first then by start time."""
        try:
            query = (
                self.db.query(Window)
                .join(WindowSchedule, WindowSchedule.window_id == Window.id)
                .filter(WindowSchedule.schedule_id == schedule_id)
            )
            if day_of_week:
                query = query.filter(Window.day_of_week == day_of_week)
            return sort_windows(query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting windows for schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to get windows: {str(e)}")

    def get_free_windows_for_schedule(
        self, schedule_id: str, day_of_week: Optional[str] = None
    ) -> List[Window]:
        """Windows on a Schedule that no training occupies."""
        try:
            query = (
                self.db.query(Window)
                .join(WindowSchedule, WindowSchedule.window_id == Window.id)
                .filter(WindowSchedule.schedule_id == schedule_id, Window.training_id.is_(None))
            )
            if day_of_week:
                query = query.filter(Window.day_of_week == day_of_week)
            return sort_windows(query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting free windows for schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to get free windows: {str(e)}")

    # Window writes

    def assign_window(
        self,
        *,
        day_of_week: str,
        start_time: str,
        end_time: str,
        schedule_ids: Iterable[str],
        training_id: Optional[str] = None,
        window_id: Optional[str] = None,
    ) -> Window:
        """
        Create or update a Window and replace its Schedule membership.

        Raises:
            NotFoundException: If any schedule id does not exist
        """
        wanted = sorted(set(schedule_ids))
        try:
            schedules = self.db.query(Schedule).filter(Schedule.id.in_(wanted)).all() if wanted else []
            missing = set(wanted) - {schedule.id for schedule in schedules}
            if missing:
                raise NotFoundException(
                    "Schedule not found",
                    code="SCHEDULE_NOT_FOUND",
                    details={"schedule_ids": sorted(missing)},
                )

            window = self.get_window(window_id) if window_id else None
            if window is None:
                window = Window(id=window_id) if window_id else Window()
                self.db.add(window)

            window.day_of_week = day_of_week
            window.start_time = start_time
            window.end_time = end_time
            window.schedules = schedules
            window.training = self.db.get(Training, training_id) if training_id else None

            self.db.flush()
            return window
        except SQLAlchemyError as e:
            self.logger.error(f"Error assigning window: {str(e)}")
            raise RepositoryException(f"Failed to assign window: {str(e)}")

    def set_window_schedules(self, window: Window, schedule_ids: Iterable[str]) -> Window:
        """Replace the membership of an existing Window, keeping its time and training."""
        return self.assign_window(
            day_of_week=window.day_of_week,
            start_time=window.start_time,
            end_time=window.end_time,
            schedule_ids=schedule_ids,
            training_id=window.training_id,
            window_id=window.id,
        )

    def delete_window(self, window_id: str) -> bool:
        try:
            window = self.db.get(Window, window_id)
            if window is None:
                return False
            training = window.training
            self.db.delete(window)
            self.db.flush()
            if training is not None:
                self.db.expire(training, ["window"])
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting window {window_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete window: {str(e)}")

    # Schedules

    def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        try:
            return self.db.get(Schedule, schedule_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to get schedule: {str(e)}")

    def create_schedule(self, owner_kind: ScheduleOwnerKind) -> Schedule:
        try:
            schedule = Schedule(owner_kind=owner_kind.value)
            self.db.add(schedule)
            self.db.flush()
            return schedule
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating schedule: {str(e)}")
            raise RepositoryException(f"Failed to create schedule: {str(e)}")

    def delete_schedule(self, schedule_id: str) -> Optional[int]:
        """
        Delete a Schedule and every Window on it.

        Windows shared with other Schedules are removed everywhere. Owners
        pointing at the Schedule are detached by the SET NULL foreign key.

        Returns:
            Number of Windows removed, or None when the Schedule does not exist
        """
        try:
            schedule = self.db.get(Schedule, schedule_id)
            if schedule is None:
                return None

            windows = self.get_windows_for_schedule(schedule_id)
            for window in windows:
                self.db.delete(window)
            self.db.flush()

            self.db.delete(schedule)
            self.db.flush()
            self.db.expire_all()
            return len(windows)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete schedule: {str(e)}")

    def get_client_ids_for_schedules(self, ids: Iterable[str]) -> List[str]:
        """Ids of clients owning any of the given Schedules."""
        id_list = list(set(ids))
        if not id_list:
            return []
        try:
            rows = self.db.query(Client.id).filter(Client.schedule_id.in_(id_list)).all()
            return sorted(row[0] for row in rows)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting clients for schedules: {str(e)}")
            raise RepositoryException(f"Failed to get clients for schedules: {str(e)}")
