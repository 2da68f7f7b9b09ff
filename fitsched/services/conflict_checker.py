# fitsched/services/conflict_checker.py
"""
Conflict Checker Service for fitsched

Decides whether a candidate window can be placed for a set of participants.
Each touched Schedule is checked on its own: the first booked Window on the
same day that overlaps the candidate (half-open, so back-to-back is fine)
rejects the placement and names the participant class that blocked it.
"""

from dataclasses import dataclass
import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ..core import time_interval
from ..core.enums import ScheduleOwnerKind
from ..core.exceptions import BookingConflictException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.availability_repository import AvailabilityRepository, TouchedSchedule
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateWindow:
    day_of_week: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class ConflictResult:
    has_conflict: bool
    participant: Optional[TouchedSchedule] = None
    conflicting_window_id: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        if not self.has_conflict or self.participant is None:
            return None
        if self.participant.kind == ScheduleOwnerKind.TRAINER:
            return "Trainer has a conflict"
        if self.participant.kind == ScheduleOwnerKind.GYM:
            return "Room is occupied"
        return f"Client {self.participant.owner_id} has a conflict"


NO_CONFLICT = ConflictResult(has_conflict=False)


class ConflictChecker(BaseService):
    """
    Overlap detection across every participant's Schedule.

    Read-only: callers run it inside their own transaction after locking the
    touched Schedules so the answer stays valid until they write.
    """

    def __init__(self, db: Session, repository: Optional[AvailabilityRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)

    @BaseService.measure_operation("check_conflict")
    def check_conflict(
        self,
        candidate: CandidateWindow,
        touched: Sequence[TouchedSchedule],
        exclude_window_id: Optional[str] = None,
    ) -> ConflictResult:
        """
        Find the first participant whose booked Windows overlap ``candidate``.

        Args:
            candidate: Day and "HH:mm" bounds being placed
            touched: Schedules of trainer, gym and clients
            exclude_window_id: Window being re-placed, ignored during the check

        Returns:
            ConflictResult with the blocking participant, or NO_CONFLICT
        """
        for participant in touched:
            booked = self.repository.windows_booked(
                participant.schedule_id, candidate.day_of_week, exclude_window_id
            )
            for window in booked:
                if time_interval.overlaps(
                    candidate.start_time, candidate.end_time, window.start_time, window.end_time
                ):
                    self.logger.info(
                        f"Conflict on {participant.kind.value} {participant.owner_id}: "
                        f"{candidate.day_of_week} {candidate.start_time}-{candidate.end_time} "
                        f"overlaps window {window.id} ({window.start_time}-{window.end_time})"
                    )
                    return ConflictResult(
                        has_conflict=True,
                        participant=participant,
                        conflicting_window_id=window.id,
                    )
        return NO_CONFLICT

    def ensure_no_conflict(
        self,
        candidate: CandidateWindow,
        touched: Sequence[TouchedSchedule],
        exclude_window_id: Optional[str] = None,
    ) -> None:
        """
        Raise BookingConflictException when ``candidate`` overlaps a booked window.
        """
        result = self.check_conflict(candidate, touched, exclude_window_id)
        if not result.has_conflict or result.participant is None:
            return

        prometheus_metrics.record_booking_conflict(result.participant.kind.value)
        raise BookingConflictException(
            result.message,
            details={
                "participant": result.participant.kind.value,
                "owner_id": result.participant.owner_id,
                "schedule_id": result.participant.schedule_id,
                "conflicting_window_id": result.conflicting_window_id,
                "day_of_week": candidate.day_of_week,
                "start_time": candidate.start_time,
                "end_time": candidate.end_time,
            },
        )
