# fitsched/repositories/training_repository.py
"""
TrainingRepository - trainings, enrolment and the completion archive.
"""

from datetime import date
from decimal import Decimal
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.client import Client
from ..models.facility import Gym, Room
from ..models.schedule import Window
from ..models.training import CompletedTraining, Training
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TrainingRepository(BaseRepository[Training]):
    def __init__(self, db: Session):
        super().__init__(db, Training)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Training.trainer),
            selectinload(Training.room).selectinload(Room.gym).selectinload(Gym.location),
            selectinload(Training.clients),
            selectinload(Training.window).selectinload(Window.schedules),
        )

    def get_catalog(self, training_types: Optional[List[str]] = None) -> List[Training]:
        """
        Every training with the relations the recommendation ranking reads.

        Args:
            training_types: Restrict to these type labels when non-empty
        """
        try:
            query = self._apply_eager_loading(self.db.query(Training))
            if training_types:
                query = query.filter(Training.type.in_(training_types))
            return cast(List[Training], query.order_by(Training.id).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading training catalog: {str(e)}")
            raise RepositoryException(f"Failed to load trainings: {str(e)}")

    def set_clients(self, training: Training, clients: List[Client]) -> Training:
        try:
            training.clients = clients
            self.db.flush()
            return training
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating clients of training {training.id}: {str(e)}")
            raise RepositoryException(f"Failed to update training clients: {str(e)}")

    # Completion archive

    def archive_completion(
        self,
        training: Training,
        client_id: str,
        training_date: date,
        gym_name: str,
    ) -> CompletedTraining:
        try:
            record = CompletedTraining(
                training_id=training.id,
                client_id=client_id,
                trainer_id=training.trainer_id,
                price=Decimal(training.price),
                type=training.type,
                training_date=training_date,
                gym_name=gym_name,
            )
            self.db.add(record)
            self.db.flush()
            return record
        except SQLAlchemyError as e:
            self.logger.error(f"Error archiving training {training.id}: {str(e)}")
            raise RepositoryException(f"Failed to archive completed training: {str(e)}")
