# fitsched/repositories/factory.py
"""
Repository Factory for fitsched

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING, Any, Type

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .client_repository import ClientRepository
    from .training_repository import TrainingRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model: Type[Any]) -> BaseRepository[Any]:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for schedules and windows."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_training_repository(db: Session) -> "TrainingRepository":
        """Create repository for trainings and the completion archive."""
        from .training_repository import TrainingRepository

        return TrainingRepository(db)

    @staticmethod
    def create_client_repository(db: Session) -> "ClientRepository":
        """Create repository for clients, their locations and preferences."""
        from .client_repository import ClientRepository

        return ClientRepository(db)
