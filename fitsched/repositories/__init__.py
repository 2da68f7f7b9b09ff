# fitsched/repositories/__init__.py
"""
Repository layer for fitsched.

Repositories own all queries and never commit; services decide the
transaction boundary.

Usage:
    from fitsched.repositories import RepositoryFactory

    repository = RepositoryFactory.create_availability_repository(db)
    booked = repository.windows_booked(schedule_id, "Monday")
"""

from .availability_repository import AvailabilityRepository, TouchedSchedule
from .base_repository import BaseRepository
from .client_repository import ClientRepository
from .factory import RepositoryFactory
from .training_repository import TrainingRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "ClientRepository",
    "RepositoryFactory",
    "TouchedSchedule",
    "TrainingRepository",
]
