# fitsched/services/client_service.py
"""
Client Service for fitsched

Owns the two client inputs of the recommendation ranking, home address and
training preferences, and drops the client's cached recommendations
whenever either changes.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import ActivityLevel, TrainingType
from ..core.exceptions import NotFoundException, ValidationException
from ..models.client import Client, ClientPreference
from ..models.location import Location
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .cache_service import CacheService
from .recommendation_service import recommendation_cache_key

logger = logging.getLogger(__name__)


class ClientService(BaseService):
    def __init__(self, db: Session, cache: Optional[CacheService] = None):
        super().__init__(db, cache)
        self.repository = RepositoryFactory.create_client_repository(db)

    @BaseService.measure_operation("update_client_location")
    def update_location(
        self,
        client_id: str,
        *,
        street: str,
        building_number: str,
        zip_code: str,
        city: str,
        apartment_number: Optional[str] = None,
    ) -> Location:
        client = self._get_client_or_404(client_id)

        with self.transaction():
            location = self.repository.upsert_location(
                client,
                street=street,
                building_number=building_number,
                apartment_number=apartment_number,
                zip_code=zip_code,
                city=city,
            )

        self.logger.info(f"Updated location of client {client_id}")
        self.invalidate_cache(recommendation_cache_key(client_id))
        return location

    @BaseService.measure_operation("update_client_preferences")
    def update_preferences(
        self,
        client_id: str,
        *,
        activity_level: Union[ActivityLevel, str],
        training_types: List[Union[TrainingType, str]],
        training_goal: str = "",
        health_profile: Optional[str] = None,
    ) -> ClientPreference:
        client = self._get_client_or_404(client_id)

        try:
            level = ActivityLevel(activity_level).value
            types = [TrainingType(value).value for value in training_types]
        except ValueError as e:
            raise ValidationException(str(e), code="INVALID_PREFERENCES")

        with self.transaction():
            preferences = self.repository.upsert_preferences(
                client,
                activity_level=level,
                training_types=list(dict.fromkeys(types)),
                training_goal=training_goal,
                health_profile=health_profile,
            )

        self.logger.info(f"Updated preferences of client {client_id}: {types}")
        self.invalidate_cache(recommendation_cache_key(client_id))
        return preferences

    def _get_client_or_404(self, client_id: str) -> Client:
        client = self.repository.get_with_profile(client_id)
        if client is None:
            raise NotFoundException(f"Client with ID {client_id} not found", code="CLIENT_NOT_FOUND")
        return client
