# fitsched/repositories/client_repository.py
"""
ClientRepository - clients with their location and preferences.
"""

import logging
from typing import Any, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.client import Client, ClientPreference
from ..models.facility import Gym
from ..models.location import Location
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClientRepository(BaseRepository[Client]):
    def __init__(self, db: Session):
        super().__init__(db, Client)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Client.location),
            selectinload(Client.preferences),
        )

    def get_with_profile(self, client_id: str) -> Optional[Client]:
        return self.get_by_id(client_id, load_relationships=True)

    def is_location_shared(self, location_id: str, client_id: str) -> bool:
        """True when a gym or another client points at the same Location row."""
        gym_refs = self.db.query(Gym.id).filter(Gym.location_id == location_id).first()
        if gym_refs is not None:
            return True
        client_refs = (
            self.db.query(Client.id)
            .filter(Client.location_id == location_id, Client.id != client_id)
            .first()
        )
        return client_refs is not None

    def upsert_location(self, client: Client, **fields: Any) -> Location:
        """
        Point the client at the given address.

        The current Location is edited in place only while the client owns it
        alone; a row shared with a gym or another client is left untouched and
        the client moves to a fresh row.
        """
        try:
            location = client.location
            if location is None or self.is_location_shared(location.id, client.id):
                location = Location(**fields)
                self.db.add(location)
                client.location = location
            else:
                for key, value in fields.items():
                    setattr(location, key, value)
            self.db.flush()
            return location
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving location for client {client.id}: {str(e)}")
            raise RepositoryException(f"Failed to save client location: {str(e)}")

    def upsert_preferences(self, client: Client, **fields: Any) -> ClientPreference:
        try:
            preferences = client.preferences
            if preferences is None:
                preferences = ClientPreference(client_id=client.id, **fields)
                self.db.add(preferences)
                client.preferences = preferences
            else:
                for key, value in fields.items():
                    setattr(preferences, key, value)
            self.db.flush()
            return cast(ClientPreference, preferences)
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving preferences for client {client.id}: {str(e)}")
            raise RepositoryException(f"Failed to save client preferences: {str(e)}")
