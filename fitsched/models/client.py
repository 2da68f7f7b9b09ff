# fitsched/models/client.py
"""
Client (consumer) models.

Classes:
    Client: A consumer with its own schedule and home location
    ClientPreference: Training preferences ("form") used for recommendations
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .location import Location
    from .schedule import Schedule


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    schedule_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("schedules.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    location_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )

    schedule: Mapped[Optional["Schedule"]] = relationship()
    location: Mapped[Optional["Location"]] = relationship()
    preferences: Mapped[Optional["ClientPreference"]] = relationship(
        back_populates="client", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Client {self.id}>"


class ClientPreference(Base):
    """Stated training preferences of a client."""

    __tablename__ = "client_preferences"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    client_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    activity_level: Mapped[str] = mapped_column(String(20), nullable=False)
    training_types: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    training_goal: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    health_profile: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    client: Mapped["Client"] = relationship(back_populates="preferences")
