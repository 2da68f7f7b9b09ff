# fitsched/models/facility.py
"""
Facility models: gyms (resource groups) and their rooms (resources).

A room has no schedule of its own; conflict checks for a room use the
schedule of the gym it belongs to. A gym without a schedule is valid and
simply opts out of room-level conflict checking.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .location import Location
    from .schedule import Schedule


class Gym(Base):
    __tablename__ = "gyms"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )
    schedule_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("schedules.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    location: Mapped[Optional["Location"]] = relationship()
    schedule: Mapped[Optional["Schedule"]] = relationship()
    rooms: Mapped[List["Room"]] = relationship(
        back_populates="gym", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Gym {self.id} {self.name}>"


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gym_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True
    )

    gym: Mapped["Gym"] = relationship(back_populates="rooms")

    def __repr__(self) -> str:
        return f"<Room {self.id} {self.name}>"
