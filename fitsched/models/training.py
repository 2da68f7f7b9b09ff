# fitsched/models/training.py
"""
Training (booking) models.

A training links one trainer, one room and a set of clients. Placement in
the calendar is a separate step: the training's window is attached after
creation and is checked against every participant's schedule.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import TrainingStatus
from ..database import Base

if TYPE_CHECKING:
    from .client import Client
    from .facility import Room
    from .schedule import Window
    from .trainer import Trainer


class Training(Base):
    __tablename__ = "trainings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    room_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("rooms.id"), nullable=False, index=True
    )
    trainer_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("trainers.id"), nullable=False, index=True
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TrainingStatus.PLANNED.value, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    cancelled_by_client_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )

    room: Mapped["Room"] = relationship()
    trainer: Mapped["Trainer"] = relationship()
    clients: Mapped[List["Client"]] = relationship(secondary="training_clients")
    window: Mapped[Optional["Window"]] = relationship(back_populates="training", uselist=False)

    @property
    def client_ids(self) -> List[str]:
        return [client.id for client in self.clients]

    @property
    def is_planned(self) -> bool:
        return self.status == TrainingStatus.PLANNED.value

    def cancel(self, client_id: Optional[str] = None, at: Optional[datetime] = None) -> None:
        self.status = TrainingStatus.CANCELLED.value
        self.cancelled_at = at or datetime.now()
        self.cancelled_by_client_id = client_id

    def complete(self, at: Optional[datetime] = None) -> None:
        self.status = TrainingStatus.COMPLETED.value
        self.completed_at = at or datetime.now()

    def __repr__(self) -> str:
        return f"<Training {self.id} {self.type} {self.status}>"


class TrainingClient(Base):
    """Junction table for training-to-client enrolment."""

    __tablename__ = "training_clients"

    training_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("trainings.id", ondelete="CASCADE"), primary_key=True
    )
    client_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("clients.id", ondelete="CASCADE"), primary_key=True, index=True
    )


class CompletedTraining(Base):
    """Archival record written per client when a training completes."""

    __tablename__ = "completed_trainings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    training_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("trainings.id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    trainer_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("trainers.id", ondelete="CASCADE"), nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    training_date: Mapped[date] = mapped_column(Date, nullable=False)
    gym_name: Mapped[str] = mapped_column(String(100), nullable=False)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
