# fitsched/models/trainer.py
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .schedule import Schedule


class Trainer(Base):
    """Service provider; owns one schedule."""

    __tablename__ = "trainers"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    specialization: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    schedule_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("schedules.id", ondelete="SET NULL"), nullable=True, unique=True
    )

    schedule: Mapped[Optional["Schedule"]] = relationship()

    def __repr__(self) -> str:
        return f"<Trainer {self.id}>"
