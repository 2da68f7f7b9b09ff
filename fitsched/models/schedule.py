# fitsched/models/schedule.py
"""
Availability models.

Classes:
    Schedule: Owner-agnostic container of windows (trainer, gym or client)
    Window: Day-of-week time slot, optionally bound to a training
    WindowSchedule: Junction table for window-to-schedule membership

One window belongs to the schedule of every participant of its training at
once, so membership is many-to-many rather than a single owning schedule.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Set

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

if TYPE_CHECKING:
    from .training import Training


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    owner_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    windows: Mapped[List["Window"]] = relationship(
        secondary="window_schedules", back_populates="schedules"
    )

    def __repr__(self) -> str:
        return f"<Schedule {self.id} ({self.owner_kind})>"


class Window(Base):
    __tablename__ = "windows"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    # "HH:mm" strings, zero padded so lexical order matches time order
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    training_id: Mapped[Optional[str]] = mapped_column(
        String(26),
        ForeignKey("trainings.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    schedules: Mapped[List["Schedule"]] = relationship(
        secondary="window_schedules", back_populates="windows"
    )
    training: Mapped[Optional["Training"]] = relationship(back_populates="window")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_windows_start_before_end"),
        Index("idx_windows_day", "day_of_week"),
    )

    @property
    def is_booked(self) -> bool:
        return self.training_id is not None

    @property
    def schedule_ids(self) -> Set[str]:
        return {schedule.id for schedule in self.schedules}

    def __repr__(self) -> str:
        return f"<Window {self.id} {self.day_of_week} {self.start_time}-{self.end_time}>"


class WindowSchedule(Base):
    """Junction table for window-to-schedule membership."""

    __tablename__ = "window_schedules"

    window_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("windows.id", ondelete="CASCADE"), primary_key=True
    )
    schedule_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("schedules.id", ondelete="CASCADE"), primary_key=True, index=True
    )
