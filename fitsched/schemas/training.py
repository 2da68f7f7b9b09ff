# fitsched/schemas/training.py
"""
Training (booking) request and response schemas.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from pydantic import ConfigDict, Field

from ..core.enums import TrainingType
from .base import Money, StandardizedModel, StrictRequestModel

if TYPE_CHECKING:
    from ..models.training import CompletedTraining, Training


class TrainingCreate(StrictRequestModel):
    trainer_id: str
    room_id: str
    price: Money
    type: TrainingType
    client_ids: List[str] = Field(default_factory=list)


class TrainingUpdate(StrictRequestModel):
    """Partial update; omitted fields keep their current value."""

    trainer_id: Optional[str] = None
    room_id: Optional[str] = None
    price: Optional[Money] = None
    type: Optional[TrainingType] = None
    client_ids: Optional[List[str]] = None


class TrainingCancel(StrictRequestModel):
    client_id: Optional[str] = Field(None, description="Enrolled client requesting the cancellation")


class TrainingComplete(StrictRequestModel):
    training_date: Optional[date] = None


class WindowSummary(StandardizedModel):
    id: str
    day_of_week: str
    start_time: str
    end_time: str

    model_config = ConfigDict(from_attributes=True)


class TrainingSummary(StandardizedModel):
    """Flat view of a training; also the shape stored in recommendation entries."""

    id: str
    type: str
    status: str
    price: Money
    trainer_id: str
    room_id: str
    gym_id: Optional[str] = None
    gym_name: Optional[str] = None
    client_ids: List[str] = Field(default_factory=list)
    window: Optional[WindowSummary] = None

    @classmethod
    def from_training(cls, training: "Training") -> "TrainingSummary":
        gym = training.room.gym if training.room is not None else None
        window = training.window
        return cls(
            id=training.id,
            type=training.type,
            status=training.status,
            price=training.price,
            trainer_id=training.trainer_id,
            room_id=training.room_id,
            gym_id=gym.id if gym is not None else None,
            gym_name=gym.name if gym is not None else None,
            client_ids=sorted(training.client_ids),
            window=WindowSummary.model_validate(window) if window is not None else None,
        )


class TrainingResponse(TrainingSummary):
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_by_client_id: Optional[str] = None

    @classmethod
    def from_training(cls, training: "Training") -> "TrainingResponse":
        summary = TrainingSummary.from_training(training)
        return cls(
            **summary.model_dump(),
            created_at=training.created_at,
            cancelled_at=training.cancelled_at,
            completed_at=training.completed_at,
            cancelled_by_client_id=training.cancelled_by_client_id,
        )


class CompletedTrainingResponse(StandardizedModel):
    id: str
    training_id: Optional[str]
    client_id: str
    trainer_id: str
    price: Money
    type: str
    training_date: date
    gym_name: str

    model_config = ConfigDict(from_attributes=True)


class TrainingCompletedResponse(StandardizedModel):
    training: TrainingResponse
    archived: List[CompletedTrainingResponse]

    @classmethod
    def build(
        cls, training: "Training", archived: List["CompletedTraining"]
    ) -> "TrainingCompletedResponse":
        return cls(
            training=TrainingResponse.from_training(training),
            archived=[CompletedTrainingResponse.model_validate(row) for row in archived],
        )
