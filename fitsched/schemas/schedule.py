# fitsched/schemas/schedule.py
"""
Window and schedule schemas.

Times travel as "HH:mm" strings; the service layer parses them so malformed
values surface as a 400 with a domain error code rather than a generic 422.
"""

from typing import List, Optional

from pydantic import ConfigDict, Field, model_validator

from ..core.enums import DayOfWeek
from .base import StandardizedModel, StrictRequestModel


class WindowPlacement(StrictRequestModel):
    """Day and time bounds of a window being placed."""

    day_of_week: DayOfWeek
    start_time: str = Field(..., max_length=5, examples=["10:00"])
    end_time: str = Field(..., max_length=5, examples=["11:00"])


class TrainingWindowRequest(WindowPlacement):
    """Attach (or re-place) the window of a training."""

    window_id: Optional[str] = Field(None, description="Existing window to re-use")


class FreeWindowRequest(WindowPlacement):
    """Declare free availability on explicit schedules."""

    schedule_ids: List[str] = Field(..., min_length=1)
    window_id: Optional[str] = None

    @model_validator(mode="after")
    def _no_blank_ids(self) -> "FreeWindowRequest":
        if any(not schedule_id.strip() for schedule_id in self.schedule_ids):
            raise ValueError("schedule_ids must not contain blank values")
        return self


class WindowResponse(StandardizedModel):
    id: str
    day_of_week: str
    start_time: str
    end_time: str
    training_id: Optional[str] = None
    schedule_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_window(cls, window: object) -> "WindowResponse":
        return cls(
            id=getattr(window, "id"),
            day_of_week=getattr(window, "day_of_week"),
            start_time=getattr(window, "start_time"),
            end_time=getattr(window, "end_time"),
            training_id=getattr(window, "training_id"),
            schedule_ids=sorted(getattr(window, "schedule_ids")),
        )


class ScheduleWindowsResponse(StandardizedModel):
    schedule_id: str
    windows: List[WindowResponse]


class ScheduleDeletedResponse(StandardizedModel):
    schedule_id: str
    windows_removed: int
