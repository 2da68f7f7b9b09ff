# fitsched/schemas/client.py
"""
Client location and preference schemas.
"""

from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.enums import ActivityLevel, TrainingType
from .base import StandardizedModel, StrictRequestModel


class AddressUpdate(StrictRequestModel):
    street: str = Field(..., min_length=1, max_length=150)
    building_number: str = Field(..., min_length=1, max_length=20)
    apartment_number: Optional[str] = Field(None, max_length=20)
    zip_code: str = Field(..., min_length=1, max_length=10)
    city: str = Field(..., min_length=1, max_length=100)

    @field_validator("street", "building_number", "zip_code", "city")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class PreferencesUpdate(StrictRequestModel):
    activity_level: ActivityLevel
    training_types: List[TrainingType] = Field(default_factory=list)
    training_goal: str = Field("", max_length=500)
    health_profile: Optional[str] = None


class LocationResponse(StandardizedModel):
    id: str
    street: str
    building_number: str
    apartment_number: Optional[str] = None
    zip_code: str
    city: str

    model_config = ConfigDict(from_attributes=True)


class PreferencesResponse(StandardizedModel):
    client_id: str
    activity_level: str
    training_types: List[str]
    training_goal: str
    health_profile: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
