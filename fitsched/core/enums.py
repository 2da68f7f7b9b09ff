# fitsched/core/enums.py
"""
Core enums for the scheduling platform.

Values are the labels stored in the database and exposed over the API.
"""

from enum import Enum


class TrainingType(str, Enum):
    FUNCTIONAL = "Functional"
    HEALTHY_BACK = "Healthy Back"
    CARDIO = "Cardio"
    YOGA = "Yoga"
    CALISTHENICS = "Calisthenics"
    PILATES = "Pilates"
    ZUMBA = "Zumba"
    BODYBUILDING = "Bodybuilding"
    POWERLIFTING = "Powerlifting"


class TrainingStatus(str, Enum):
    """
    Training lifecycle statuses.

    PLANNED -> CANCELLED and PLANNED -> COMPLETED; both targets are terminal.
    """

    PLANNED = "PLANNED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class ActivityLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class ScheduleOwnerKind(str, Enum):
    """Which participant class a schedule belongs to."""

    TRAINER = "trainer"
    GYM = "gym"
    CLIENT = "client"
