"""
Database models for the scheduling platform.

The models are organized by functionality:
- Participants: trainers and clients (with preferences)
- Facilities: gyms, rooms and their locations
- Availability: schedules, windows and window membership
- Trainings: bookings, enrolment and completion archive
"""

from .client import Client, ClientPreference
from .facility import Gym, Room
from .location import Location
from .schedule import Schedule, Window, WindowSchedule
from .trainer import Trainer
from .training import CompletedTraining, Training, TrainingClient

__all__ = [
    "Client",
    "ClientPreference",
    "CompletedTraining",
    "Gym",
    "Location",
    "Room",
    "Schedule",
    "Trainer",
    "Training",
    "TrainingClient",
    "Window",
    "WindowSchedule",
]
