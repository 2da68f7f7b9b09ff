# tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh in-memory SQLite database, a memory cache driven by
a controllable clock and a mock geocoder, so nothing touches Redis or the
network.
"""

import os

# Set test configuration BEFORE any fitsched imports
os.environ["CI"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["GEOCODING_PROVIDER"] = "mock"

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fitsched.api.dependencies import get_cache_service_dep, get_clock, get_db, get_geocoder
from fitsched.core.enums import ScheduleOwnerKind, TrainingStatus, TrainingType
from fitsched.database import Base, install_connection_hooks
from fitsched.main import app
from fitsched.models import (
    Client,
    ClientPreference,
    Gym,
    Location,
    Room,
    Schedule,
    Trainer,
    Training,
    Window,
)
from fitsched.services.cache_service import CacheService
from fitsched.services.geocoding.mock_provider import MockGeocodingProvider

# Monday morning; only the time of day matters to the booking rules
DEFAULT_NOW = datetime(2026, 3, 2, 8, 0)


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime = DEFAULT_NOW):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


class EntityFactory:
    """Creates persisted participants, facilities and trainings."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def schedule(self, kind: ScheduleOwnerKind) -> Schedule:
        return self._save(Schedule(owner_kind=kind.value))

    def location(
        self,
        street: str = "Marszalkowska",
        building_number: str = "1",
        zip_code: str = "00-001",
        city: str = "Warszawa",
    ) -> Location:
        return self._save(
            Location(street=street, building_number=building_number, zip_code=zip_code, city=city)
        )

    def gym(
        self,
        name: str = "Downtown Gym",
        location: Optional[Location] = None,
        with_schedule: bool = True,
    ) -> Gym:
        schedule = self.schedule(ScheduleOwnerKind.GYM) if with_schedule else None
        return self._save(
            Gym(
                name=name,
                location_id=location.id if location else None,
                schedule_id=schedule.id if schedule else None,
            )
        )

    def room(self, gym: Optional[Gym] = None, name: str = "Room A") -> Room:
        gym = gym or self.gym()
        return self._save(Room(name=name, gym_id=gym.id))

    def trainer(self, name: str = "Trainer", with_schedule: bool = True) -> Trainer:
        schedule = self.schedule(ScheduleOwnerKind.TRAINER) if with_schedule else None
        return self._save(Trainer(name=name, schedule_id=schedule.id if schedule else None))

    def client(
        self,
        name: str = "Client",
        location: Optional[Location] = None,
        training_types: Optional[Iterable[TrainingType]] = None,
        with_schedule: bool = True,
    ) -> Client:
        schedule = self.schedule(ScheduleOwnerKind.CLIENT) if with_schedule else None
        client = self._save(
            Client(
                name=name,
                location_id=location.id if location else None,
                schedule_id=schedule.id if schedule else None,
            )
        )
        if training_types is not None:
            self._save(
                ClientPreference(
                    client_id=client.id,
                    activity_level="Moderate",
                    training_types=[t.value for t in training_types],
                )
            )
        return client

    def training(
        self,
        trainer: Trainer,
        room: Room,
        clients: Iterable[Client] = (),
        type: TrainingType = TrainingType.CARDIO,
        price: str = "50.00",
        status: TrainingStatus = TrainingStatus.PLANNED,
    ) -> Training:
        training = Training(
            trainer_id=trainer.id,
            room_id=room.id,
            price=Decimal(price),
            type=type.value,
            status=status.value,
        )
        training.clients = list(clients)
        return self._save(training)

    def window(
        self,
        day_of_week: str,
        start_time: str,
        end_time: str,
        schedule_ids: Iterable[str],
        training: Optional[Training] = None,
    ) -> Window:
        schedules: List[Schedule] = [self.db.get(Schedule, sid) for sid in schedule_ids]
        window = Window(
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            training_id=training.id if training else None,
        )
        window.schedules = schedules
        self._save(window)
        if training is not None:
            self.db.expire(training, ["window"])
        return window


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    install_connection_hooks(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    TestSessionLocal = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> CacheService:
    return CacheService(backend="memory", clock=clock)


@pytest.fixture
def geocoder() -> MockGeocodingProvider:
    return MockGeocodingProvider()


@pytest.fixture
def factory(db) -> EntityFactory:
    return EntityFactory(db)


@pytest.fixture
def api_client(db, cache, geocoder, clock):
    """TestClient bound to the test session, cache, geocoder and clock."""

    def _override_get_db():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_cache_service_dep] = lambda: cache
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
