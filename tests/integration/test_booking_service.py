"""
Integration tests for BookingService: training lifecycle and window placement.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from fitsched.core.enums import TrainingStatus, TrainingType
from fitsched.core.exceptions import (
    BookingConflictException,
    InsufficientNoticeException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from fitsched.services.booking_service import BookingService
from fitsched.services.recommendation_service import recommendation_cache_key


@pytest.fixture
def service(db, cache, clock):
    return BookingService(db, cache, clock=clock, cancellation_notice_minutes=60)


@pytest.fixture
def setup(factory):
    gym = factory.gym("Downtown Gym")
    room = factory.room(gym)
    trainer = factory.trainer()
    alice = factory.client("Alice")
    bob = factory.client("Bob")
    return {"gym": gym, "room": room, "trainer": trainer, "alice": alice, "bob": bob}


def _create(service, s, clients=(), trainer=None, room=None):
    return service.create_training(
        trainer_id=(trainer or s["trainer"]).id,
        room_id=(room or s["room"]).id,
        price="80",
        type=TrainingType.YOGA,
        client_ids=[c.id for c in clients],
    )


class TestCreateTraining:
    def test_creates_planned_training(self, service, setup):
        training = _create(service, setup, clients=[setup["alice"], setup["bob"]])

        assert training.status == TrainingStatus.PLANNED.value
        assert training.type == "Yoga"
        assert training.price == Decimal("80.00")
        assert sorted(training.client_ids) == sorted([setup["alice"].id, setup["bob"].id])
        assert training.window is None

    def test_duplicate_clients_rejected(self, service, setup):
        with pytest.raises(ValidationException) as exc_info:
            _create(service, setup, clients=[setup["alice"], setup["alice"]])
        assert exc_info.value.code == "DUPLICATE_CLIENTS"

    def test_unknown_trainer(self, service, setup):
        with pytest.raises(NotFoundException) as exc_info:
            service.create_training("missing", setup["room"].id, "10", "Yoga")
        assert exc_info.value.code == "TRAINER_NOT_FOUND"

    def test_unknown_client(self, service, setup):
        with pytest.raises(NotFoundException) as exc_info:
            service.create_training(setup["trainer"].id, setup["room"].id, "10", "Yoga", ["nope"])
        assert exc_info.value.details["client_ids"] == ["nope"]

    @pytest.mark.parametrize("price", ["-1", "abc"])
    def test_invalid_price(self, service, setup, price):
        with pytest.raises(ValidationException) as exc_info:
            service.create_training(setup["trainer"].id, setup["room"].id, price, "Yoga")
        assert exc_info.value.code == "INVALID_PRICE"

    def test_invalid_type(self, service, setup):
        with pytest.raises(ValidationException) as exc_info:
            service.create_training(setup["trainer"].id, setup["room"].id, "10", "Boxing")
        assert exc_info.value.code == "INVALID_TRAINING_TYPE"


class TestAttachWindow:
    def test_places_window_on_every_participant_schedule(self, service, setup):
        s = setup
        training = _create(service, s, clients=[s["alice"]])

        window = service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        assert window.training_id == training.id
        assert window.schedule_ids == {
            s["trainer"].schedule_id,
            s["gym"].schedule_id,
            s["alice"].schedule_id,
        }

    def test_back_to_back_trainings_allowed(self, service, setup):
        first = _create(service, setup)
        second = _create(service, setup)

        service.attach_window("Monday", "10:00", "11:00", training_id=first.id)
        window = service.attach_window("Monday", "11:00", "12:00", training_id=second.id)

        assert window.start_time == "11:00"

    def test_overlapping_trainer_rejected(self, service, setup, factory):
        first = _create(service, setup)
        other_room = factory.room(factory.gym("Elsewhere"))
        second = _create(service, setup, room=other_room)
        service.attach_window("Monday", "10:00", "11:00", training_id=first.id)

        with pytest.raises(BookingConflictException) as exc_info:
            service.attach_window("Monday", "10:30", "11:30", training_id=second.id)

        assert exc_info.value.message == "Trainer has a conflict"
        assert service.get_training(second.id).window is None

    def test_overlapping_room_rejected(self, service, setup, factory):
        first = _create(service, setup)
        second = _create(service, setup, trainer=factory.trainer("Other"))
        service.attach_window("Monday", "10:00", "11:00", training_id=first.id)

        with pytest.raises(BookingConflictException) as exc_info:
            service.attach_window("Monday", "10:00", "11:00", training_id=second.id)

        assert exc_info.value.message == "Room is occupied"

    def test_same_time_other_day_allowed(self, service, setup):
        first = _create(service, setup)
        second = _create(service, setup)
        service.attach_window("Monday", "10:00", "11:00", training_id=first.id)

        window = service.attach_window("Tuesday", "10:00", "11:00", training_id=second.id)

        assert window.day_of_week == "Tuesday"

    def test_cancelled_training_frees_the_slot(self, service, setup, clock):
        first = _create(service, setup)
        second = _create(service, setup)
        service.attach_window("Monday", "10:00", "11:00", training_id=first.id)
        service.cancel_training(first.id)

        window = service.attach_window("Monday", "10:00", "11:00", training_id=second.id)

        assert window.training_id == second.id

    def test_re_placing_own_window_ignores_itself(self, service, setup):
        training = _create(service, setup)
        window = service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        moved = service.attach_window(
            "Monday", "10:30", "11:30", training_id=training.id, window_id=window.id
        )

        assert moved.id == window.id
        assert (moved.start_time, moved.end_time) == ("10:30", "11:30")

    def test_invalid_range(self, service, setup):
        training = _create(service, setup)
        with pytest.raises(ValidationException) as exc_info:
            service.attach_window("Monday", "11:00", "10:00", training_id=training.id)
        assert exc_info.value.code == "INVALID_TIME_RANGE"

    def test_invalid_day(self, service, setup):
        training = _create(service, setup)
        with pytest.raises(ValidationException) as exc_info:
            service.attach_window("Someday", "10:00", "11:00", training_id=training.id)
        assert exc_info.value.code == "INVALID_DAY_OF_WEEK"

    def test_requires_exactly_one_mode(self, service, setup):
        training = _create(service, setup)
        with pytest.raises(ValidationException) as exc_info:
            service.attach_window(
                "Monday",
                "10:00",
                "11:00",
                training_id=training.id,
                schedule_ids=[setup["alice"].schedule_id],
            )
        assert exc_info.value.code == "INVALID_ATTACH_MODE"

    def test_free_window_on_explicit_schedules(self, service, setup):
        s = setup
        window = service.attach_window(
            "Friday", "08:00", "20:00", schedule_ids=[s["alice"].schedule_id]
        )

        assert window.training_id is None
        assert window.schedule_ids == {s["alice"].schedule_id}

    def test_free_window_skips_conflict_check(self, service, setup):
        s = setup
        training = _create(service, s, clients=[s["alice"]])
        service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        window = service.attach_window(
            "Monday", "09:00", "12:00", schedule_ids=[s["alice"].schedule_id]
        )

        assert window.training_id is None

    def test_free_window_cannot_overwrite_booked_window(self, service, setup):
        training = _create(service, setup)
        booked = service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        with pytest.raises(InvalidStateException) as exc_info:
            service.attach_window(
                "Monday",
                "10:00",
                "11:00",
                schedule_ids=[setup["alice"].schedule_id],
                window_id=booked.id,
            )
        assert exc_info.value.code == "WINDOW_ALREADY_BOOKED"

    def test_attach_invalidates_client_recommendations(self, service, setup, cache):
        alice = setup["alice"]
        cache.set(recommendation_cache_key(alice.id), {"stale": True}, ttl=300)
        training = _create(service, setup, clients=[alice])
        cache.set(recommendation_cache_key(alice.id), {"stale": True}, ttl=300)

        service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        assert cache.get(recommendation_cache_key(alice.id)) is None


class TestUpdateTraining:
    def test_conflicting_update_is_rejected_atomically(self, service, setup, factory):
        s = setup
        other_trainer = factory.trainer("Busy")
        other_room = factory.room(factory.gym("Elsewhere"))
        busy = _create(service, s, trainer=other_trainer, room=other_room)
        service.attach_window("Monday", "10:00", "11:00", training_id=busy.id)

        training = _create(service, s)
        service.attach_window("Monday", "10:30", "11:30", training_id=training.id)

        with pytest.raises(BookingConflictException):
            service.update_training(training.id, trainer_id=other_trainer.id, price="99")

        reloaded = service.get_training(training.id)
        assert reloaded.trainer_id == s["trainer"].id
        assert reloaded.price == Decimal("80.00")
        assert reloaded.window.schedule_ids == {s["trainer"].schedule_id, s["gym"].schedule_id}

    def test_update_moves_window_to_new_participants(self, service, setup):
        s = setup
        training = _create(service, s, clients=[s["alice"]])
        service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        updated = service.update_training(training.id, client_ids=[s["bob"].id])

        assert updated.client_ids == [s["bob"].id]
        assert updated.window.schedule_ids == {
            s["trainer"].schedule_id,
            s["gym"].schedule_id,
            s["bob"].schedule_id,
        }

    def test_update_without_window_only_changes_fields(self, service, setup):
        training = _create(service, setup)

        updated = service.update_training(training.id, type=TrainingType.PILATES, price="12.5")

        assert updated.type == "Pilates"
        assert updated.price == Decimal("12.50")

    def test_update_cancelled_training_rejected(self, service, setup):
        training = _create(service, setup)
        service.attach_window("Monday", "10:00", "11:00", training_id=training.id)
        service.cancel_training(training.id)

        with pytest.raises(InvalidStateException) as exc_info:
            service.update_training(training.id, price="1")
        assert exc_info.value.code == "TRAINING_NOT_PLANNED"


class TestCancelTraining:
    def _placed(self, service, setup):
        training = _create(service, setup, clients=[setup["alice"]])
        service.attach_window("Monday", "10:00", "11:00", training_id=training.id)
        return training

    def test_cancel_with_enough_notice(self, service, setup, clock):
        training = self._placed(service, setup)
        clock.set(datetime(2026, 3, 2, 8, 59))

        cancelled = service.cancel_training(training.id, client_id=setup["alice"].id)

        assert cancelled.status == TrainingStatus.CANCELLED.value
        assert cancelled.cancelled_by_client_id == setup["alice"].id
        assert cancelled.cancelled_at == datetime(2026, 3, 2, 8, 59)

    def test_cancel_with_short_notice_rejected(self, service, setup, clock):
        training = self._placed(service, setup)
        clock.set(datetime(2026, 3, 2, 9, 1))

        with pytest.raises(InsufficientNoticeException) as exc_info:
            service.cancel_training(training.id)

        assert exc_info.value.details == {"required_minutes": 60, "provided_minutes": 59}
        assert service.get_training(training.id).status == TrainingStatus.PLANNED.value

    def test_double_cancel_rejected(self, service, setup):
        training = self._placed(service, setup)
        service.cancel_training(training.id)

        with pytest.raises(InvalidStateException) as exc_info:
            service.cancel_training(training.id)
        assert exc_info.value.code == "TRAINING_ALREADY_CANCELLED"

    def test_cancel_without_window_rejected(self, service, setup):
        training = _create(service, setup)
        with pytest.raises(InvalidStateException) as exc_info:
            service.cancel_training(training.id)
        assert exc_info.value.code == "TRAINING_WITHOUT_WINDOW"

    def test_cancel_by_unenrolled_client_rejected(self, service, setup):
        training = self._placed(service, setup)
        with pytest.raises(ValidationException) as exc_info:
            service.cancel_training(training.id, client_id=setup["bob"].id)
        assert exc_info.value.code == "CLIENT_NOT_ENROLLED"


class TestCompleteTraining:
    def test_complete_archives_one_record_per_client(self, service, setup):
        s = setup
        training = _create(service, s, clients=[s["alice"], s["bob"]])

        completed, archived = service.complete_training(training.id, date(2026, 3, 2))

        assert completed.status == TrainingStatus.COMPLETED.value
        assert sorted(r.client_id for r in archived) == sorted([s["alice"].id, s["bob"].id])
        assert {r.gym_name for r in archived} == {"Downtown Gym"}
        assert {r.training_date for r in archived} == {date(2026, 3, 2)}

    def test_completed_training_cannot_be_cancelled(self, service, setup):
        training = _create(service, setup)
        service.complete_training(training.id)

        with pytest.raises(InvalidStateException) as exc_info:
            service.cancel_training(training.id)
        assert exc_info.value.code == "TRAINING_NOT_PLANNED"


class TestDetachWindow:
    def test_detach_removes_window(self, service, setup):
        training = _create(service, setup)
        window = service.attach_window("Monday", "10:00", "11:00", training_id=training.id)

        service.detach_window(window.id)

        assert service.get_training(training.id).window is None
        with pytest.raises(NotFoundException):
            service.detach_window(window.id)
