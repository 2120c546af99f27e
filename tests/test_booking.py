from __future__ import annotations

import pytest

from config import settings
from database.repository import ClubSettingsRepository, ReservationRepository
from utils import booking
from utils.availability import generate_slots
from utils.exceptions import (
    ConflictError, InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError,
)
from utils.permissions import can_modify_reservation, is_admin


def test_register_user_is_idempotent(db) -> None:
    first, created = booking.register_user(555, " Анна ", "+79991112233")
    second, created_again = booking.register_user("555", "Другое имя", "+70000000000")

    assert created is True and created_again is False
    assert second == first
    assert first.name == "Анна"
    assert first.is_admin is False


def test_register_user_from_admin_ids_becomes_admin(db, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ADMIN_IDS", [777])

    user, _ = booking.register_user(777, "Админ", "+79990000000")

    assert user.is_admin is True


def test_admin_ids_grant_rights_without_db_flag(user, monkeypatch) -> None:
    assert is_admin(user) is False
    monkeypatch.setattr(settings, "ADMIN_IDS", [int(user.telegram_id)])
    assert is_admin(user) is True


def test_time_slots_for_table_and_date(user) -> None:
    booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    slots = booking.get_time_slots("2024-06-01", 3)

    assert [(s.start_time, s.end_time, s.is_available) for s in slots] == [
        ("15:00", "17:00", True),
        ("17:00", "19:00", False),
        ("19:00", "21:00", True),
        ("21:00", "23:00", True),
        ("23:00", "01:00", True),
    ]
    assert all(s.is_available for s in booking.get_time_slots("2024-06-01", 4))


def test_time_slots_follow_club_settings(db) -> None:
    ClubSettingsRepository.update_settings(opening_time="10:00", closing_time="16:00", slot_duration=3)

    slots = booking.get_time_slots("2024-06-01", 1)

    assert [(s.start_time, s.end_time) for s in slots] == [("10:00", "13:00"), ("13:00", "16:00")]


def test_end_to_end_booking_scenario(user, other_user) -> None:
    existing = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    with pytest.raises(ConflictError) as exc:
        booking.create_booking(other_user, 3, "2024-06-01", "18:00", "20:00")
    assert exc.value.conflict.id == existing.id

    accepted = booking.create_booking(other_user, 3, "2024-06-01", "19:00", "21:00", "День рождения")
    assert accepted.status == "active"
    assert accepted.comment == "День рождения"


def test_last_wrapped_slot_can_be_booked(user) -> None:
    reservation = booking.create_booking(user, 3, "2024-06-01", "23:00", "01:00")

    assert reservation.status == "active"
    assert booking.get_time_slots("2024-06-01", 3)[-1].is_available is False


@pytest.mark.parametrize("date, start, end", [
    ("2024-13-01", "17:00", "19:00"),
    ("01.06.2024", "17:00", "19:00"),
    ("2024-06-01", "7:00", "19:00"),
    ("2024-06-01", "17:00", "24:00"),
    ("2024-06-01", "17:00", "17:00"),
])
def test_invalid_interval_is_rejected(user, date: str, start: str, end: str) -> None:
    with pytest.raises(ValidationError) as exc:
        booking.create_booking(user, 3, date, start, end)

    assert exc.value.errors
    assert ReservationRepository.get_all_reservations() == []


def test_booking_unknown_table(user) -> None:
    with pytest.raises(NotFoundError):
        booking.create_booking(user, 999, "2024-06-01", "17:00", "19:00")


def test_owner_can_cancel_and_comment(user) -> None:
    reservation = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    commented = booking.update_booking(user, reservation.id, comment="Опоздаем на 10 минут")
    cancelled = booking.cancel_booking(user, reservation.id)

    assert commented.comment == "Опоздаем на 10 минут"
    assert cancelled.status == "cancelled"


def test_other_user_cannot_touch_reservation(user, other_user) -> None:
    reservation = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    assert can_modify_reservation(other_user, reservation) is False
    with pytest.raises(PermissionDeniedError):
        booking.cancel_booking(other_user, reservation.id)
    with pytest.raises(PermissionDeniedError):
        booking.delete_booking(other_user, reservation.id)

    assert ReservationRepository.get_reservation_by_id(reservation.id).status == "active"


def test_admin_can_cancel_and_complete_any_reservation(user, admin) -> None:
    first = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")
    second = booking.create_booking(user, 3, "2024-06-01", "19:00", "21:00")

    assert booking.cancel_booking(admin, first.id).status == "cancelled"
    assert booking.update_booking(admin, second.id, status="completed").status == "completed"


def test_owner_cannot_complete_reservation(user) -> None:
    reservation = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    with pytest.raises(PermissionDeniedError):
        booking.update_booking(user, reservation.id, status="completed")


def test_cancelled_reservation_cannot_be_reactivated(user) -> None:
    reservation = booking.cancel_booking(user, booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00").id)

    with pytest.raises(InvalidTransitionError):
        booking.update_booking(user, reservation.id, status="active")


def test_unknown_status_is_rejected(user) -> None:
    reservation = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    with pytest.raises(ValidationError):
        booking.update_booking(user, reservation.id, status="paused")


def test_missing_reservation(user) -> None:
    with pytest.raises(NotFoundError):
        booking.cancel_booking(user, 12345)


def test_delete_own_reservation(user) -> None:
    reservation = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")

    booking.delete_booking(user, reservation.id)

    assert ReservationRepository.get_reservation_by_id(reservation.id) is None


def test_list_bookings_all_only_for_admin(user, other_user, admin) -> None:
    mine = booking.create_booking(user, 3, "2024-06-01", "17:00", "19:00")
    booking.create_booking(other_user, 4, "2024-06-01", "17:00", "19:00")

    assert [r.id for r in booking.list_bookings(user, include_all=True)] == [mine.id]
    assert len(booking.list_bookings(admin, include_all=True)) == 2
    assert booking.list_bookings(admin) == []


@pytest.mark.parametrize("start, end", [("19:00", "17:00"), ("23:00", "02:00"), ("01:00", "00:30")])
def test_reversed_interval_is_rejected(user, start: str, end: str) -> None:
    with pytest.raises(ValidationError) as exc:
        booking.create_booking(user, 3, "2024-06-01", start, end)

    assert exc.value.errors == [{"field": "end_time", "message": "must be after start_time"}]
    assert ReservationRepository.get_all_reservations() == []


@pytest.mark.parametrize("start, end", [("22:00", "00:00"), ("23:00", "01:00"), ("23:30", "00:30")])
def test_interval_crossing_midnight_within_last_slot_is_accepted(user, start: str, end: str) -> None:
    assert booking.create_booking(user, 3, "2024-06-01", start, end).status == "active"


def test_every_free_slot_of_longest_duration_can_be_booked(user) -> None:
    ClubSettingsRepository.update_settings(slot_duration=23)

    slots = booking.get_time_slots("2024-06-01", 3)
    assert [(s.start_time, s.end_time, s.is_available) for s in slots] == [("15:00", "14:00", True)]

    reservation = booking.create_booking(user, 3, "2024-06-01", "15:00", "14:00")

    assert reservation.status == "active"
    assert [s.is_available for s in booking.get_time_slots("2024-06-01", 3)] == [False]


def test_time_slots_for_unknown_table(db) -> None:
    with pytest.raises(NotFoundError):
        booking.get_time_slots("2024-06-01", 999)


@pytest.mark.parametrize("duration", range(1, 24))
def test_every_generated_slot_passes_interval_validation(duration: int) -> None:
    slots = generate_slots("15:00", "00:00", duration)

    for slot in slots:
        booking.validate_interval("2024-06-01", slot.start_time, slot.end_time, slots)
