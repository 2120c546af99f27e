from __future__ import annotations

from itertools import product

import pytest

from database.models import Reservation, Table
from utils.availability import (
    TimeSlot, admit_reservation, compute_availability, find_conflict, generate_slots, overlaps,
    fits_overnight, overnight_limit,
)


def _res(start: str, end: str, *, table_id: int = 3, date: str = "2024-06-01",
         status: str = "active", id: int = 1) -> Reservation:
    return Reservation(id=id, user_id=1, table_id=table_id, date=date,
                       start_time=start, end_time=end, status=status)


def _interval(start: str, end: str) -> TimeSlot:
    return TimeSlot(start_time=start, end_time=end)


def _pairs(slots: list[TimeSlot]) -> list[tuple[str, str]]:
    return [(s.start_time, s.end_time) for s in slots]


# --- generate_slots ---------------------------------------------------------

def test_default_club_hours_produce_five_slots_ending_after_midnight() -> None:
    slots = generate_slots("15:00", "00:00", 2)

    assert _pairs(slots) == [
        ("15:00", "17:00"),
        ("17:00", "19:00"),
        ("19:00", "21:00"),
        ("21:00", "23:00"),
        ("23:00", "01:00"),
    ]
    assert slots[-1].end_time == "01:00"
    assert all(s.is_available for s in slots)


def test_uneven_duration_keeps_last_slot_past_closing() -> None:
    # Последний слот не обрезается по времени закрытия.
    assert _pairs(generate_slots("15:00", "00:00", 4)) == [
        ("15:00", "19:00"),
        ("19:00", "23:00"),
        ("23:00", "03:00"),
    ]


def test_daytime_hours_without_wrap() -> None:
    assert _pairs(generate_slots("10:00", "16:00", 3)) == [("10:00", "13:00"), ("13:00", "16:00")]


def test_minutes_are_ignored() -> None:
    assert _pairs(generate_slots("15:30", "19:45", 2)) == [("15:00", "17:00"), ("17:00", "19:00")]


def test_closing_after_midnight_other_than_zero_yields_no_slots() -> None:
    assert generate_slots("15:00", "02:00", 2) == []


def test_slots_are_recomputed_on_every_call() -> None:
    first = generate_slots("15:00", "00:00", 2)
    second = generate_slots("15:00", "00:00", 2)

    assert first == second
    assert first is not second
    first[0].is_available = False
    assert second[0].is_available is True


@pytest.mark.parametrize("duration", [0, -2, 24, 25])
def test_duration_outside_one_to_23_hours_is_rejected(duration: int) -> None:
    with pytest.raises(ValueError):
        generate_slots("15:00", "00:00", duration)


def test_longest_slot_wraps_to_next_day() -> None:
    assert _pairs(generate_slots("15:00", "00:00", 23)) == [("15:00", "14:00")]


@pytest.mark.parametrize("opening, closing, duration, limit", [
    ("15:00", "00:00", 2, "01:00"),
    ("15:00", "00:00", 4, "03:00"),
    ("15:00", "00:00", 23, "14:00"),
    ("14:00", "00:00", 2, "00:00"),
    ("10:00", "16:00", 3, "00:00"),
])
def test_overnight_limit_is_end_of_latest_wrapped_slot(opening, closing, duration, limit) -> None:
    hours, minutes = map(int, limit.split(":"))

    assert overnight_limit(generate_slots(opening, closing, duration)) == hours * 60 + minutes


def test_overnight_booking_must_start_within_club_hours() -> None:
    slots = generate_slots("15:00", "00:00", 2)

    assert fits_overnight("23:00", "01:00", slots) is True
    assert fits_overnight("22:00", "00:00", slots) is True
    assert fits_overnight("19:00", "17:00", slots) is False
    assert fits_overnight("01:00", "00:30", slots) is False
    assert fits_overnight("23:00", "00:00", []) is True


# --- overlaps ---------------------------------------------------------------

def test_touching_intervals_do_not_overlap() -> None:
    assert overlaps(_interval("10:00", "12:00"), _interval("12:00", "14:00")) is False
    assert overlaps(_interval("12:00", "14:00"), _interval("10:00", "12:00")) is False


def test_full_containment_overlaps() -> None:
    assert overlaps(_interval("10:00", "14:00"), _interval("11:00", "12:00")) is True
    assert overlaps(_interval("11:00", "12:00"), _interval("10:00", "14:00")) is True


def test_partial_and_identical_intervals_overlap() -> None:
    assert overlaps(_interval("17:00", "19:00"), _interval("18:00", "20:00")) is True
    assert overlaps(_interval("17:00", "19:00"), _interval("17:00", "19:00")) is True


def test_matches_canonical_intersection_test() -> None:
    times = ["10:00", "10:30", "11:00", "12:00", "13:00", "14:00"]
    intervals = [(s, e) for s, e in product(times, times) if s < e]

    for (a_start, a_end), (b_start, b_end) in product(intervals, intervals):
        expected = a_start < b_end and b_start < a_end
        assert overlaps(_interval(a_start, a_end), _interval(b_start, b_end)) is expected, (
            a_start, a_end, b_start, b_end
        )


def test_wrapped_slot_is_read_as_ending_next_day() -> None:
    last_slot = _interval("23:00", "01:00")

    assert overlaps(last_slot, _res("17:00", "19:00")) is False
    assert overlaps(last_slot, _res("21:00", "23:00")) is False
    assert overlaps(last_slot, _res("22:00", "00:00")) is True
    assert overlaps(last_slot, _res("23:00", "01:00")) is True
    # Ранее утро той же даты - другое время суток
    assert overlaps(last_slot, _res("00:00", "02:00")) is False


# --- compute_availability ---------------------------------------------------

def test_availability_marks_only_overlapping_slot() -> None:
    slots = generate_slots("15:00", "00:00", 2)
    result = compute_availability("2024-06-01", 3, slots, [_res("17:00", "19:00")])

    assert [(s.start_time, s.is_available) for s in result] == [
        ("15:00", True),
        ("17:00", False),
        ("19:00", True),
        ("21:00", True),
        ("23:00", True),
    ]


def test_availability_ignores_inactive_other_tables_and_dates() -> None:
    slots = generate_slots("15:00", "00:00", 2)
    reservations = [
        _res("15:00", "17:00", status="cancelled", id=1),
        _res("17:00", "19:00", status="completed", id=2),
        _res("19:00", "21:00", table_id=4, id=3),
        _res("21:00", "23:00", date="2024-06-02", id=4),
    ]

    result = compute_availability("2024-06-01", 3, slots, reservations)

    assert all(s.is_available for s in result)


def test_availability_does_not_mutate_input_slots() -> None:
    slots = generate_slots("15:00", "00:00", 2)
    compute_availability("2024-06-01", 3, slots, [_res("15:00", "23:00")])

    assert all(s.is_available for s in slots)


def test_reservation_spanning_several_slots_blocks_each() -> None:
    slots = generate_slots("15:00", "00:00", 2)
    result = compute_availability("2024-06-01", 3, slots, [_res("16:00", "20:00")])

    assert [s.is_available for s in result] == [False, False, False, True, True]


# --- admit_reservation ------------------------------------------------------

def test_admission_accepts_free_interval() -> None:
    table = Table(id=3, number=3)
    admission = admit_reservation(_interval("19:00", "21:00"), table, [_res("17:00", "19:00")])

    assert admission.accepted is True
    assert admission.conflict is None


def test_admission_rejects_conflict_with_existing_reservation() -> None:
    existing = _res("17:00", "19:00", id=42)
    admission = admit_reservation(_interval("18:00", "20:00"), Table(id=3, number=3), [existing])

    assert admission.accepted is False
    assert admission.reason == "conflict"
    assert admission.conflict is existing


@pytest.mark.parametrize("status", ["busy", "inactive"])
def test_admission_rejects_unavailable_table(status: str) -> None:
    admission = admit_reservation(_interval("19:00", "21:00"), Table(id=3, number=3, status=status), [])

    assert admission.accepted is False
    assert admission.reason == "table_unavailable"


def test_repeated_rejection_gives_same_answer() -> None:
    existing = [_res("17:00", "19:00")]
    candidate = _interval("18:00", "20:00")
    table = Table(id=3, number=3)

    first = admit_reservation(candidate, table, existing)
    second = admit_reservation(candidate, table, existing)

    assert first == second
    assert first.accepted is False
    assert len(existing) == 1


def test_availability_and_admission_agree_for_every_slot() -> None:
    table = Table(id=3, number=3)
    reservations = [_res("16:00", "18:00", id=1), _res("22:00", "00:00", id=2)]
    slots = generate_slots("15:00", "00:00", 2)

    for slot in compute_availability("2024-06-01", 3, slots, reservations):
        admission = admit_reservation(_interval(slot.start_time, slot.end_time), table, reservations)
        assert admission.accepted is slot.is_available, slot


def test_find_conflict_returns_first_overlap() -> None:
    first = _res("15:00", "17:00", id=1)
    second = _res("16:00", "18:00", id=2)

    assert find_conflict(_interval("16:00", "17:00"), [first, second]) is first
    assert find_conflict(_interval("18:00", "19:00"), [first, second]) is None


@pytest.mark.parametrize("duration", [1, 5, 23])
def test_availability_and_admission_agree_for_any_allowed_duration(duration: int) -> None:
    table = Table(id=3, number=3)
    reservations = [_res("16:00", "18:00", id=1), _res("23:00", "01:00", id=2)]
    slots = generate_slots("15:00", "00:00", duration)

    assert slots
    for slot in compute_availability("2024-06-01", 3, slots, reservations):
        admission = admit_reservation(_interval(slot.start_time, slot.end_time), table, reservations)
        assert admission.accepted is slot.is_available, slot
