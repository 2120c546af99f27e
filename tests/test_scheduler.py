from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

from database.repository import ReservationRepository
from utils import booking
from utils.scheduler import complete_reservations_job


async def test_job_completes_elapsed_reservations(user) -> None:
    past = booking.create_booking(user, 1, "2024-06-01", "15:00", "17:00")
    upcoming = booking.create_booking(user, 1, "2024-06-01", "21:00", "23:00")

    await complete_reservations_job(datetime(2024, 6, 1, 20, 0))

    assert ReservationRepository.get_reservation_by_id(past.id).status == "completed"
    assert ReservationRepository.get_reservation_by_id(upcoming.id).status == "active"


async def test_job_leaves_cancelled_reservations_alone(user) -> None:
    cancelled = booking.cancel_booking(user, booking.create_booking(user, 1, "2024-06-01", "15:00", "17:00").id)

    await complete_reservations_job(datetime(2024, 6, 2, 12, 0))

    assert ReservationRepository.get_reservation_by_id(cancelled.id).status == "cancelled"


async def test_job_logs_and_survives_errors(db, caplog) -> None:
    with patch.object(ReservationRepository, "complete_elapsed", side_effect=RuntimeError("db is gone")):
        await complete_reservations_job(datetime(2024, 6, 1, 20, 0))

    assert "db is gone" in caplog.text
