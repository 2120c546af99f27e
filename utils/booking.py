"""
Сценарии бронирования: загрузка данных, вызов расчёта доступности,
проверка прав и смена статусов.
"""
import logging
from typing import List, Optional, Tuple

from config import settings
from database.models import (
    User, Reservation,
    RESERVATION_CANCELLED, RESERVATION_COMPLETED, RESERVATION_STATUSES,
)
from database.repository import (
    ClubSettingsRepository, ReservationRepository, TableRepository, UserRepository,
)
from utils.availability import TimeSlot, compute_availability, fits_overnight, generate_slots, overnight_limit
from utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from utils.permissions import is_admin, require_reservation_access
from utils.time_utils import is_valid_date, is_valid_time, to_minutes

logger = logging.getLogger(__name__)


def register_user(telegram_id, name: str, phone: str) -> Tuple[User, bool]:
    """
    Регистрация пользователя.
    Возвращает (пользователь, создан_ли); повторная регистрация не меняет профиль.
    """
    existing = UserRepository.get_by_telegram_id(telegram_id)
    if existing:
        return existing, False

    user = UserRepository.create_user(User(
        id=None,
        telegram_id=str(telegram_id),
        name=name.strip(),
        phone=phone.strip(),
        is_admin=settings.is_admin(telegram_id)
    ))
    logger.info(f"Зарегистрирован пользователь #{user.id} (telegram_id={user.telegram_id})")
    return user, True


def _club_slots() -> List[TimeSlot]:
    club = ClubSettingsRepository.get_settings()
    return generate_slots(club.opening_time, club.closing_time, club.slot_duration)


def get_time_slots(date: str, table_id: int) -> List[TimeSlot]:
    """Слоты стола на дату с отметкой доступности"""
    if TableRepository.get_table_by_id(table_id) is None:
        raise NotFoundError("Table not found")

    reservations = ReservationRepository.get_active_for_table(table_id, date)
    return compute_availability(date, table_id, _club_slots(), reservations)


def validate_interval(date: str, start_time: str, end_time: str, slots: List[TimeSlot] = ()) -> None:
    """
    Проверка формата даты и интервала.
    Конец раньше начала допустим только для брони через полночь
    в пределах слотов клуба (см. fits_overnight).
    """
    errors = []
    if not is_valid_date(date):
        errors.append({"field": "date", "message": "expected YYYY-MM-DD"})
    for field, value in (("start_time", start_time), ("end_time", end_time)):
        if not is_valid_time(value):
            errors.append({"field": field, "message": "expected HH:MM"})
    if not errors:
        if start_time == end_time:
            errors.append({"field": "end_time", "message": "must differ from start_time"})
        elif to_minutes(end_time) < to_minutes(start_time) and not fits_overnight(start_time, end_time, slots):
            errors.append({"field": "end_time", "message": "must be after start_time"})

    if errors:
        raise ValidationError("Invalid reservation interval", errors)


def create_booking(user: User, table_id: int, date: str, start_time: str,
                   end_time: str, comment: Optional[str] = None) -> Reservation:
    """
    Создание брони от имени пользователя.
    ConflictError / TableUnavailableError поднимаются из репозитория.
    """
    validate_interval(date, start_time, end_time, _club_slots())

    if TableRepository.get_table_by_id(table_id) is None:
        raise NotFoundError("Table not found")

    reservation = ReservationRepository.create_reservation(Reservation(
        id=None,
        user_id=user.id,
        table_id=table_id,
        date=date,
        start_time=start_time,
        end_time=end_time,
        comment=comment or None
    ))
    logger.info(
        f"Создана бронь #{reservation.id}: стол {table_id}, {date} "
        f"{start_time}-{end_time}, пользователь #{user.id}"
    )
    return reservation


def get_user_reservation(user: User, reservation_id: int) -> Reservation:
    """Бронь, доступная пользователю (своя или любая для администратора)"""
    reservation = ReservationRepository.get_reservation_by_id(reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    require_reservation_access(user, reservation)
    return reservation


def update_booking(user: User, reservation_id: int, status: Optional[str] = None,
                   comment: Optional[str] = None) -> Reservation:
    """
    Смена статуса/комментария брони.
    Владелец может отменить бронь и поменять комментарий,
    завершить бронь может только администратор.
    """
    reservation = get_user_reservation(user, reservation_id)

    if status is not None:
        if status not in RESERVATION_STATUSES:
            raise ValidationError("Invalid reservation status",
                                  [{"field": "status", "message": f"one of {', '.join(RESERVATION_STATUSES)}"}])
        if status == RESERVATION_COMPLETED and not is_admin(user):
            raise PermissionDeniedError("Forbidden: Only administrators can complete reservations")

    updated = ReservationRepository.update_reservation(reservation.id, status=status, comment=comment)
    if status is not None and status != reservation.status:
        logger.info(f"Бронь #{reservation.id}: {reservation.status} -> {updated.status} (пользователь #{user.id})")
    return updated


def cancel_booking(user: User, reservation_id: int) -> Reservation:
    """Отмена брони владельцем или администратором"""
    return update_booking(user, reservation_id, status=RESERVATION_CANCELLED)


def delete_booking(user: User, reservation_id: int) -> None:
    """Удаление брони"""
    reservation = get_user_reservation(user, reservation_id)
    ReservationRepository.delete_reservation(reservation.id)
    logger.info(f"Бронь #{reservation.id} удалена пользователем #{user.id}")


def list_bookings(user: User, include_all: bool = False) -> List[Reservation]:
    """Брони пользователя; администратор может получить все"""
    if include_all and is_admin(user):
        return ReservationRepository.get_all_reservations()
    return ReservationRepository.get_user_reservations(user.id)
