"""
Проверки прав: единая точка для бота и HTTP API
"""
from config import settings
from database.models import User, Reservation
from utils.exceptions import PermissionDeniedError


def is_admin(user: User) -> bool:
    """Администратор: флаг в БД или Telegram ID из ADMIN_IDS"""
    if user is None:
        return False
    return bool(user.is_admin) or settings.is_admin(user.telegram_id)


def require_admin(user: User) -> None:
    if not is_admin(user):
        raise PermissionDeniedError("Forbidden: Admin access required")


def can_modify_reservation(user: User, reservation: Reservation) -> bool:
    """Бронь может менять её владелец или администратор"""
    return reservation.user_id == user.id or is_admin(user)


def require_reservation_access(user: User, reservation: Reservation) -> None:
    if not can_modify_reservation(user, reservation):
        raise PermissionDeniedError("Forbidden: Cannot modify another user's reservation")
