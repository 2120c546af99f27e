"""
Ошибки бронирования, общие для бота и HTTP API
"""
from typing import Any, List, Optional


class BookingError(Exception):
    """Базовая ошибка бронирования"""


class ValidationError(BookingError, ValueError):
    """Некорректные входные данные"""

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ConflictError(BookingError):
    """Интервал пересекается с активной бронью"""

    def __init__(self, conflict, message: str = "Time slot already booked"):
        super().__init__(message)
        self.message = message
        self.conflict = conflict


class TableUnavailableError(BookingError):
    """Стол недоступен для бронирования (busy / inactive)"""

    def __init__(self, table, message: str = "Table is not available"):
        super().__init__(message)
        self.message = message
        self.table = table


class InvalidTransitionError(BookingError):
    """Недопустимая смена статуса брони"""

    def __init__(self, current: str, requested: str):
        self.message = f"Cannot change reservation status from {current} to {requested}"
        super().__init__(self.message)
        self.current = current
        self.requested = requested


class NotFoundError(BookingError):
    """Объект не найден"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PermissionDeniedError(BookingError):
    """Недостаточно прав"""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)
        self.message = message


class AuthenticationError(BookingError):
    """Пользователь не опознан"""

    def __init__(self, message: str = "Unauthorized: Telegram ID not provided"):
        super().__init__(message)
        self.message = message
