"""
Модели данных для работы с БД
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# Статусы стола (управляются администратором, не зависят от броней)
TABLE_AVAILABLE = 'available'
TABLE_BUSY = 'busy'
TABLE_INACTIVE = 'inactive'
TABLE_STATUSES = (TABLE_AVAILABLE, TABLE_BUSY, TABLE_INACTIVE)

# Статусы брони
RESERVATION_ACTIVE = 'active'
RESERVATION_COMPLETED = 'completed'
RESERVATION_CANCELLED = 'cancelled'
RESERVATION_STATUSES = (RESERVATION_ACTIVE, RESERVATION_COMPLETED, RESERVATION_CANCELLED)

# Допустимые переходы: из завершённых и отменённых броней выхода нет
RESERVATION_TRANSITIONS = {
    RESERVATION_ACTIVE: (RESERVATION_COMPLETED, RESERVATION_CANCELLED),
    RESERVATION_COMPLETED: (),
    RESERVATION_CANCELLED: (),
}


@dataclass
class User:
    """Модель пользователя"""
    id: Optional[int]
    telegram_id: str
    name: str
    phone: str
    is_admin: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "telegram_id": self.telegram_id,
            "name": self.name,
            "phone": self.phone,
            "is_admin": self.is_admin,
        }


@dataclass
class Table:
    """Модель стола"""
    id: Optional[int]
    number: int
    status: str = TABLE_AVAILABLE  # available, busy, inactive

    @property
    def is_available(self) -> bool:
        return self.status == TABLE_AVAILABLE

    def to_dict(self) -> dict:
        return {"id": self.id, "number": self.number, "status": self.status}


@dataclass
class Reservation:
    """Модель бронирования"""
    id: Optional[int]
    user_id: int
    table_id: int
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str  # HH:MM, интервал [start_time, end_time)
    status: str = RESERVATION_ACTIVE  # active, completed, cancelled
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == RESERVATION_ACTIVE

    def can_transition_to(self, status: str) -> bool:
        """Разрешён ли переход в указанный статус"""
        return status in RESERVATION_TRANSITIONS.get(self.status, ())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "table_id": self.table_id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status,
            "comment": self.comment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ClubSettings:
    """Настройки клуба (в БД всегда одна запись)"""
    id: int
    opening_time: str
    closing_time: str
    slot_duration: int  # в часах
    club_name: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "opening_time": self.opening_time,
            "closing_time": self.closing_time,
            "slot_duration": self.slot_duration,
            "club_name": self.club_name,
        }
