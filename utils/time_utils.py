"""
Утилиты для работы со временем и датами
"""
import re
from datetime import date as date_type, datetime, timedelta
from typing import List, Optional

from config import settings

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')
_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def is_valid_time(value) -> bool:
    """Строка в формате HH:MM (24 часа, с ведущими нулями)"""
    return isinstance(value, str) and bool(_TIME_RE.match(value))


def is_valid_date(value) -> bool:
    """Строка в формате YYYY-MM-DD с реальной календарной датой"""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_hour(value: str) -> int:
    """Целый час из строки HH:MM"""
    return int(value.split(":")[0])


def to_minutes(value: str) -> int:
    """Минута суток из строки HH:MM"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_hour(hour: int) -> str:
    """Час -> 'HH:00'"""
    return f"{hour:02d}:00"


def interval_minutes(start_time: str, end_time: str) -> tuple:
    """
    Интервал [start, end) в минутах от начала дня брони.
    Если конец не позже начала, интервал заканчивается на следующий день
    (например, '23:00'-'01:00' или '22:00'-'00:00').
    """
    start = to_minutes(start_time)
    end = to_minutes(end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def reservation_end(date: str, start_time: str, end_time: str) -> datetime:
    """Момент окончания брони как datetime"""
    day = datetime.strptime(date, "%Y-%m-%d")
    _, end = interval_minutes(start_time, end_time)
    return day + timedelta(minutes=end)


def get_available_dates(today: Optional[date_type] = None) -> List[date_type]:
    """Получение списка доступных дат для бронирования"""
    today = today or datetime.now().date()
    return [today + timedelta(days=i) for i in range(settings.MAX_BOOKING_DAYS)]


def format_date(value: date_type, today: Optional[date_type] = None) -> str:
    """Форматирование даты для кнопок"""
    weekdays = ['Пн', 'Вт', 'Ср', 'Чт', 'Пт', 'Сб', 'Вс']
    weekday = weekdays[value.weekday()]

    today = today or datetime.now().date()
    if value == today:
        return f"Сегодня ({weekday})"
    elif value == today + timedelta(days=1):
        return f"Завтра ({weekday})"
    else:
        return f"{value.strftime('%d.%m')} ({weekday})"


def format_reservation_date(value: str) -> str:
    """'2024-06-01' -> '01.06.2024'"""
    return datetime.strptime(value, "%Y-%m-%d").strftime("%d.%m.%Y")
