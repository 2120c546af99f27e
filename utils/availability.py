"""
Расчёт временных слотов и проверка пересечения броней.

Все функции чистые: получают настройки клуба и список броней явно,
ничего не читают из БД и ничего не кешируют.
"""
from dataclasses import dataclass, asdict
from typing import Iterable, List, Optional

from database.models import RESERVATION_ACTIVE
from utils.time_utils import format_hour, interval_minutes, parse_hour, to_minutes

# Слот в 24 часа совпал бы началом и концом
MAX_SLOT_DURATION = 23


@dataclass
class TimeSlot:
    """Временной слот [start_time, end_time)"""
    start_time: str
    end_time: str
    is_available: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Admission:
    """Решение о допуске брони"""
    accepted: bool
    reason: Optional[str] = None  # table_unavailable | conflict
    conflict: Optional[object] = None

    @classmethod
    def accept(cls) -> 'Admission':
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str, conflict=None) -> 'Admission':
        return cls(accepted=False, reason=reason, conflict=conflict)


def generate_slots(opening_time: str, closing_time: str, slot_duration: int) -> List[TimeSlot]:
    """
    Генерация слотов на день.

    Слоты начинаются с целого часа открытия и идут с шагом slot_duration
    до целого часа закрытия; закрытие в 00 считается 24. Конец слота
    берётся по модулю 24, поэтому последний слот может перейти через
    полночь ('23:00'-'01:00') и выйти за время закрытия.
    """
    if not 0 < slot_duration <= MAX_SLOT_DURATION:
        raise ValueError(f"slot_duration должен быть от 1 до {MAX_SLOT_DURATION}: {slot_duration}")

    current_hour = parse_hour(opening_time)
    end_hour = parse_hour(closing_time) or 24

    slots = []
    while current_hour < end_hour:
        slots.append(TimeSlot(
            start_time=format_hour(current_hour),
            end_time=format_hour((current_hour + slot_duration) % 24),
        ))
        current_hour += slot_duration

    return slots


def overnight_limit(slots: Iterable[TimeSlot]) -> int:
    """
    До какой минуты следующих суток может длиться бронь через полночь.
    Это конец последнего слота, перешедшего через полночь; если такого
    слота нет, бронь может закончиться только ровно в '00:00'.
    """
    return max(
        (to_minutes(s.end_time) for s in slots if to_minutes(s.end_time) <= to_minutes(s.start_time)),
        default=0,
    )


def fits_overnight(start_time: str, end_time: str, slots: List[TimeSlot]) -> bool:
    """
    Допустима ли бронь через полночь (конец раньше начала): она начинается
    не раньше первого слота и заканчивается не позже overnight_limit(slots).
    """
    opening = to_minutes(slots[0].start_time) if slots else 0
    return to_minutes(start_time) >= opening and to_minutes(end_time) <= overnight_limit(slots)


def overlaps(a, b) -> bool:
    """
    Пересекаются ли полуоткрытые интервалы a и b.
    Соприкасающиеся интервалы ('10:00'-'12:00' и '12:00'-'14:00') не пересекаются.
    """
    a_start, a_end = interval_minutes(a.start_time, a.end_time)
    b_start, b_end = interval_minutes(b.start_time, b.end_time)
    return a_start < b_end and b_start < a_end


def active_reservations(reservations: Iterable, table_id: int, date: Optional[str] = None) -> list:
    """Активные брони стола (и даты, если она задана)"""
    return [
        r for r in reservations
        if r.table_id == table_id
        and r.status == RESERVATION_ACTIVE
        and (date is None or getattr(r, 'date', date) == date)
    ]


def find_conflict(candidate, reservations: Iterable):
    """Первая бронь, пересекающаяся с candidate, или None"""
    for reservation in reservations:
        if overlaps(candidate, reservation):
            return reservation
    return None


def compute_availability(date: str, table_id: int, slots: Iterable[TimeSlot],
                         reservations: Iterable) -> List[TimeSlot]:
    """Отметка занятых слотов стола на дату; порядок слотов сохраняется"""
    blocking = active_reservations(reservations, table_id, date)
    return [
        TimeSlot(
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_available=find_conflict(slot, blocking) is None,
        )
        for slot in slots
    ]


def admit_reservation(candidate, table, existing: Iterable) -> Admission:
    """
    Допуск новой брони.
    existing - активные брони того же стола на ту же дату.
    """
    if not table.is_available:
        return Admission.reject('table_unavailable')

    conflict = find_conflict(candidate, existing)
    if conflict is not None:
        return Admission.reject('conflict', conflict)

    return Admission.accept()
