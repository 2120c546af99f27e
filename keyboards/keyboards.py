"""
Клавиатуры для Telegram бота
"""
from datetime import date
from typing import List

from aiogram.types import (
    InlineKeyboardMarkup, ReplyKeyboardMarkup, KeyboardButton, WebAppInfo,
)
from aiogram.utils.keyboard import InlineKeyboardBuilder

from config import settings
from database.models import Table, Reservation, TABLE_STATUSES
from utils.availability import TimeSlot
from utils.time_utils import format_date, format_reservation_date

TABLE_STATUS_LABELS = {
    'available': '🟢',
    'busy': '🟡',
    'inactive': '⚫️',
}


def get_main_menu_keyboard(is_admin: bool = False) -> ReplyKeyboardMarkup:
    """Главное меню"""
    buttons = [
        [KeyboardButton(text="📅 Забронировать стол")],
        [KeyboardButton(text="📋 Мои бронирования")],
    ]

    if settings.WEBAPP_URL:
        buttons.insert(0, [KeyboardButton(text="🎱 Открыть клуб", web_app=WebAppInfo(url=settings.WEBAPP_URL))])

    if is_admin:
        buttons.append([KeyboardButton(text="⚙️ Админ-панель")])

    return ReplyKeyboardMarkup(keyboard=buttons, resize_keyboard=True)


def get_phone_keyboard() -> ReplyKeyboardMarkup:
    """Клавиатура для отправки телефона"""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text="📱 Отправить телефон", request_contact=True)]],
        resize_keyboard=True
    )


def get_dates_keyboard(dates: List[date]) -> InlineKeyboardMarkup:
    """Клавиатура выбора даты"""
    builder = InlineKeyboardBuilder()

    for day in dates:
        builder.button(
            text=format_date(day),
            callback_data=f"date:{day.strftime('%Y-%m-%d')}"
        )

    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_tables_keyboard(tables: List[Table]) -> InlineKeyboardMarkup:
    """Клавиатура выбора стола (только доступные столы)"""
    builder = InlineKeyboardBuilder()

    for table in tables:
        if table.is_available:
            builder.button(text=f"🎱 Стол №{table.number}", callback_data=f"table:{table.id}")

    builder.button(text="◀️ Назад", callback_data="back_to_date")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(3)

    return builder.as_markup()


def get_slots_keyboard(slots: List[TimeSlot]) -> InlineKeyboardMarkup:
    """Клавиатура выбора слота; занятые слоты не показываются"""
    builder = InlineKeyboardBuilder()

    for slot in slots:
        if slot.is_available:
            builder.button(
                text=f"{slot.start_time}-{slot.end_time}",
                callback_data=f"slot:{slot.start_time}-{slot.end_time}"
            )

    builder.button(text="◀️ Назад", callback_data="back_to_table")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(2)

    return builder.as_markup()


def get_comment_keyboard() -> InlineKeyboardMarkup:
    """Пропуск комментария"""
    builder = InlineKeyboardBuilder()
    builder.button(text="➡️ Без комментария", callback_data="skip_comment")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)
    return builder.as_markup()


def get_confirmation_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура подтверждения бронирования"""
    builder = InlineKeyboardBuilder()

    builder.button(text="✅ Подтвердить", callback_data="confirm_booking")
    builder.button(text="◀️ Изменить", callback_data="back_to_slot")
    builder.button(text="❌ Отмена", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_bookings_keyboard(reservations: List[Reservation]) -> InlineKeyboardMarkup:
    """Клавиатура списка бронирований пользователя"""
    builder = InlineKeyboardBuilder()

    for reservation in reservations:
        text = f"🗓 {format_reservation_date(reservation.date)} {reservation.start_time}-{reservation.end_time}"
        builder.button(text=text, callback_data=f"show_booking:{reservation.id}")

    builder.button(text="🏠 Главное меню", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_booking_actions_keyboard(reservation_id: int) -> InlineKeyboardMarkup:
    """Клавиатура действий с бронированием"""
    builder = InlineKeyboardBuilder()

    builder.button(text="🗑 Отменить бронь", callback_data=f"cancel_booking:{reservation_id}")
    builder.button(text="◀️ Назад", callback_data="my_bookings")
    builder.adjust(1)

    return builder.as_markup()


def get_admin_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура админ-панели"""
    builder = InlineKeyboardBuilder()

    builder.button(text="📋 Брони на сегодня", callback_data="admin_today")
    builder.button(text="🎱 Столы", callback_data="admin_tables")
    builder.button(text="🕐 Режим работы", callback_data="admin_hours")
    builder.button(text="🏠 Главное меню", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_admin_tables_keyboard(tables: List[Table]) -> InlineKeyboardMarkup:
    """Столы со статусами; нажатие переключает статус по кругу"""
    builder = InlineKeyboardBuilder()

    for table in tables:
        builder.button(
            text=f"{TABLE_STATUS_LABELS.get(table.status, '')} Стол №{table.number}",
            callback_data=f"table_status:{table.id}"
        )

    builder.button(text="◀️ Назад", callback_data="admin_panel")
    builder.adjust(3)

    return builder.as_markup()


def next_table_status(status: str) -> str:
    """available -> busy -> inactive -> available"""
    index = TABLE_STATUSES.index(status) if status in TABLE_STATUSES else -1
    return TABLE_STATUSES[(index + 1) % len(TABLE_STATUSES)]
