"""
Обработчики команд администраторов
"""
import logging
from datetime import datetime
from typing import List, Optional

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import Message, CallbackQuery

from database.models import User
from database.repository import (
    ClubSettingsRepository, ReservationRepository, TableRepository, UserRepository,
)
from filters.is_admin import IsAdmin
from keyboards.keyboards import get_admin_keyboard, get_admin_tables_keyboard, next_table_status
from utils import booking
from utils.availability import MAX_SLOT_DURATION, generate_slots
from utils.exceptions import BookingError
from utils.notifications import notify_admins, reservation_text
from utils.time_utils import is_valid_time

logger = logging.getLogger(__name__)
router = Router()
router.message.filter(IsAdmin())
router.callback_query.filter(IsAdmin())

MESSAGE_LIMIT = 4000


def split_text(blocks: List[str], header: str, footer: str = "") -> List[str]:
    """Разбиение длинного списка на сообщения до MESSAGE_LIMIT символов"""
    parts = []
    current = header
    for block in blocks:
        if len(current) + len(block) > MESSAGE_LIMIT:
            parts.append(current)
            current = block
        else:
            current += block
    parts.append(current + footer)
    return parts


@router.message(F.text == "⚙️ Админ-панель")
async def admin_panel(message: Message):
    """Открытие админ-панели"""
    await message.answer(
        "⚙️ Админ-панель\n\nВыберите действие:",
        reply_markup=get_admin_keyboard()
    )


@router.callback_query(F.data == "admin_panel")
async def callback_admin_panel(callback: CallbackQuery):
    """Возврат в админ-панель"""
    await callback.message.edit_text(
        "⚙️ Админ-панель\n\nВыберите действие:",
        reply_markup=get_admin_keyboard()
    )
    await callback.answer()


@router.message(Command("today"))
async def cmd_today(message: Message):
    """Команда /today - список броней на сегодня"""
    await show_today_bookings(message)


@router.callback_query(F.data == "admin_today")
async def callback_today(callback: CallbackQuery):
    """Callback для броней на сегодня"""
    await show_today_bookings(callback.message)
    await callback.answer()


async def show_today_bookings(message: Message):
    """Показать брони на сегодня"""
    today = datetime.now().strftime("%Y-%m-%d")
    reservations = [r for r in ReservationRepository.get_reservations_by_date(today) if r.is_active]

    if not reservations:
        await message.answer("📋 На сегодня нет бронирований")
        return

    tables = {table.id: table for table in TableRepository.get_all_tables()}
    blocks = []
    for reservation in reservations:
        owner = UserRepository.get_user_by_id(reservation.user_id)
        blocks.append(
            f"🔹 Бронь #{reservation.id}\n"
            f"{reservation_text(reservation, tables.get(reservation.table_id), owner)}\n\n"
        )

    for part in split_text(blocks, "📋 Бронирования на сегодня:\n\n", f"Всего броней: {len(reservations)}"):
        await message.answer(part)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, command: CommandObject, user: Optional[User] = None):
    """Команда /cancel <id> - отмена брони администратором"""
    if user is None:
        await message.answer("⚠️ Сначала зарегистрируйтесь: /start")
        return

    if not command.args:
        await message.answer(
            "⚠️ Использование: /cancel <id>\n\n"
            "Пример: /cancel 123"
        )
        return

    try:
        reservation_id = int(command.args.split()[0])
    except ValueError:
        await message.answer("⚠️ ID брони должен быть числом")
        return

    try:
        reservation = booking.cancel_booking(user, reservation_id)
    except BookingError as e:
        await message.answer(f"⚠️ Не удалось отменить бронирование #{reservation_id}: {e}")
        return

    table = TableRepository.get_table_by_id(reservation.table_id)
    owner = UserRepository.get_user_by_id(reservation.user_id)
    details = reservation_text(reservation, table, owner)

    await message.answer(f"✅ Бронирование #{reservation_id} успешно отменено\n\n{details}")

    # Уведомление пользователя
    if owner and owner.id != user.id:
        try:
            await message.bot.send_message(
                int(owner.telegram_id),
                f"❌ Ваше бронирование #{reservation_id} было отменено администратором\n\n"
                f"{reservation_text(reservation, table)}\n\n"
                f"По вопросам обращайтесь к администрации."
            )
        except Exception as e:
            logger.error(f"Не удалось уведомить пользователя {owner.telegram_id}: {e}")

    # Уведомление других администраторов
    await notify_admins(
        message.bot,
        f"ℹ️ Администратор {user.name} отменил бронирование #{reservation_id}\n\n{details}",
        exclude=message.from_user.id
    )


@router.callback_query(F.data == "admin_tables")
async def callback_tables(callback: CallbackQuery):
    """Список столов со статусами"""
    await callback.message.edit_text(
        "🎱 Столы\n\n🟢 доступен  🟡 занят  ⚫️ не работает\n"
        "Нажмите на стол, чтобы сменить статус:",
        reply_markup=get_admin_tables_keyboard(TableRepository.get_all_tables())
    )
    await callback.answer()


@router.callback_query(F.data.startswith("table_status:"))
async def callback_table_status(callback: CallbackQuery):
    """Переключение статуса стола"""
    table_id = int(callback.data.split(":")[1])
    table = TableRepository.get_table_by_id(table_id)

    if table is None:
        await callback.answer("Стол не найден", show_alert=True)
        return

    table = TableRepository.update_table(table_id, status=next_table_status(table.status))
    logger.info(f"Администратор {callback.from_user.id} сменил статус стола №{table.number} на {table.status}")

    await callback.message.edit_reply_markup(
        reply_markup=get_admin_tables_keyboard(TableRepository.get_all_tables())
    )
    await callback.answer(f"Стол №{table.number}: {table.status}")


@router.callback_query(F.data == "admin_hours")
async def callback_hours(callback: CallbackQuery):
    """Текущий режим работы"""
    club = ClubSettingsRepository.get_settings()
    slots = generate_slots(club.opening_time, club.closing_time, club.slot_duration)

    await callback.message.answer(
        f"🕐 {club.club_name}\n\n"
        f"Открытие: {club.opening_time}\n"
        f"Закрытие: {club.closing_time}\n"
        f"Длительность слота: {club.slot_duration} ч\n"
        f"Слоты: {', '.join(f'{s.start_time}-{s.end_time}' for s in slots) or 'нет'}\n\n"
        f"Изменить: /hours <открытие> <закрытие> <часов в слоте>\n"
        f"Пример: /hours 15:00 00:00 2"
    )
    await callback.answer()


@router.message(Command("hours"))
async def cmd_hours(message: Message, command: CommandObject):
    """Команда /hours HH:MM HH:MM N - изменение режима работы"""
    args = (command.args or "").split()
    if len(args) != 3 or not is_valid_time(args[0]) or not is_valid_time(args[1]) or not args[2].isdigit():
        await message.answer(
            "⚠️ Использование: /hours <открытие> <закрытие> <часов в слоте>\n\n"
            "Пример: /hours 15:00 00:00 2"
        )
        return

    slot_duration = int(args[2])
    if not 0 < slot_duration <= MAX_SLOT_DURATION:
        await message.answer(f"⚠️ Длительность слота должна быть от 1 до {MAX_SLOT_DURATION} часов")
        return

    club = ClubSettingsRepository.update_settings(
        opening_time=args[0], closing_time=args[1], slot_duration=slot_duration
    )
    logger.info(
        f"Администратор {message.from_user.id} изменил режим работы: "
        f"{club.opening_time}-{club.closing_time}, слот {club.slot_duration} ч"
    )
    await message.answer(
        f"✅ Режим работы обновлён: {club.opening_time}-{club.closing_time}, "
        f"слот {club.slot_duration} ч"
    )
