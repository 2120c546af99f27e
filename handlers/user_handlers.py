"""
Обработчики команд и сообщений пользователей
"""
import logging
from typing import Optional

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from database.models import User
from database.repository import TableRepository
from states.booking_states import BookingStates, RegistrationStates
from keyboards.keyboards import (
    get_main_menu_keyboard, get_phone_keyboard, get_dates_keyboard,
    get_tables_keyboard, get_slots_keyboard, get_comment_keyboard,
    get_confirmation_keyboard, get_bookings_keyboard, get_booking_actions_keyboard,
)
from utils import booking
from utils.exceptions import BookingError, ConflictError, NotFoundError, TableUnavailableError
from utils.notifications import notify_admins, reservation_text
from utils.permissions import is_admin
from utils.time_utils import get_available_dates, format_reservation_date

logger = logging.getLogger(__name__)
router = Router()

# Команды во время ввода комментария уходят своим обработчикам
COMMENT_TEXT = F.text & ~F.text.startswith("/")


async def ask_registration(message: Message, state: FSMContext):
    """Запрос телефона у незарегистрированного пользователя"""
    await state.set_state(RegistrationStates.entering_phone)
    await message.answer(
        "📱 Для бронирования нужен ваш контактный телефон.\n"
        "Нажмите кнопку ниже или введите номер вручную:",
        reply_markup=get_phone_keyboard()
    )


@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext, user: Optional[User] = None):
    """Обработка команды /start"""
    await state.clear()

    await message.answer(
        f"👋 Добро пожаловать в бот бронирования бильярдных столов!\n\n"
        f"Здесь вы можете:\n"
        f"📅 Забронировать стол на удобное время\n"
        f"📋 Просмотреть свои бронирования\n"
        f"🗑 Отменить бронирование"
    )

    if user is None:
        await ask_registration(message, state)
        return

    await message.answer("Выберите действие:", reply_markup=get_main_menu_keyboard(is_admin(user)))


@router.message(RegistrationStates.entering_phone, F.contact)
async def process_contact(message: Message, state: FSMContext):
    """Обработка контакта"""
    await register_with_phone(message, state, message.contact.phone_number)


@router.message(RegistrationStates.entering_phone, F.text)
async def process_phone_text(message: Message, state: FSMContext):
    """Обработка текстового ввода телефона"""
    phone = message.text.strip()

    # Простая валидация
    if len(phone) < 10:
        await message.answer("⚠️ Введите корректный номер телефона")
        return

    await register_with_phone(message, state, phone)


async def register_with_phone(message: Message, state: FSMContext, phone: str):
    """Регистрация по номеру телефона"""
    name = message.from_user.full_name or message.from_user.username or "Гость"
    user, _ = booking.register_user(message.from_user.id, name, phone)
    await state.clear()

    await message.answer(
        f"✅ Готово, {user.name}! Теперь можно бронировать столы.",
        reply_markup=get_main_menu_keyboard(is_admin(user))
    )


@router.message(F.text == "📅 Забронировать стол")
async def start_booking(message: Message, state: FSMContext, user: Optional[User] = None):
    """Начало процесса бронирования"""
    await state.clear()

    if user is None:
        await ask_registration(message, state)
        return

    await message.answer(
        "📅 Выберите дату:",
        reply_markup=get_dates_keyboard(get_available_dates())
    )
    await state.set_state(BookingStates.choosing_date)


@router.callback_query(F.data.startswith("date:"), BookingStates.choosing_date)
async def process_date(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора даты"""
    selected_date = callback.data.split(":")[1]
    await state.update_data(selected_date=selected_date)

    await callback.message.edit_text(
        "🎱 Выберите стол:",
        reply_markup=get_tables_keyboard(TableRepository.get_all_tables())
    )
    await state.set_state(BookingStates.choosing_table)
    await callback.answer()


@router.callback_query(F.data.startswith("table:"), BookingStates.choosing_table)
async def process_table(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора стола"""
    table_id = int(callback.data.split(":")[1])
    data = await state.get_data()

    try:
        slots = booking.get_time_slots(data['selected_date'], table_id)
    except NotFoundError:
        await callback.answer("Стол не найден", show_alert=True)
        return
    free = [slot for slot in slots if slot.is_available]

    logger.info(f"Свободные слоты стола #{table_id} на {data['selected_date']}: {len(free)} из {len(slots)}")

    if not free:
        await callback.answer("На эту дату у стола нет свободного времени", show_alert=True)
        return

    await state.update_data(table_id=table_id)
    await callback.message.edit_text(
        "🕐 Выберите время:",
        reply_markup=get_slots_keyboard(slots)
    )
    await state.set_state(BookingStates.choosing_slot)
    await callback.answer()


@router.callback_query(F.data.startswith("slot:"), BookingStates.choosing_slot)
async def process_slot(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора слота"""
    start_time, end_time = callback.data.split(":", 1)[1].split("-")
    await state.update_data(start_time=start_time, end_time=end_time)

    await callback.message.edit_text(
        "💬 Добавьте комментарий к брони (например, количество гостей) или пропустите:",
        reply_markup=get_comment_keyboard()
    )
    await state.set_state(BookingStates.entering_comment)
    await callback.answer()


@router.callback_query(F.data == "skip_comment", BookingStates.entering_comment)
async def skip_comment(callback: CallbackQuery, state: FSMContext):
    """Бронь без комментария"""
    await state.update_data(comment=None)
    await show_confirmation(callback.message, state, edit=True)
    await callback.answer()


@router.message(BookingStates.entering_comment, COMMENT_TEXT)
async def process_comment(message: Message, state: FSMContext):
    """Обработка комментария"""
    await state.update_data(comment=message.text.strip()[:500])
    await show_confirmation(message, state)


async def show_confirmation(message: Message, state: FSMContext, edit: bool = False):
    """Формирование подтверждения"""
    data = await state.get_data()
    table = TableRepository.get_table_by_id(data['table_id'])
    table_name = f"№{table.number}" if table else "Неизвестный стол"

    text = (
        f"✅ Подтверждение бронирования:\n\n"
        f"📅 Дата: {format_reservation_date(data['selected_date'])}\n"
        f"🕐 Время: {data['start_time']}-{data['end_time']}\n"
        f"🎱 Стол: {table_name}\n"
    )
    if data.get('comment'):
        text += f"💬 {data['comment']}\n"
    text += "\nПодтвердите бронирование:"

    if edit:
        await message.edit_text(text, reply_markup=get_confirmation_keyboard())
    else:
        await message.answer(text, reply_markup=get_confirmation_keyboard())
    await state.set_state(BookingStates.confirming)


@router.callback_query(F.data == "confirm_booking", BookingStates.confirming)
async def confirm_booking(callback: CallbackQuery, state: FSMContext, user: Optional[User] = None):
    """Подтверждение и создание бронирования"""
    data = await state.get_data()

    if user is None:
        await state.clear()
        await callback.answer("Сначала зарегистрируйтесь: /start", show_alert=True)
        return

    try:
        reservation = booking.create_booking(
            user, data['table_id'], data['selected_date'],
            data['start_time'], data['end_time'], data.get('comment')
        )
    except ConflictError:
        await callback.message.edit_text(
            "⚠️ К сожалению, это время уже заняли. Попробуйте выбрать другой слот."
        )
        await callback.answer()
        await state.clear()
        return
    except TableUnavailableError:
        await callback.message.edit_text("⚠️ Стол сейчас недоступен для бронирования.")
        await callback.answer()
        await state.clear()
        return

    table = TableRepository.get_table_by_id(reservation.table_id)
    await notify_admins(
        callback.bot,
        f"📌 Новое бронирование #{reservation.id}\n\n" + reservation_text(reservation, table, user)
    )

    await callback.message.edit_text(
        f"✅ Бронирование успешно создано!\n\n"
        f"📋 Номер брони: #{reservation.id}\n"
        f"{reservation_text(reservation, table)}\n\n"
        f"Ждём вас! 🎱"
    )
    await callback.message.answer(
        "Выберите действие:",
        reply_markup=get_main_menu_keyboard(is_admin(user))
    )

    await state.clear()
    await callback.answer()


@router.message(F.text == "📋 Мои бронирования")
async def my_bookings(message: Message, state: FSMContext, user: Optional[User] = None):
    """Просмотр бронирований пользователя"""
    if user is None:
        await ask_registration(message, state)
        return

    reservations = [r for r in booking.list_bookings(user) if r.is_active]

    if not reservations:
        await message.answer(
            "У вас пока нет активных бронирований.",
            reply_markup=get_main_menu_keyboard(is_admin(user))
        )
        return

    await message.answer(
        "📋 Ваши бронирования:",
        reply_markup=get_bookings_keyboard(reservations)
    )


@router.callback_query(F.data.startswith("show_booking:"))
async def show_booking_details(callback: CallbackQuery, user: Optional[User] = None):
    """Показать детали бронирования"""
    reservation_id = int(callback.data.split(":")[1])

    reservation = None
    if user is not None:
        try:
            reservation = booking.get_user_reservation(user, reservation_id)
        except BookingError:
            reservation = None

    if reservation is None:
        await callback.answer("Бронирование не найдено", show_alert=True)
        return

    table = TableRepository.get_table_by_id(reservation.table_id)
    await callback.message.edit_text(
        f"📋 Бронирование #{reservation.id}\n\n{reservation_text(reservation, table)}",
        reply_markup=get_booking_actions_keyboard(reservation.id)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("cancel_booking:"))
async def cancel_booking(callback: CallbackQuery, user: Optional[User] = None):
    """Отмена бронирования пользователем"""
    reservation_id = int(callback.data.split(":")[1])

    if user is None:
        await callback.answer("Бронирование не найдено", show_alert=True)
        return

    try:
        reservation = booking.cancel_booking(user, reservation_id)
    except BookingError as e:
        logger.warning(f"Не удалось отменить бронь #{reservation_id}: {e}")
        await callback.answer("Не удалось отменить бронирование", show_alert=True)
        return

    table = TableRepository.get_table_by_id(reservation.table_id)
    await notify_admins(
        callback.bot,
        f"❌ Бронирование #{reservation.id} отменено пользователем\n\n"
        + reservation_text(reservation, table, user)
    )

    await callback.message.edit_text("✅ Бронирование успешно отменено")
    await callback.answer()


# Навигация назад
@router.callback_query(F.data == "back_to_date")
async def back_to_date(callback: CallbackQuery, state: FSMContext):
    """Возврат к выбору даты"""
    await callback.message.edit_text(
        "📅 Выберите дату:",
        reply_markup=get_dates_keyboard(get_available_dates())
    )
    await state.set_state(BookingStates.choosing_date)
    await callback.answer()


@router.callback_query(F.data == "back_to_table")
async def back_to_table(callback: CallbackQuery, state: FSMContext):
    """Возврат к выбору стола"""
    await callback.message.edit_text(
        "🎱 Выберите стол:",
        reply_markup=get_tables_keyboard(TableRepository.get_all_tables())
    )
    await state.set_state(BookingStates.choosing_table)
    await callback.answer()


@router.callback_query(F.data == "back_to_slot")
async def back_to_slot(callback: CallbackQuery, state: FSMContext):
    """Возврат к выбору времени"""
    data = await state.get_data()
    slots = booking.get_time_slots(data['selected_date'], data['table_id'])

    await callback.message.edit_text(
        "🕐 Выберите время:",
        reply_markup=get_slots_keyboard(slots)
    )
    await state.set_state(BookingStates.choosing_slot)
    await callback.answer()


@router.callback_query(F.data == "my_bookings")
async def callback_my_bookings(callback: CallbackQuery, user: Optional[User] = None):
    """Возврат к списку бронирований"""
    reservations = [r for r in booking.list_bookings(user) if r.is_active] if user else []

    if not reservations:
        await callback.message.edit_text("У вас пока нет активных бронирований.")
        await callback.answer()
        return

    await callback.message.edit_text(
        "📋 Ваши бронирования:",
        reply_markup=get_bookings_keyboard(reservations)
    )
    await callback.answer()


@router.callback_query(F.data == "main_menu")
async def callback_main_menu(callback: CallbackQuery, state: FSMContext, user: Optional[User] = None):
    """Возврат в главное меню"""
    await state.clear()

    await callback.message.answer(
        "🏠 Главное меню",
        reply_markup=get_main_menu_keyboard(is_admin(user))
    )
    await callback.answer()


@router.callback_query(F.data == "cancel")
async def cancel_booking_process(callback: CallbackQuery, state: FSMContext, user: Optional[User] = None):
    """Отмена процесса бронирования"""
    await state.clear()

    await callback.message.edit_text("❌ Бронирование отменено")
    await callback.message.answer(
        "Выберите действие:",
        reply_markup=get_main_menu_keyboard(is_admin(user))
    )
    await callback.answer()
