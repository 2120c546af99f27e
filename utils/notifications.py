"""
Уведомления администраторов о бронированиях
"""
import logging
from typing import Optional

from aiogram import Bot

from config import settings
from database.models import Reservation, Table, User
from utils.time_utils import format_reservation_date

logger = logging.getLogger(__name__)


def reservation_text(reservation: Reservation, table: Optional[Table] = None,
                     user: Optional[User] = None) -> str:
    """Текстовое описание брони"""
    table_name = f"Стол №{table.number}" if table else f"Стол #{reservation.table_id}"
    text = (
        f"📅 {format_reservation_date(reservation.date)} "
        f"{reservation.start_time}-{reservation.end_time}\n"
        f"🎱 {table_name}"
    )
    if user:
        text += f"\n👤 {user.name}\n📱 {user.phone}"
    if reservation.comment:
        text += f"\n💬 {reservation.comment}"
    return text


async def notify_admins(bot: Optional[Bot], text: str, exclude: Optional[int] = None) -> None:
    """Рассылка сообщения всем администраторам из ADMIN_IDS"""
    if bot is None:
        return

    for admin_id in settings.ADMIN_IDS:
        if admin_id == exclude:
            continue
        try:
            await bot.send_message(admin_id, text)
        except Exception as e:
            logger.error(f"Не удалось отправить уведомление админу {admin_id}: {e}")
