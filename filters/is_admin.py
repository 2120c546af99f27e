"""
Фильтр администраторов для роутеров бота
"""
from typing import Optional

from aiogram.filters import BaseFilter
from aiogram.types import TelegramObject

from config import settings
from database.models import User
from utils.permissions import is_admin


class IsAdmin(BaseFilter):
    """Пропускает только администраторов"""

    async def __call__(self, event: TelegramObject, user: Optional[User] = None,
                       event_from_user=None) -> bool:
        if user is not None:
            return is_admin(user)
        return event_from_user is not None and settings.is_admin(event_from_user.id)
