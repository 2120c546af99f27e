"""
Middleware, подставляющее зарегистрированного пользователя в хендлеры
"""
from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from database.repository import UserRepository


class RegisteredUserMiddleware(BaseMiddleware):
    """Загружает пользователя по Telegram ID и кладёт его в data['user']"""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        from_user = data.get("event_from_user")
        data["user"] = UserRepository.get_by_telegram_id(from_user.id) if from_user else None

        return await handler(event, data)
