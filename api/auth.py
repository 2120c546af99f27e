"""
Определение пользователя HTTP-запроса и проверка прав
"""
import logging
from functools import wraps
from typing import Optional

from aiogram.utils.web_app import safe_parse_webapp_init_data
from aiohttp import web

from config import settings
from database.models import User
from database.repository import UserRepository
from utils.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from utils.permissions import require_admin

logger = logging.getLogger(__name__)

TELEGRAM_ID_HEADER = "X-Telegram-Id"
INIT_DATA_HEADER = "X-Telegram-Init-Data"


def resolve_telegram_id(request: web.Request) -> Optional[str]:
    """
    Telegram ID из запроса.
    Подписанный initData Mini App проверяется токеном бота; простой
    заголовок X-Telegram-Id принимается, только если INIT_DATA_REQUIRED выключен.
    """
    init_data = request.headers.get(INIT_DATA_HEADER)
    if init_data:
        try:
            data = safe_parse_webapp_init_data(token=settings.BOT_TOKEN, init_data=init_data)
        except ValueError:
            logger.warning(f"Невалидный initData от {request.remote}")
            raise AuthenticationError("Unauthorized: invalid init data")
        if data.user is None:
            raise AuthenticationError("Unauthorized: init data has no user")
        return str(data.user.id)

    if settings.INIT_DATA_REQUIRED:
        return None
    return request.headers.get(TELEGRAM_ID_HEADER) or None


def get_current_user(request: web.Request) -> User:
    """Зарегистрированный пользователь запроса"""
    telegram_id = resolve_telegram_id(request)
    if not telegram_id:
        raise AuthenticationError()

    user = UserRepository.get_by_telegram_id(telegram_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def login_required(handler):
    """Обработчик доступен только зарегистрированным пользователям"""
    @wraps(handler)
    async def wrapper(request: web.Request):
        request["user"] = get_current_user(request)
        return await handler(request)
    return wrapper


def admin_required(handler):
    """Обработчик доступен только администраторам (иначе 403)"""
    @wraps(handler)
    async def wrapper(request: web.Request):
        try:
            user = get_current_user(request)
        except (AuthenticationError, NotFoundError):
            raise PermissionDeniedError("Forbidden: Admin access required")
        require_admin(user)
        request["user"] = user
        return await handler(request)
    return wrapper
