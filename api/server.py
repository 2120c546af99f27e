"""
HTTP-сервер API для Telegram Mini App
"""
import json
import logging
from typing import Optional

from aiogram import Bot
from aiohttp import web
from pydantic import ValidationError as SchemaValidationError

from api.routes import BOT_KEY, routes
from config import settings
from utils.exceptions import (
    AuthenticationError, ConflictError, InvalidTransitionError, NotFoundError,
    PermissionDeniedError, TableUnavailableError, ValidationError,
)

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Telegram-Id, X-Telegram-Init-Data",
}


def _error(status: int, message: str, **extra) -> web.Response:
    body = {"message": message, **extra}
    return web.json_response(body, status=status, dumps=lambda obj: json.dumps(obj, ensure_ascii=False))


@web.middleware
async def cors_middleware(request: web.Request, handler):
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Перевод ошибок бронирования в HTTP-ответы"""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except SchemaValidationError as e:
        return _error(400, "Validation error", errors=json.loads(e.json(include_url=False)))
    except ValidationError as e:
        return _error(400, e.message, errors=e.errors)
    except ConflictError as e:
        return _error(400, e.message, conflict=e.conflict.to_dict())
    except (TableUnavailableError, InvalidTransitionError) as e:
        return _error(400, e.message)
    except AuthenticationError as e:
        return _error(401, e.message)
    except PermissionDeniedError as e:
        return _error(403, e.message)
    except NotFoundError as e:
        return _error(404, e.message)
    except Exception as e:
        logger.error(f"Ошибка обработки {request.method} {request.path}: {e}", exc_info=True)
        return _error(500, "Internal server error")


def create_app(bot: Optional[Bot] = None) -> web.Application:
    """Создание приложения; bot нужен для уведомлений администраторов"""
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[BOT_KEY] = bot
    app.add_routes(routes)
    return app


async def start_api(app: web.Application) -> web.AppRunner:
    """Запуск HTTP API в текущем event loop"""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.API_HOST, settings.API_PORT)
    await site.start()
    logger.info(f"HTTP API запущен на {settings.API_HOST}:{settings.API_PORT}")
    return runner
