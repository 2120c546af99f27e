"""
Главный файл: Telegram-бот и HTTP API бронирования бильярдных столов
"""
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from api.server import create_app, start_api
from config import settings
from database.database import init_db
from database.repository import ClubSettingsRepository
from handlers import user_handlers, admin_handlers
from middlewares.registered_user import RegisteredUserMiddleware
from utils.scheduler import start_scheduler

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Основная функция запуска бота"""
    logger.info("Запуск бота...")

    # Инициализация БД
    init_db()
    club = ClubSettingsRepository.get_settings()
    logger.info(
        f"База данных инициализирована: {club.club_name}, "
        f"{club.opening_time}-{club.closing_time}, слот {club.slot_duration} ч"
    )

    # Создание бота и диспетчера
    bot = Bot(token=settings.BOT_TOKEN)
    storage = MemoryStorage()
    dp = Dispatcher(storage=storage)

    # Подстановка зарегистрированного пользователя (нужна и фильтрам)
    dp.message.outer_middleware(RegisteredUserMiddleware())
    dp.callback_query.outer_middleware(RegisteredUserMiddleware())

    # Регистрация роутеров
    dp.include_router(user_handlers.router)
    dp.include_router(admin_handlers.router)

    # HTTP API для Mini App
    api_runner = await start_api(create_app(bot))

    # Запуск планировщика завершения броней
    scheduler = await start_scheduler()

    try:
        logger.info("Бот успешно запущен")
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        scheduler.shutdown()
        await api_runner.cleanup()
        await bot.session.close()
        logger.info("Бот остановлен")


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Бот остановлен пользователем")
    except Exception as e:
        logger.error(f"Критическая ошибка: {e}", exc_info=True)
