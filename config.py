"""
Конфигурация проекта
"""
import os
from dataclasses import dataclass
from typing import List


@dataclass
class Settings:
    """Настройки приложения"""
    # Telegram
    BOT_TOKEN: str = os.getenv('BOT_TOKEN', '')
    ADMIN_IDS: List[int] = None
    WEBAPP_URL: str = os.getenv('WEBAPP_URL', '')

    # База данных
    DB_PATH: str = os.getenv('DB_PATH', 'data/billiard_club.db')

    # HTTP API для Mini App
    API_HOST: str = os.getenv('API_HOST', '0.0.0.0')
    API_PORT: int = int(os.getenv('API_PORT', '8080'))
    # Если включено, принимаем только подписанный initData из Telegram
    INIT_DATA_REQUIRED: bool = os.getenv('INIT_DATA_REQUIRED', '0') == '1'

    # Настройки клуба по умолчанию
    DEFAULT_OPENING_TIME: str = '15:00'
    DEFAULT_CLOSING_TIME: str = '00:00'
    DEFAULT_SLOT_DURATION: int = 2
    DEFAULT_CLUB_NAME: str = 'Бильярдный клуб'
    DEFAULT_TABLES_COUNT: int = 9

    # Бизнес-правила
    MAX_BOOKING_DAYS: int = 7
    COMPLETE_CHECK_MINUTES: int = 5

    def __post_init__(self):
        """Инициализация после создания объекта"""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN не установлен")

        # Парсинг ADMIN_IDS из переменной окружения
        if self.ADMIN_IDS is None:
            admin_ids_str = os.getenv('ADMIN_IDS', '')
            if admin_ids_str:
                self.ADMIN_IDS = [int(id.strip()) for id in admin_ids_str.split(',')]
            else:
                self.ADMIN_IDS = []

    def is_admin(self, telegram_id) -> bool:
        """Проверка, указан ли пользователь в ADMIN_IDS"""
        try:
            return int(telegram_id) in self.ADMIN_IDS
        except (TypeError, ValueError):
            return False


# Глобальный экземпляр настроек
settings = Settings()
