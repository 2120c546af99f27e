"""
Модуль для работы с базой данных SQLite
"""
import sqlite3
import os
from contextlib import contextmanager
from typing import Generator
from config import settings


def get_connection() -> sqlite3.Connection:
    """Получение подключения к БД"""
    conn = sqlite3.Connection(settings.DB_PATH, timeout=10)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
    """
    Контекстный менеджер для работы с БД.
    immediate=True сразу берёт блокировку на запись (BEGIN IMMEDIATE):
    проверка и вставка внутри блока выполняются без конкурентов.
    """
    conn = get_connection()
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    """Инициализация базы данных"""
    # Создание директории для БД, если не существует
    db_dir = os.path.dirname(settings.DB_PATH)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)

    with get_db() as conn:
        cursor = conn.cursor()

        # Пользователи (идентифицируются по Telegram ID)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                telegram_id TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                phone TEXT NOT NULL,
                is_admin INTEGER NOT NULL DEFAULT 0
            )
        """)

        # Таблица столов
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tables (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                number INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'available'
                    CHECK(status IN ('available', 'busy', 'inactive'))
            )
        """)

        # Таблица бронирований
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reservations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                table_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'active'
                    CHECK(status IN ('active', 'completed', 'cancelled')),
                comment TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id),
                FOREIGN KEY (table_id) REFERENCES tables (id)
            )
        """)

        # Индексы для быстрого поиска
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reservations_table_date
            ON reservations(table_id, date, status)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reservations_user
            ON reservations(user_id, status)
        """)

        # Настройки клуба: всегда одна запись с id = 1
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS club_settings (
                id INTEGER PRIMARY KEY CHECK(id = 1),
                opening_time TEXT NOT NULL,
                closing_time TEXT NOT NULL,
                slot_duration INTEGER NOT NULL CHECK(slot_duration BETWEEN 1 AND 23),
                club_name TEXT NOT NULL
            )
        """)

        # Проверка наличия столов
        cursor.execute("SELECT COUNT(*) as count FROM tables")
        if cursor.fetchone()['count'] == 0:
            # Добавление столов по умолчанию
            cursor.executemany(
                "INSERT INTO tables (number, status) VALUES (?, 'available')",
                [(number,) for number in range(1, settings.DEFAULT_TABLES_COUNT + 1)]
            )
