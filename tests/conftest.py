from __future__ import annotations

import os

# Settings() требует BOT_TOKEN при импорте config
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")

import pytest

from config import settings
from database.database import init_db
from database.models import User
from database.repository import UserRepository


@pytest.fixture
def db(tmp_path, monkeypatch):
    # Каждый тест работает со своей временной БД и без ADMIN_IDS из окружения.
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "ADMIN_IDS", [])
    init_db()
    return settings.DB_PATH


@pytest.fixture
def user(db) -> User:
    return UserRepository.create_user(User(id=None, telegram_id="1001", name="Иван", phone="+79990000001"))


@pytest.fixture
def other_user(db) -> User:
    return UserRepository.create_user(User(id=None, telegram_id="1002", name="Пётр", phone="+79990000002"))


@pytest.fixture
def admin(db) -> User:
    return UserRepository.create_user(
        User(id=None, telegram_id="9001", name="Админ", phone="+79990000009", is_admin=True)
    )
