"""
Планировщик периодических задач
"""
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from database.repository import ReservationRepository

logger = logging.getLogger(__name__)


async def complete_reservations_job(now: Optional[datetime] = None):
    """Задача завершения прошедших броней"""
    try:
        completed_count = ReservationRepository.complete_elapsed(now or datetime.now())
        if completed_count > 0:
            logger.info(f"Завершено {completed_count} прошедших броней")
    except Exception as e:
        logger.error(f"Ошибка при завершении броней: {e}", exc_info=True)


async def start_scheduler() -> AsyncIOScheduler:
    """Запуск планировщика задач"""
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        complete_reservations_job,
        trigger=IntervalTrigger(minutes=settings.COMPLETE_CHECK_MINUTES),
        id='complete_reservations',
        name='Завершение прошедших броней',
        replace_existing=True
    )

    scheduler.start()
    logger.info("Планировщик задач запущен")

    return scheduler
