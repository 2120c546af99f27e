"""
Обработчики HTTP API для Telegram Mini App
"""
import json
import logging
from typing import Type, TypeVar

from aiohttp import web
from pydantic import BaseModel

from api.auth import admin_required, login_required
from api.schemas import (
    ClubSettingsUpdate, ReservationCreate, ReservationUpdate,
    TableCreate, TableUpdate, UserCreate,
)
from database.models import Table, RESERVATION_CANCELLED
from database.repository import ClubSettingsRepository, ReservationRepository, TableRepository
from utils import booking
from utils.exceptions import NotFoundError, ValidationError
from utils.notifications import notify_admins, reservation_text
from utils.time_utils import is_valid_date

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()

BOT_KEY = web.AppKey("bot")

Schema = TypeVar('Schema', bound=BaseModel)


async def read_json(request: web.Request, schema: Type[Schema]) -> Schema:
    """Тело запроса, проверенное схемой"""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("invalid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("expected JSON object")
    return schema.model_validate(payload)


def _int_param(request: web.Request, name: str, message: str) -> int:
    try:
        return int(request.match_info[name])
    except ValueError:
        raise ValidationError(message)


def _json(data, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=lambda obj: json.dumps(obj, ensure_ascii=False))


# === Пользователи ============================================================

@routes.post("/api/users")
async def create_user(request: web.Request) -> web.Response:
    data = await read_json(request, UserCreate)
    user, created = booking.register_user(data.telegram_id, data.name, data.phone)
    return _json(user.to_dict(), status=201 if created else 200)


@routes.get("/api/users/me")
@login_required
async def get_me(request: web.Request) -> web.Response:
    return _json(request["user"].to_dict())


# === Столы ===================================================================

@routes.get("/api/tables")
async def list_tables(request: web.Request) -> web.Response:
    return _json([table.to_dict() for table in TableRepository.get_all_tables()])


@routes.post("/api/tables")
@admin_required
async def create_table(request: web.Request) -> web.Response:
    data = await read_json(request, TableCreate)
    table = TableRepository.create_table(Table(id=None, number=data.number, status=data.status))
    logger.info(f"Создан стол №{table.number} (#{table.id})")
    return _json(table.to_dict(), status=201)


@routes.patch("/api/tables/{id}")
@admin_required
async def update_table(request: web.Request) -> web.Response:
    table_id = _int_param(request, "id", "Invalid table ID")
    data = await read_json(request, TableUpdate)

    table = TableRepository.update_table(table_id, number=data.number, status=data.status)
    if table is None:
        raise NotFoundError("Table not found")
    return _json(table.to_dict())


@routes.delete("/api/tables/{id}")
@admin_required
async def delete_table(request: web.Request) -> web.Response:
    table_id = _int_param(request, "id", "Invalid table ID")
    if not TableRepository.delete_table(table_id):
        raise NotFoundError("Table not found")
    logger.info(f"Стол #{table_id} удалён")
    return web.Response(status=204)


# === Бронирования ============================================================

@routes.get("/api/reservations")
@login_required
async def list_reservations(request: web.Request) -> web.Response:
    include_all = request.query.get("all") == "true"
    reservations = booking.list_bookings(request["user"], include_all=include_all)
    return _json([r.to_dict() for r in reservations])


@routes.get("/api/reservations/date/{date}")
async def reservations_by_date(request: web.Request) -> web.Response:
    date = request.match_info["date"]
    if not is_valid_date(date):
        raise ValidationError("Invalid date")
    return _json([r.to_dict() for r in ReservationRepository.get_reservations_by_date(date)])


@routes.post("/api/reservations")
@login_required
async def create_reservation(request: web.Request) -> web.Response:
    user = request["user"]
    data = await read_json(request, ReservationCreate)

    reservation = booking.create_booking(
        user, data.table_id, data.date, data.start_time, data.end_time, data.comment
    )

    table = TableRepository.get_table_by_id(reservation.table_id)
    await notify_admins(
        request.app.get(BOT_KEY),
        f"📌 Новое бронирование #{reservation.id}\n\n" + reservation_text(reservation, table, user)
    )
    return _json(reservation.to_dict(), status=201)


@routes.patch("/api/reservations/{id}")
@login_required
async def update_reservation(request: web.Request) -> web.Response:
    user = request["user"]
    reservation_id = _int_param(request, "id", "Invalid reservation ID")
    data = await read_json(request, ReservationUpdate)

    before = booking.get_user_reservation(user, reservation_id)
    reservation = booking.update_booking(user, reservation_id, status=data.status, comment=data.comment)

    if reservation.status == RESERVATION_CANCELLED and before.status != RESERVATION_CANCELLED:
        table = TableRepository.get_table_by_id(reservation.table_id)
        await notify_admins(
            request.app.get(BOT_KEY),
            f"❌ Бронирование #{reservation.id} отменено\n\n" + reservation_text(reservation, table, user)
        )
    return _json(reservation.to_dict())


@routes.delete("/api/reservations/{id}")
@login_required
async def delete_reservation(request: web.Request) -> web.Response:
    reservation_id = _int_param(request, "id", "Invalid reservation ID")
    booking.delete_booking(request["user"], reservation_id)
    return web.Response(status=204)


# === Настройки клуба =========================================================

@routes.get("/api/club-settings")
async def get_club_settings(request: web.Request) -> web.Response:
    return _json(ClubSettingsRepository.get_settings().to_dict())


@routes.patch("/api/club-settings")
@admin_required
async def update_club_settings(request: web.Request) -> web.Response:
    data = await read_json(request, ClubSettingsUpdate)
    club = ClubSettingsRepository.update_settings(**data.model_dump(exclude_none=True))
    logger.info(
        f"Настройки клуба обновлены: {club.opening_time}-{club.closing_time}, "
        f"слот {club.slot_duration} ч"
    )
    return _json(club.to_dict())


# === Слоты ===================================================================

@routes.get("/api/time-slots/{date}/{table_id}")
async def time_slots(request: web.Request) -> web.Response:
    table_id = _int_param(request, "table_id", "Invalid table ID")
    date = request.match_info["date"]
    if not is_valid_date(date):
        raise ValidationError("Invalid date")
    return _json([slot.to_dict() for slot in booking.get_time_slots(date, table_id)])
