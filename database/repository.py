"""
Репозиторий для работы с данными
"""
import logging
from datetime import datetime
from typing import List, Optional

from config import settings
from database.database import get_db
from database.models import (
    User, Table, Reservation, ClubSettings,
    RESERVATION_ACTIVE, RESERVATION_COMPLETED,
)
from utils.availability import admit_reservation
from utils.exceptions import ConflictError, InvalidTransitionError, NotFoundError, TableUnavailableError
from utils.time_utils import reservation_end

logger = logging.getLogger(__name__)


class UserRepository:
    """Репозиторий для работы с пользователями"""

    @staticmethod
    def get_by_telegram_id(telegram_id) -> Optional[User]:
        """Получение пользователя по Telegram ID"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users WHERE telegram_id = ?", (str(telegram_id),))
            row = cursor.fetchone()
            return UserRepository._row_to_user(row) if row else None

    @staticmethod
    def get_user_by_id(user_id: int) -> Optional[User]:
        """Получение пользователя по ID"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cursor.fetchone()
            return UserRepository._row_to_user(row) if row else None

    @staticmethod
    def create_user(user: User) -> User:
        """Создание пользователя"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO users (telegram_id, name, phone, is_admin)
                VALUES (?, ?, ?, ?)
            """, (str(user.telegram_id), user.name, user.phone, int(user.is_admin)))
            user_id = cursor.lastrowid

        return User(
            id=user_id,
            telegram_id=str(user.telegram_id),
            name=user.name,
            phone=user.phone,
            is_admin=user.is_admin
        )

    @staticmethod
    def update_user(user_id: int, **fields) -> Optional[User]:
        """Обновление полей пользователя (name, phone, is_admin)"""
        allowed = {k: v for k, v in fields.items() if k in ('name', 'phone', 'is_admin') and v is not None}
        if allowed:
            if 'is_admin' in allowed:
                allowed['is_admin'] = int(allowed['is_admin'])
            assignments = ", ".join(f"{column} = ?" for column in allowed)
            with get_db() as conn:
                conn.execute(
                    f"UPDATE users SET {assignments} WHERE id = ?",
                    (*allowed.values(), user_id)
                )
        return UserRepository.get_user_by_id(user_id)

    @staticmethod
    def _row_to_user(row) -> User:
        """Преобразование строки БД в объект User"""
        return User(
            id=row['id'],
            telegram_id=row['telegram_id'],
            name=row['name'],
            phone=row['phone'],
            is_admin=bool(row['is_admin'])
        )


class TableRepository:
    """Репозиторий для работы со столами"""

    @staticmethod
    def get_all_tables() -> List[Table]:
        """Получение всех столов"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM tables ORDER BY number, id")
            rows = cursor.fetchall()
            return [TableRepository._row_to_table(row) for row in rows]

    @staticmethod
    def get_table_by_id(table_id: int) -> Optional[Table]:
        """Получение стола по ID"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM tables WHERE id = ?", (table_id,))
            row = cursor.fetchone()
            return TableRepository._row_to_table(row) if row else None

    @staticmethod
    def create_table(table: Table) -> Table:
        """Создание стола"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO tables (number, status) VALUES (?, ?)",
                (table.number, table.status)
            )
            return Table(id=cursor.lastrowid, number=table.number, status=table.status)

    @staticmethod
    def update_table(table_id: int, number: Optional[int] = None,
                     status: Optional[str] = None) -> Optional[Table]:
        """Обновление номера и/или статуса стола"""
        with get_db() as conn:
            cursor = conn.cursor()
            if number is not None:
                cursor.execute("UPDATE tables SET number = ? WHERE id = ?", (number, table_id))
            if status is not None:
                cursor.execute("UPDATE tables SET status = ? WHERE id = ?", (status, table_id))
        return TableRepository.get_table_by_id(table_id)

    @staticmethod
    def delete_table(table_id: int) -> bool:
        """Удаление стола"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM tables WHERE id = ?", (table_id,))
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_table(row) -> Table:
        return Table(id=row['id'], number=row['number'], status=row['status'])


class ReservationRepository:
    """Репозиторий для работы с бронированиями"""

    @staticmethod
    def create_reservation(reservation: Reservation) -> Reservation:
        """
        Создание брони с проверкой доступности.

        Проверка и вставка идут в одной транзакции BEGIN IMMEDIATE, поэтому
        две одновременные брони на пересекающееся время не пройдут обе.
        """
        with get_db(immediate=True) as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM tables WHERE id = ?", (reservation.table_id,))
            row = cursor.fetchone()
            if row is None:
                raise NotFoundError("Table not found")
            table = TableRepository._row_to_table(row)

            cursor.execute("""
                SELECT * FROM reservations
                WHERE table_id = ? AND date = ? AND status = 'active'
                ORDER BY start_time
            """, (reservation.table_id, reservation.date))
            existing = [ReservationRepository._row_to_reservation(r) for r in cursor.fetchall()]

            admission = admit_reservation(reservation, table, existing)
            if not admission.accepted:
                if admission.reason == 'table_unavailable':
                    raise TableUnavailableError(table)
                raise ConflictError(admission.conflict)

            created_at = datetime.now().replace(microsecond=0)
            cursor.execute("""
                INSERT INTO reservations
                (user_id, table_id, date, start_time, end_time, status, comment, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                reservation.user_id,
                reservation.table_id,
                reservation.date,
                reservation.start_time,
                reservation.end_time,
                RESERVATION_ACTIVE,
                reservation.comment,
                created_at.isoformat()
            ))
            reservation_id = cursor.lastrowid

        return Reservation(
            id=reservation_id,
            user_id=reservation.user_id,
            table_id=reservation.table_id,
            date=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            status=RESERVATION_ACTIVE,
            comment=reservation.comment,
            created_at=created_at
        )

    @staticmethod
    def get_all_reservations() -> List[Reservation]:
        """Все брони"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM reservations ORDER BY date, start_time")
            return [ReservationRepository._row_to_reservation(row) for row in cursor.fetchall()]

    @staticmethod
    def get_user_reservations(user_id: int, only_active: bool = False) -> List[Reservation]:
        """Брони пользователя"""
        query = "SELECT * FROM reservations WHERE user_id = ?"
        if only_active:
            query += " AND status = 'active'"
        query += " ORDER BY date, start_time"

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query, (user_id,))
            return [ReservationRepository._row_to_reservation(row) for row in cursor.fetchall()]

    @staticmethod
    def get_reservations_by_date(date: str) -> List[Reservation]:
        """Все брони на дату (включая отменённые)"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM reservations
                WHERE date = ?
                ORDER BY start_time, table_id
            """, (date,))
            return [ReservationRepository._row_to_reservation(row) for row in cursor.fetchall()]

    @staticmethod
    def get_active_for_table(table_id: int, date: str) -> List[Reservation]:
        """Активные брони стола на дату"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM reservations
                WHERE table_id = ? AND date = ? AND status = 'active'
                ORDER BY start_time
            """, (table_id, date))
            return [ReservationRepository._row_to_reservation(row) for row in cursor.fetchall()]

    @staticmethod
    def get_reservation_by_id(reservation_id: int) -> Optional[Reservation]:
        """Получение брони по ID"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM reservations WHERE id = ?", (reservation_id,))
            row = cursor.fetchone()
            return ReservationRepository._row_to_reservation(row) if row else None

    @staticmethod
    def update_reservation(reservation_id: int, status: Optional[str] = None,
                           comment: Optional[str] = None) -> Reservation:
        """
        Смена статуса и/или комментария брони.
        Статус меняется только по допустимому переходу.
        """
        with get_db(immediate=True) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM reservations WHERE id = ?", (reservation_id,))
            row = cursor.fetchone()
            if row is None:
                raise NotFoundError("Reservation not found")
            reservation = ReservationRepository._row_to_reservation(row)

            if status is not None and status != reservation.status:
                if not reservation.can_transition_to(status):
                    raise InvalidTransitionError(reservation.status, status)
                cursor.execute(
                    "UPDATE reservations SET status = ? WHERE id = ?",
                    (status, reservation_id)
                )
                reservation.status = status

            if comment is not None:
                cursor.execute(
                    "UPDATE reservations SET comment = ? WHERE id = ?",
                    (comment, reservation_id)
                )
                reservation.comment = comment

        return reservation

    @staticmethod
    def delete_reservation(reservation_id: int) -> bool:
        """Удаление брони"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM reservations WHERE id = ?", (reservation_id,))
            return cursor.rowcount > 0

    @staticmethod
    def complete_elapsed(now: datetime) -> int:
        """Перевод в completed активных броней, время которых уже прошло"""
        with get_db(immediate=True) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM reservations
                WHERE status = 'active' AND date <= ?
            """, (now.strftime("%Y-%m-%d"),))
            rows = cursor.fetchall()

            elapsed = [
                row['id'] for row in rows
                if reservation_end(row['date'], row['start_time'], row['end_time']) <= now
            ]
            cursor.executemany(
                "UPDATE reservations SET status = ? WHERE id = ? AND status = 'active'",
                [(RESERVATION_COMPLETED, reservation_id) for reservation_id in elapsed]
            )
            return len(elapsed)

    @staticmethod
    def _row_to_reservation(row) -> Reservation:
        """Преобразование строки БД в объект Reservation"""
        return Reservation(
            id=row['id'],
            user_id=row['user_id'],
            table_id=row['table_id'],
            date=row['date'],
            start_time=row['start_time'],
            end_time=row['end_time'],
            status=row['status'],
            comment=row['comment'],
            created_at=datetime.fromisoformat(row['created_at'])
        )


class ClubSettingsRepository:
    """Репозиторий настроек клуба"""

    @staticmethod
    def get_settings() -> ClubSettings:
        """Получение настроек; при отсутствии создаются значения по умолчанию"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT OR IGNORE INTO club_settings
                (id, opening_time, closing_time, slot_duration, club_name)
                VALUES (1, ?, ?, ?, ?)
            """, (
                settings.DEFAULT_OPENING_TIME,
                settings.DEFAULT_CLOSING_TIME,
                settings.DEFAULT_SLOT_DURATION,
                settings.DEFAULT_CLUB_NAME
            ))
            if cursor.rowcount:
                logger.info("Созданы настройки клуба по умолчанию")

            cursor.execute("SELECT * FROM club_settings WHERE id = 1")
            return ClubSettingsRepository._row_to_settings(cursor.fetchone())

    @staticmethod
    def update_settings(**fields) -> ClubSettings:
        """Обновление настроек (opening_time, closing_time, slot_duration, club_name)"""
        ClubSettingsRepository.get_settings()

        columns = ('opening_time', 'closing_time', 'slot_duration', 'club_name')
        allowed = {k: v for k, v in fields.items() if k in columns and v is not None}
        if allowed:
            assignments = ", ".join(f"{column} = ?" for column in allowed)
            with get_db() as conn:
                conn.execute(
                    f"UPDATE club_settings SET {assignments} WHERE id = 1",
                    tuple(allowed.values())
                )
        return ClubSettingsRepository.get_settings()

    @staticmethod
    def _row_to_settings(row) -> ClubSettings:
        return ClubSettings(
            id=row['id'],
            opening_time=row['opening_time'],
            closing_time=row['closing_time'],
            slot_duration=row['slot_duration'],
            club_name=row['club_name']
        )
