"""
Схемы запросов HTTP API
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from utils.availability import MAX_SLOT_DURATION
from utils.time_utils import is_valid_date, is_valid_time

TableStatus = Literal['available', 'busy', 'inactive']
ReservationStatus = Literal['active', 'completed', 'cancelled']


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_time(value):
        raise ValueError("expected HH:MM")
    return value


class UserCreate(BaseModel):
    telegram_id: str = Field(min_length=1, max_length=255)
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)

    @field_validator('telegram_id', mode='before')
    @classmethod
    def telegram_id_as_str(cls, value):
        # Mini App присылает id числом
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class TableCreate(BaseModel):
    number: int
    status: TableStatus = 'available'


class TableUpdate(BaseModel):
    number: Optional[int] = None
    status: Optional[TableStatus] = None


class ReservationCreate(BaseModel):
    table_id: int
    date: str
    start_time: str
    end_time: str
    comment: Optional[str] = None

    @field_validator('date')
    @classmethod
    def check_date(cls, value: str) -> str:
        if not is_valid_date(value):
            raise ValueError("expected YYYY-MM-DD")
        return value

    @field_validator('start_time', 'end_time')
    @classmethod
    def check_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode='after')
    def check_interval(self) -> 'ReservationCreate':
        if self.start_time == self.end_time:
            raise ValueError("end_time must differ from start_time")
        return self


class ReservationUpdate(BaseModel):
    status: Optional[ReservationStatus] = None
    comment: Optional[str] = None


class ClubSettingsUpdate(BaseModel):
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    slot_duration: Optional[int] = Field(default=None, gt=0, le=MAX_SLOT_DURATION)
    club_name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator('opening_time', 'closing_time')
    @classmethod
    def check_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_time(value)
