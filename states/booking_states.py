"""
Состояния для FSM (Finite State Machine)
"""
from aiogram.fsm.state import State, StatesGroup


class RegistrationStates(StatesGroup):
    """Состояния регистрации"""
    entering_phone = State()


class BookingStates(StatesGroup):
    """Состояния процесса бронирования"""
    choosing_date = State()
    choosing_table = State()
    choosing_slot = State()
    entering_comment = State()
    confirming = State()
