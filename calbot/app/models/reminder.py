"""
Модели для напоминаний о событиях.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class ReminderBase(BaseModel):
    """Базовая модель напоминания."""
    event_id: int = Field(..., description="ID события")
    remind_at: datetime = Field(..., description="Когда напомнить (локальное время)")


class ReminderCreate(ReminderBase):
    """Модель для создания напоминания."""
    pass


class Reminder(ReminderBase):
    """Полная модель напоминания."""
    id: int

    class Config:
        from_attributes = True
