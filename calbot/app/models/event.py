"""
Модели событий календаря.
"""

import datetime as dt
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class EventStatus(str, Enum):
    """Статус события."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class EventBase(BaseModel):
    """Базовая модель события."""
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN, description="Время HH:MM (24 часа)")
    description: str = Field(..., min_length=1)
    participants: Optional[str] = None
    message_link: Optional[str] = None
    chat_id: Optional[int] = None  # Чат, из которого пришло событие


class EventCreate(EventBase):
    """Модель для создания события."""
    pass


class Event(EventBase):
    """Полная модель события."""
    id: int
    status: EventStatus = EventStatus.CONFIRMED
    created_at: dt.datetime

    class Config:
        from_attributes = True

    def format_details(self) -> str:
        """Текст карточки события для сообщений бота."""
        return (
            f"ID: {self.id}\n"
            f"Date: {self.date.isoformat()}\n"
            f"Time: {self.time}\n"
            f"Description: {self.description}"
        )
