"""
Модели распознавания и подтверждения событий.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel

from .event import Event


class Extraction(BaseModel):
    """Результат распознавания даты/времени в тексте."""
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    description: str
    matched_text: str = ""


class PendingProposal(BaseModel):
    """Предложенное событие, ожидающее ответа пользователя. Только в памяти."""
    token: str
    chat_id: int
    date: str
    time: str
    description: str
    participants: Optional[str] = None
    message_link: Optional[str] = None
    created_at: datetime

    def format_prompt(self) -> str:
        """Текст вопроса с кнопками Yes/No."""
        return (
            "I detected an event:\n"
            f"Date: {self.date}\n"
            f"Time: {self.time}\n"
            f"Description: {self.description}\n\n"
            "Would you like me to add it to the calendar?"
        )


class ConfirmationStatus(str, Enum):
    """Итог ответа на предложение."""
    CONFIRMED = "confirmed"
    ALREADY_HANDLED = "already_handled"


class ConfirmationResult(BaseModel):
    """Результат подтверждения предложения."""
    status: ConfirmationStatus
    event: Optional[Event] = None
