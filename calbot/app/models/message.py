"""
Модель сообщения чата (журнал для пересказа).
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ChatMessage(BaseModel):
    """Сообщение из журнала переписки."""
    id: int
    chat_id: int
    user_id: int
    username: Optional[str] = None
    text: str
    timestamp: datetime

    class Config:
        from_attributes = True
