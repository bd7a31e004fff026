"""
Middleware для бота.
"""

import logging
from typing import Any, Awaitable, Callable, Dict
from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject

from calbot.app.exceptions import PersistenceError


logger = logging.getLogger(__name__)


class ChatLogMiddleware(BaseMiddleware):
    """Сохраняет обычные (не командные) сообщения в журнал для /summarize."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        """Обрабатывает событие."""
        store = data.get("store")
        if (
            store is not None
            and isinstance(event, Message)
            and event.text
            and not event.text.startswith("/")
            and event.from_user
        ):
            user = event.from_user
            try:
                await store.add_message(event.chat.id, user.id, user.username, event.text)
            except PersistenceError as e:
                # Журнал вспомогательный, сообщение всё равно обрабатываем
                logger.error("Failed to log message in chat %s: %s", event.chat.id, e)

        return await handler(event, data)
