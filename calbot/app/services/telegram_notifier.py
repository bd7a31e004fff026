"""
Сервис для отправки уведомлений в Telegram.
"""

import logging
from typing import Optional
from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from calbot.app.exceptions import DispatchError
from calbot.app.models import Event, Reminder


logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Отправляет уведомления о напоминаниях в чат события."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = None
    ) -> int:
        """
        Отправляет сообщение в Telegram.

        Args:
            chat_id: ID чата
            text: Текст сообщения
            parse_mode: Режим парсинга (HTML, Markdown)

        Returns:
            int: ID отправленного сообщения

        Raises:
            DispatchError: если Telegram не принял сообщение
        """
        try:
            message = await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=parse_mode
            )
            return message.message_id
        except TelegramAPIError as e:
            logger.error("Failed to send Telegram message to %s: %s", chat_id, e)
            raise DispatchError(chat_id, str(e)) from e

    async def send_reminder(self, reminder: Reminder, event: Event) -> int:
        """Отправляет напоминание о событии в чат, откуда оно пришло."""
        if event.chat_id is None:
            raise DispatchError(None, f"event {event.id} has no chat")

        text = (
            "⏰ Reminder\n\n"
            f"📅 Date: {event.date.isoformat()}\n"
            f"🕒 Time: {event.time}\n"
            f"📝 Event: {event.description}"
        )
        if event.participants:
            text += f"\n👥 Participants: {event.participants}"
        if event.message_link:
            text += f"\n🔗 {event.message_link}"
        return await self.send_message(event.chat_id, text)
