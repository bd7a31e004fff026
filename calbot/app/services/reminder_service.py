"""
Сервис для проверки и отправки напоминаний о событиях.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from calbot.app.config import settings
from calbot.app.exceptions import CalbotError, DispatchError
from calbot.app.services.event_store import EventStore
from calbot.app.services.telegram_notifier import TelegramNotifier
from calbot.app.utils import local_now


logger = logging.getLogger(__name__)


class ReminderScheduler:
    """
    Периодически отправляет наступившие напоминания.

    Напоминание удаляется только после успешной отправки; если отправка
    не удалась, оно остаётся в базе и повторяется на следующей проверке.
    Всё состояние берётся из базы и текущего времени, поэтому перезапуск
    процесса ничего не теряет. Проверки не пересекаются: если предыдущая
    ещё идёт, новая пропускается.
    """

    def __init__(self, store: EventStore, notifier: TelegramNotifier):
        self.store = store
        self.notifier = notifier
        self._tick_lock = asyncio.Lock()
        self._stopped = asyncio.Event()

    async def tick(self, now: Optional[datetime] = None) -> int:
        """Одна проверка. Возвращает число отправленных напоминаний."""
        if self._tick_lock.locked():
            logger.debug("Previous reminder check is still running, skipping")
            return 0

        async with self._tick_lock:
            due = await self.store.get_upcoming_reminders(now or local_now())
            if due:
                logger.info("Found %s reminders to send", len(due))

            sent_count = 0
            for reminder, event in due:
                try:
                    await self.notifier.send_reminder(reminder, event)
                except DispatchError as e:
                    logger.warning("Reminder %s not delivered, will retry: %s", reminder.id, e)
                    continue

                await self.store.delete_reminder(reminder.id)
                sent_count += 1
                logger.info("Sent reminder %s for event %s to chat %s", reminder.id, event.id, event.chat_id)

            return sent_count

    async def run(self, interval_seconds: Optional[int] = None) -> None:
        """Запускает периодическую проверку до вызова stop()."""
        interval = interval_seconds or settings.REMINDER_CHECK_INTERVAL
        logger.info("Starting periodic reminder check (every %s seconds)", interval)
        self._stopped.clear()

        while not self._stopped.is_set():
            try:
                await self.tick()
            except CalbotError as e:
                logger.error("Error in reminder check: %s", e)
            except Exception:
                logger.exception("Unexpected error in reminder check")

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Reminder check stopped")

    def stop(self) -> None:
        """Останавливает цикл; текущая проверка завершается."""
        self._stopped.set()
