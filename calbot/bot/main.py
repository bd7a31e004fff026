"""
Telegram Bot - точка входа.
"""

import asyncio
import logging
import sys
from aiogram import Bot, Dispatcher
from aiogram.exceptions import TelegramAPIError, TelegramUnauthorizedError
from aiogram.utils.backoff import BackoffConfig

from calbot.app.config import settings
from calbot.app.services.assistant import Assistant
from calbot.app.services.commands import CommandRouter
from calbot.app.services.confirmation import ConfirmationFlow
from calbot.app.services.database import DatabaseService
from calbot.app.services.event_store import EventStore
from calbot.app.services.reminder_service import ReminderScheduler
from calbot.app.services.telegram_notifier import TelegramNotifier

from .handlers import router
from .middlewares import ChatLogMiddleware

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Настройка логирования."""
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


async def run_polling(dp: Dispatcher, bot: Bot) -> None:
    """
    Polling с перезапуском.

    Внутри aiogram сам повторяет getUpdates с экспоненциальной задержкой
    (BackoffConfig). Если polling всё же упал, он перезапускается с
    ограниченной задержкой не более POLLING_MAX_RESTARTS раз подряд.
    """
    backoff = BackoffConfig(
        min_delay=settings.POLLING_BACKOFF_MIN,
        max_delay=settings.POLLING_BACKOFF_MAX,
        factor=2.0,
        jitter=0.1,
    )
    delay = settings.POLLING_BACKOFF_MIN
    restarts = 0

    while True:
        # Удаляем webhook если был, иначе getUpdates вернёт конфликт
        try:
            await bot.delete_webhook(drop_pending_updates=False)
        except TelegramUnauthorizedError:
            raise
        except TelegramAPIError as e:
            logger.warning("Error deleting webhook: %s", e)

        try:
            await dp.start_polling(
                bot,
                backoff_config=backoff,
                close_bot_session=False,
                allowed_updates=dp.resolve_used_update_types(),
            )
            return
        except TelegramUnauthorizedError:
            raise
        except TelegramAPIError as e:
            restarts += 1
            if restarts > settings.POLLING_MAX_RESTARTS:
                raise
            logger.error("Polling failed (%s), restarting in %.1f s (%s/%s)",
                         e, delay, restarts, settings.POLLING_MAX_RESTARTS)
            await asyncio.sleep(delay)
            delay = min(delay * 2, settings.POLLING_BACKOFF_MAX)


async def main() -> None:
    """Запуск бота."""
    db = DatabaseService(db_path=settings.DATABASE_PATH)
    await db.connect()

    bot = Bot(token=settings.BOT_TOKEN)
    store = EventStore(db)
    assistant = Assistant()
    scheduler = ReminderScheduler(store, TelegramNotifier(bot))

    # Сервисы передаются в хендлеры через workflow data
    dp = Dispatcher(
        store=store,
        flow=ConfirmationFlow(store),
        assistant=assistant,
        commands=CommandRouter(store, assistant),
    )
    dp.message.outer_middleware(ChatLogMiddleware())
    dp.include_router(router)

    logger.info("%s %s starting...", settings.APP_NAME, settings.APP_VERSION)

    # Запускаем периодическую проверку напоминаний в фоне
    reminder_task = asyncio.create_task(scheduler.run(settings.REMINDER_CHECK_INTERVAL))

    try:
        await run_polling(dp, bot)
    finally:
        # Текущая проверка напоминаний дорабатывает до конца
        scheduler.stop()
        await reminder_task
        await bot.session.close()
        await db.disconnect()
        logger.info("Bot stopped")


def run_bot() -> None:
    """Синхронная обёртка для запуска бота."""
    setup_logging()

    missing = settings.missing_secrets()
    if missing:
        logger.error("%s must be set in the environment or .env file", " and ".join(missing))
        sys.exit(1)

    try:
        asyncio.run(main())
    except TelegramUnauthorizedError:
        logger.error("BOT_TOKEN was rejected by Telegram")
        sys.exit(1)


if __name__ == "__main__":
    run_bot()
