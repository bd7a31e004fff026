"""
Обработчики команд бота.
"""

import logging
from aiogram import Router
from aiogram.types import ErrorEvent

from .commands import router as commands_router
from .proposals import router as proposals_router
from .messages import router as messages_router

logger = logging.getLogger(__name__)

router = Router()

# Команды регистрируются первыми, чтобы "/..." не попадали в поиск событий
router.include_router(commands_router)
router.include_router(proposals_router)
router.include_router(messages_router)


@router.errors()
async def on_error(event: ErrorEvent) -> bool:
    """Ошибка одного обновления не должна останавливать бота."""
    logger.error("Error while handling update %s", event.update.update_id, exc_info=event.exception)
    return True
