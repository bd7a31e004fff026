"""
Кнопки Yes/No под найденным событием.
"""

import logging
from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, InlineKeyboardButton, Message

from calbot.app.exceptions import PersistenceError, ValidationError
from calbot.app.models import ConfirmationStatus
from calbot.app.services.confirmation import ConfirmationFlow

router = Router()
logger = logging.getLogger(__name__)

CALLBACK_PREFIX = "proposal"


def get_proposal_keyboard(token: str) -> InlineKeyboardMarkup:
    """Создаёт клавиатуру подтверждения. В callback_data только токен."""
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(text="Yes", callback_data=f"{CALLBACK_PREFIX}:accept:{token}"),
        InlineKeyboardButton(text="No", callback_data=f"{CALLBACK_PREFIX}:reject:{token}"),
    ]])


@router.callback_query(F.data.startswith(f"{CALLBACK_PREFIX}:"))
async def callback_proposal(callback: CallbackQuery, flow: ConfirmationFlow):
    """Подтверждение или отказ по предложенному событию."""
    # Формат: proposal:action:token
    parts = callback.data.split(":")
    if len(parts) != 3:
        await callback.answer("Invalid data", show_alert=True)
        return

    action, token = parts[1], parts[2]

    if action == "reject":
        flow.reject(token)
        await callback.answer()
        if isinstance(callback.message, Message):
            try:
                await callback.message.delete()
            except TelegramBadRequest as e:
                logger.warning("Could not delete proposal prompt: %s", e)
        return

    if action != "accept":
        await callback.answer("Invalid data", show_alert=True)
        return

    try:
        result = await flow.accept(token)
    except (PersistenceError, ValidationError) as e:
        logger.error("Callback query error: %s", e)
        await callback.answer("An error occurred", show_alert=True)
        return

    if result.status == ConfirmationStatus.ALREADY_HANDLED:
        await callback.answer("Already handled")
        return

    await callback.answer("Event added successfully!")
    if isinstance(callback.message, Message) and result.event:
        try:
            await callback.message.edit_text(
                "Event added successfully!\n" + result.event.format_details()
            )
        except TelegramBadRequest as e:
            logger.warning("Could not update proposal prompt: %s", e)
