"""
Обычные сообщения: ответы на упоминания и поиск событий в тексте.
"""

import asyncio
import logging
from typing import Optional
from aiogram import Router, F, Bot
from aiogram.types import Message

from calbot.app.exceptions import ExtractionNotFound
from calbot.app.services.assistant import Assistant
from calbot.app.services.confirmation import ConfirmationFlow
from calbot.app.services.extractor import extract, extract_participants

from .proposals import get_proposal_keyboard

router = Router()
logger = logging.getLogger(__name__)


def build_message_link(message: Message) -> Optional[str]:
    """Ссылка на сообщение (только для публичных чатов и супергрупп)."""
    if message.chat.username:
        return f"https://t.me/{message.chat.username}/{message.message_id}"
    chat_id = str(message.chat.id)
    if message.chat.type == "supergroup" and chat_id.startswith("-100"):
        return f"https://t.me/c/{chat_id[4:]}/{message.message_id}"
    return None


@router.message(F.text, ~F.text.startswith("/"))
async def handle_message(message: Message, bot: Bot, flow: ConfirmationFlow, assistant: Assistant):
    """Отвечает на упоминание бота или предлагает сохранить найденное событие."""
    me = await bot.me()
    if me.username and f"@{me.username}".lower() in message.text.lower():
        reply = await assistant.respond(message.text)
        await message.answer(reply)
        return

    try:
        # Поиск по n-граммам выполняется в отдельном потоке
        extraction = await asyncio.to_thread(extract, message.text)
    except ExtractionNotFound:
        # Обычная переписка без дат
        return

    proposal = flow.propose(
        message.chat.id,
        extraction,
        participants=extract_participants(message.text, exclude=[me.username]),
        message_link=build_message_link(message),
    )
    logger.info("Proposed event %s in chat %s", proposal.token, message.chat.id)
    await message.answer(
        proposal.format_prompt(),
        reply_markup=get_proposal_keyboard(proposal.token)
    )
