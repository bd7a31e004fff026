"""
Обработчик явных команд (/add, /delete, /show, /remind, /summarize).
"""

from aiogram import Router, F, Bot
from aiogram.types import Message

from calbot.app.services.commands import CommandRouter

router = Router()


@router.message(F.text.startswith("/"))
async def cmd_any(message: Message, bot: Bot, commands: CommandRouter):
    """Передаёт команду в CommandRouter и отправляет ответ."""
    head = message.text.split(maxsplit=1)[0]
    if "@" in head:
        # Команда адресована другому боту в группе
        me = await bot.me()
        if head.split("@", 1)[1].lower() != (me.username or "").lower():
            return

    reply = await commands.handle(message.chat.id, message.text)
    await message.answer(reply)
