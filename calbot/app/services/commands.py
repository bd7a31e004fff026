"""
Явные команды пользователя: add, delete, show, remind, summarize.

CommandRouter возвращает текст ответа и никогда не пробрасывает ошибки:
каждый обработчик сам превращает сбой в короткое сообщение.
"""

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Awaitable, Callable, Dict, Optional, Tuple

from calbot.app.config import settings
from calbot.app.exceptions import (
    ExtractionNotFound,
    GenerationError,
    PersistenceError,
    ValidationError,
)
from calbot.app.services.assistant import Assistant
from calbot.app.services.event_store import EventStore
from calbot.app.services.extractor import (
    extract,
    extract_participants,
    parse_date,
    parse_moment,
)
from calbot.app.utils import local_now


logger = logging.getLogger(__name__)

# Команда -> псевдонимы (без "/")
COMMAND_ALIASES: Dict[str, Tuple[str, ...]] = {
    "add": ("add", "добавить"),
    "delete": ("delete", "удалить"),
    "show": ("show", "показать"),
    "remind": ("remind", "напомнить"),
    "summarize": ("summarize", "пересказать"),
    "help": ("help", "start", "помощь"),
}

ALL_COMMANDS = tuple(alias for aliases in COMMAND_ALIASES.values() for alias in aliases)

HELP_TEXT = (
    "I keep track of events mentioned in this chat.\n\n"
    "/add <text with date and time> - add an event\n"
    "/show [date] - events for a date (today by default)\n"
    "/delete <id> - delete an event\n"
    "/remind <id> [minutes before | when] - set a reminder\n"
    "/summarize [hours] - summarize recent messages\n\n"
    "I also notice dates in regular messages and offer to save them."
)
UNKNOWN_COMMAND = "Unknown command. Please try again."
GENERIC_ERROR = "Sorry, there was an error processing your command."


def split_command(text: str) -> Tuple[str, str]:
    """'/add@MyBot tomorrow 5pm' -> ('add', 'tomorrow 5pm')."""
    text = (text or "").strip()
    head, _, args = text.partition(" ")
    verb = head.lstrip("/").split("@", 1)[0].lower()
    return verb, args.strip()


def parse_event_id(value: str) -> int:
    value = (value or "").strip()
    if not value.isdigit():
        raise ValidationError(f"Invalid event ID: {value!r}")
    return int(value)


class CommandRouter:
    """Разбирает команду и вызывает нужный обработчик."""

    def __init__(
        self,
        store: EventStore,
        assistant: Optional[Assistant] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.store = store
        self.assistant = assistant
        self.clock = clock
        handlers: Dict[str, Callable[[int, str], Awaitable[str]]] = {
            "add": self.handle_add,
            "delete": self.handle_delete,
            "show": self.handle_show,
            "remind": self.handle_remind,
            "summarize": self.handle_summarize,
            "help": self.handle_help,
        }
        self._routes = {
            alias: handlers[command]
            for command, aliases in COMMAND_ALIASES.items()
            for alias in aliases
        }

    async def handle(self, chat_id: int, text: str) -> str:
        """Выполняет команду из текста сообщения и возвращает ответ."""
        verb, args = split_command(text)
        handler = self._routes.get(verb)
        if handler is None:
            return UNKNOWN_COMMAND
        try:
            return await handler(chat_id, args)
        except Exception:
            logger.exception("Command /%s failed", verb)
            return GENERIC_ERROR

    async def handle_add(self, chat_id: int, args: str) -> str:
        try:
            extraction = await asyncio.to_thread(extract, args, self.clock())
            event_id = await self.store.add_event(
                extraction.date,
                extraction.time,
                extraction.description,
                participants=extract_participants(args),
                chat_id=chat_id,
            )
        except ExtractionNotFound:
            return (
                "I couldn't find a date or time in that.\n"
                "Example: /add Team sync tomorrow at 3pm"
            )
        except (ValidationError, PersistenceError) as e:
            logger.error("Error adding event: %s", e)
            return "Error adding event. Please check the format and try again."

        return (
            "Event added successfully!\n"
            f"ID: {event_id}\n"
            f"Date: {extraction.date}\n"
            f"Time: {extraction.time}\n"
            f"Description: {extraction.description}"
        )

    async def handle_delete(self, chat_id: int, args: str) -> str:
        try:
            event_id = parse_event_id(args)
        except ValidationError:
            return "Please provide a numeric event ID, e.g. /delete 3"

        try:
            deleted = await self.store.delete_event(event_id)
        except PersistenceError as e:
            logger.error("Error deleting event %s: %s", event_id, e)
            return "Error deleting event. Please check the ID and try again."

        if not deleted:
            return f"No event with ID {event_id}."
        return f"Event {event_id} has been deleted."

    async def handle_show(self, chat_id: int, args: str) -> str:
        now = self.clock()
        day = parse_date(args, now=now) if args else now.date()
        if day is None:
            return "I couldn't understand that date. Try /show 2024-01-02 or /show tomorrow"

        try:
            events = await self.store.get_events(day)
        except PersistenceError as e:
            logger.error("Error getting events for %s: %s", day, e)
            return "Error showing events. Please try again."

        if not events:
            return f"No events found for {day.isoformat()}"

        events_list = "\n".join(
            f"🕒 {e.time} - {e.description} (#{e.id})" for e in events
        )
        return f"Events for {day.isoformat()}:\n{events_list}"

    async def handle_remind(self, chat_id: int, args: str) -> str:
        usage = "Usage: /remind <event id> [minutes before | when], e.g. /remind 3 30"
        id_part, _, when = args.partition(" ")
        try:
            event_id = parse_event_id(id_part)
        except ValidationError:
            return usage

        try:
            event = await self.store.get_event(event_id)
            if event is None:
                return f"No event with ID {event_id}."

            starts_at = datetime.combine(event.date, time.fromisoformat(event.time))
            when = when.strip()
            if not when:
                remind_at = starts_at - timedelta(minutes=settings.REMINDER_LEAD_MINUTES)
            elif when.isdigit():
                remind_at = starts_at - timedelta(minutes=int(when))
            else:
                remind_at = parse_moment(when, now=self.clock())
                if remind_at is None:
                    return usage

            await self.store.add_reminder(event_id, remind_at)
        except (ValidationError, PersistenceError) as e:
            logger.error("Error setting reminder for event %s: %s", event_id, e)
            return "Error setting reminder. Please try again."

        return (
            f"Reminder set for event {event_id} ({event.description}) "
            f"at {remind_at.strftime('%Y-%m-%d %H:%M')}"
        )

    async def handle_summarize(self, chat_id: int, args: str) -> str:
        hours = int(args) if args.isdigit() and int(args) > 0 else settings.SUMMARY_DEFAULT_HOURS
        if self.assistant is None:
            return "Summaries are not available."

        try:
            messages = await self.store.get_messages(chat_id, hours, now=self.clock())
            if not messages:
                return "No messages found for the specified period."
            summary = await self.assistant.summarize(messages)
        except (GenerationError, PersistenceError) as e:
            logger.error("Error generating summary for chat %s: %s", chat_id, e)
            return "Error generating summary. Please try again."

        return f"Summary of the last {hours} hours:\n\n{summary}"

    async def handle_help(self, chat_id: int, args: str) -> str:
        return HELP_TEXT
