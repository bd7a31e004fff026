"""
Хранилище событий, напоминаний и журнала сообщений.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from calbot.app.exceptions import ValidationError
from calbot.app.models import ChatMessage, Event, EventCreate, Reminder, ReminderCreate
from calbot.app.services.database import DatabaseService
from calbot.app.utils import format_timestamp, local_now


logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def _date_key(value: DateLike) -> str:
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value).strip()).isoformat()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e


def _row_to_message(row: dict) -> ChatMessage:
    return ChatMessage(
        id=row["id"],
        chat_id=row["chat_id"],
        user_id=row["user_id"],
        username=row.get("username"),
        text=row["message_text"],
        timestamp=row["timestamp"],
    )


class EventStore:
    """
    Операции над событиями и напоминаниями.

    Каждый вызов атомарен: изменения фиксируются одной транзакцией
    через DatabaseService, который выполняет записи по одной.
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    # События

    async def add_event(
        self,
        date: DateLike,
        time: str,
        description: str,
        participants: Optional[str] = None,
        message_link: Optional[str] = None,
        chat_id: Optional[int] = None,
    ) -> int:
        """Сохраняет событие и возвращает его ID."""
        if not date or not time:
            raise ValidationError("Both date and time are required")
        try:
            event = EventCreate(
                date=_date_key(date),
                time=str(time).strip(),
                description=(description or "").strip(),
                participants=participants,
                message_link=message_link,
                chat_id=chat_id,
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e

        event_id = await self.db.insert("events", {
            "date": event.date.isoformat(),
            "time": event.time,
            "description": event.description,
            "participants": event.participants,
            "message_link": event.message_link,
            "chat_id": event.chat_id,
            "created_at": format_timestamp(local_now()),
        })
        logger.info("Event %s added for %s %s", event_id, event.date, event.time)
        return event_id

    async def get_event(self, event_id: int) -> Optional[Event]:
        row = await self.db.fetch_one("SELECT * FROM events WHERE id = ?", (event_id,))
        return Event.model_validate(row) if row else None

    async def get_events(self, day: DateLike) -> List[Event]:
        """События на дату, по возрастанию времени."""
        rows = await self.db.fetch_all(
            "SELECT * FROM events WHERE date = ? ORDER BY time, id",
            (_date_key(day),)
        )
        return [Event.model_validate(row) for row in rows]

    async def delete_event(self, event_id: int) -> int:
        """Удаляет событие (и его напоминания). Повторное удаление не ошибка."""
        deleted = await self.db.delete("events", "id = ?", (event_id,))
        if deleted:
            logger.info("Event %s deleted", event_id)
        return deleted

    # Напоминания

    async def add_reminder(self, event_id: int, remind_at: datetime) -> int:
        """Создаёт напоминание для существующего события."""
        if await self.get_event(event_id) is None:
            raise ValidationError(f"Event {event_id} does not exist")

        reminder = ReminderCreate(event_id=event_id, remind_at=remind_at.replace(microsecond=0))
        reminder_id = await self.db.insert("reminders", {
            "event_id": reminder.event_id,
            "remind_at": format_timestamp(reminder.remind_at),
        })
        logger.info("Reminder %s for event %s at %s", reminder_id, event_id, remind_at)
        return reminder_id

    async def get_upcoming_reminders(self, now: Optional[datetime] = None) -> List[Tuple[Reminder, Event]]:
        """Напоминания с remind_at <= now вместе с событиями, по возрастанию remind_at."""
        now = now or local_now()
        rows = await self.db.fetch_all(
            """SELECT r.id AS reminder_id, r.remind_at, e.*
               FROM reminders r
               JOIN events e ON r.event_id = e.id
               WHERE r.remind_at <= ?
               ORDER BY r.remind_at, r.id""",
            (format_timestamp(now),)
        )
        due = []
        for row in rows:
            reminder = Reminder(id=row["reminder_id"], event_id=row["id"], remind_at=row["remind_at"])
            due.append((reminder, Event.model_validate(row)))
        return due

    async def delete_reminder(self, reminder_id: int) -> int:
        return await self.db.delete("reminders", "id = ?", (reminder_id,))

    # Журнал сообщений

    async def add_message(
        self,
        chat_id: int,
        user_id: int,
        username: Optional[str],
        text: str,
        timestamp: Optional[datetime] = None,
    ) -> int:
        return await self.db.insert("messages", {
            "chat_id": chat_id,
            "user_id": user_id,
            "username": username,
            "message_text": text,
            "timestamp": format_timestamp(timestamp or local_now()),
        })

    async def get_messages(self, chat_id: int, hours: int, now: Optional[datetime] = None) -> List[ChatMessage]:
        """Сообщения чата за последние hours часов, по времени."""
        since = (now or local_now()) - timedelta(hours=hours)
        rows = await self.db.fetch_all(
            """SELECT * FROM messages
               WHERE chat_id = ? AND timestamp > ?
               ORDER BY timestamp, id""",
            (chat_id, format_timestamp(since))
        )
        return [_row_to_message(row) for row in rows]
