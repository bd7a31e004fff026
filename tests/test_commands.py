"""
Unit tests for explicit commands.

Tests:
- add/show/delete/remind replies
- aliases and bot-addressed commands
- summarize with a stubbed assistant
- failures turn into short replies
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from calbot.app.exceptions import GenerationError
from calbot.app.services.commands import (
    GENERIC_ERROR,
    HELP_TEXT,
    UNKNOWN_COMMAND,
    CommandRouter,
    split_command,
)


NOW = datetime(2024, 1, 1, 9, 0)
CHAT_ID = 42


@pytest.fixture
def assistant():
    assistant = AsyncMock()
    assistant.summarize.return_value = "Alice and Bob planned a sync."
    return assistant


@pytest.fixture
def commands(store, assistant):
    return CommandRouter(store, assistant, clock=lambda: NOW)


def test_split_command():
    assert split_command("/add@CalBot tomorrow 5pm") == ("add", "tomorrow 5pm")
    assert split_command("/SHOW") == ("show", "")


class TestAdd:
    """Tests for /add."""

    @pytest.mark.asyncio
    async def test_add_event(self, commands, store):
        reply = await commands.handle(CHAT_ID, "/add Team sync tomorrow at 3pm with @alex")

        assert reply.startswith("Event added successfully!")
        assert "ID: 1" in reply
        assert "Date: 2024-01-02" in reply
        assert "Time: 15:00" in reply

        event = await store.get_event(1)
        assert event.chat_id == CHAT_ID
        assert event.participants == "@alex"

    @pytest.mark.asyncio
    async def test_add_without_date(self, commands, store):
        reply = await commands.handle(CHAT_ID, "/add Buy groceries")

        assert "couldn't find a date" in reply
        assert await store.get_events("2024-01-01") == []

    @pytest.mark.asyncio
    async def test_localized_alias(self, commands):
        reply = await commands.handle(CHAT_ID, "/добавить Lunch tomorrow at 12:30")

        assert reply.startswith("Event added successfully!")

    @pytest.mark.asyncio
    async def test_bot_addressed_command(self, commands):
        reply = await commands.handle(CHAT_ID, "/add@CalBot Lunch tomorrow at 12:30")

        assert "Time: 12:30" in reply


class TestShowDelete:
    """Tests for /show and /delete."""

    @pytest.mark.asyncio
    async def test_show_today_by_default(self, commands, store):
        await store.add_event("2024-01-01", "18:00", "Dinner")
        await store.add_event("2024-01-01", "10:00", "Standup")

        reply = await commands.handle(CHAT_ID, "/show")

        assert reply == (
            "Events for 2024-01-01:\n"
            "🕒 10:00 - Standup (#2)\n"
            "🕒 18:00 - Dinner (#1)"
        )

    @pytest.mark.asyncio
    async def test_show_explicit_date(self, commands, store):
        await store.add_event("2024-01-02", "15:00", "Team sync")

        assert "Team sync" in await commands.handle(CHAT_ID, "/show 2024-01-02")
        assert "Team sync" in await commands.handle(CHAT_ID, "/show tomorrow")

    @pytest.mark.asyncio
    async def test_show_empty(self, commands):
        assert await commands.handle(CHAT_ID, "/show 2024-02-02") == "No events found for 2024-02-02"

    @pytest.mark.asyncio
    async def test_delete(self, commands, store):
        event_id = await store.add_event("2024-01-02", "15:00", "Team sync")

        assert await commands.handle(CHAT_ID, f"/delete {event_id}") == f"Event {event_id} has been deleted."
        assert await store.get_event(event_id) is None
        assert await commands.handle(CHAT_ID, f"/delete {event_id}") == f"No event with ID {event_id}."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args", ["", "abc", "-1"])
    async def test_delete_invalid_id(self, commands, args):
        reply = await commands.handle(CHAT_ID, f"/delete {args}")

        assert "numeric event ID" in reply


class TestRemind:
    """Tests for /remind."""

    @pytest.mark.asyncio
    async def test_default_lead_time(self, commands, store):
        event_id = await store.add_event("2024-01-02", "15:00", "Team sync", chat_id=CHAT_ID)

        reply = await commands.handle(CHAT_ID, f"/remind {event_id}")

        assert reply == f"Reminder set for event {event_id} (Team sync) at 2024-01-02 14:45"
        due = await store.get_upcoming_reminders(datetime(2024, 1, 2, 14, 45))
        assert len(due) == 1

    @pytest.mark.asyncio
    async def test_minutes_before(self, commands, store):
        event_id = await store.add_event("2024-01-02", "15:00", "Team sync", chat_id=CHAT_ID)

        reply = await commands.handle(CHAT_ID, f"/remind {event_id} 30")

        assert reply.endswith("at 2024-01-02 14:30")

    @pytest.mark.asyncio
    async def test_missing_event(self, commands):
        assert await commands.handle(CHAT_ID, "/remind 99") == "No event with ID 99."

    @pytest.mark.asyncio
    async def test_usage(self, commands):
        assert (await commands.handle(CHAT_ID, "/remind")).startswith("Usage: /remind")

    @pytest.mark.asyncio
    async def test_natural_language_moment(self, commands, store):
        event_id = await store.add_event("2024-01-02", "15:00", "Team sync", chat_id=CHAT_ID)

        reply = await commands.handle(CHAT_ID, f"/remind {event_id} tomorrow at 9am")

        assert reply == f"Reminder set for event {event_id} (Team sync) at 2024-01-02 09:00"
        due = await store.get_upcoming_reminders(datetime(2024, 1, 2, 9, 0))
        assert len(due) == 1

    @pytest.mark.asyncio
    async def test_unparseable_moment(self, commands, store):
        event_id = await store.add_event("2024-01-02", "15:00", "Team sync", chat_id=CHAT_ID)

        reply = await commands.handle(CHAT_ID, f"/remind {event_id} blorp")

        assert reply.startswith("Usage: /remind")
        assert await store.get_upcoming_reminders(datetime(2030, 1, 1)) == []


class TestSummarize:
    """Tests for /summarize."""

    @pytest.mark.asyncio
    async def test_summary(self, commands, store, assistant):
        await store.add_message(CHAT_ID, 1, "alice", "Sync tomorrow?", timestamp=NOW - timedelta(hours=1))
        await store.add_message(CHAT_ID, 2, "bob", "Sure", timestamp=NOW - timedelta(minutes=30))

        reply = await commands.handle(CHAT_ID, "/summarize 2")

        assert reply == "Summary of the last 2 hours:\n\nAlice and Bob planned a sync."
        messages = assistant.summarize.call_args.args[0]
        assert [m.text for m in messages] == ["Sync tomorrow?", "Sure"]

    @pytest.mark.asyncio
    async def test_no_messages(self, commands, assistant):
        reply = await commands.handle(CHAT_ID, "/summarize")

        assert reply == "No messages found for the specified period."
        assistant.summarize.assert_not_called()

    @pytest.mark.asyncio
    async def test_generation_error(self, commands, store, assistant):
        await store.add_message(CHAT_ID, 1, "alice", "hello", timestamp=NOW - timedelta(hours=1))
        assistant.summarize.side_effect = GenerationError("quota exceeded")

        assert await commands.handle(CHAT_ID, "/summarize") == "Error generating summary. Please try again."


class TestRouting:
    """Tests for dispatch and error handling."""

    @pytest.mark.asyncio
    async def test_unknown_command(self, commands):
        assert await commands.handle(CHAT_ID, "/dance") == UNKNOWN_COMMAND

    @pytest.mark.asyncio
    async def test_help(self, commands):
        assert await commands.handle(CHAT_ID, "/start") == HELP_TEXT

    @pytest.mark.asyncio
    async def test_unexpected_failure(self):
        store = AsyncMock()
        store.get_events.side_effect = RuntimeError("boom")
        commands = CommandRouter(store, clock=lambda: NOW)

        assert await commands.handle(CHAT_ID, "/show") == GENERIC_ERROR
