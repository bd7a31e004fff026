"""
Unit tests for the event confirmation flow.

Tests:
- accept stores exactly the proposed fields
- double accept creates one event
- reject, expiry and size limit
- storage failure keeps the proposal
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from calbot.app.exceptions import PersistenceError
from calbot.app.models import ConfirmationStatus, Extraction
from calbot.app.services.confirmation import ConfirmationFlow


@pytest.fixture
def extraction():
    return Extraction(date="2024-01-02", time="15:00", description="Add meeting with Alex")


class TestConfirmationFlow:
    """Tests for ConfirmationFlow."""

    @pytest.mark.asyncio
    async def test_accept_creates_event(self, store, extraction, now):
        flow = ConfirmationFlow(store)
        proposal = flow.propose(42, extraction, participants="@alex", now=now)

        result = await flow.accept(proposal.token)

        assert result.status == ConfirmationStatus.CONFIRMED
        assert result.event.id == 1
        events = await store.get_events("2024-01-02")
        assert len(events) == 1
        assert events[0].time == "15:00"
        assert events[0].description == "Add meeting with Alex"
        assert events[0].participants == "@alex"
        assert events[0].chat_id == 42
        assert len(flow) == 0

    @pytest.mark.asyncio
    async def test_double_accept_creates_one_event(self, store, extraction, now):
        flow = ConfirmationFlow(store)
        proposal = flow.propose(42, extraction, now=now)

        results = await asyncio.gather(flow.accept(proposal.token), flow.accept(proposal.token))

        statuses = sorted(r.status.value for r in results)
        assert statuses == ["already_handled", "confirmed"]
        assert len(await store.get_events("2024-01-02")) == 1

    @pytest.mark.asyncio
    async def test_sequential_double_accept(self, store, extraction, now):
        flow = ConfirmationFlow(store)
        proposal = flow.propose(42, extraction, now=now)

        await flow.accept(proposal.token)
        second = await flow.accept(proposal.token)

        assert second.status == ConfirmationStatus.ALREADY_HANDLED
        assert second.event is None
        assert len(await store.get_events("2024-01-02")) == 1

    @pytest.mark.asyncio
    async def test_reject_does_not_store(self, store, extraction, now):
        flow = ConfirmationFlow(store)
        proposal = flow.propose(42, extraction, now=now)

        assert flow.reject(proposal.token) is True
        assert flow.reject(proposal.token) is False

        result = await flow.accept(proposal.token)
        assert result.status == ConfirmationStatus.ALREADY_HANDLED
        assert await store.get_events("2024-01-02") == []

    @pytest.mark.asyncio
    async def test_unknown_token(self, store):
        flow = ConfirmationFlow(store)

        result = await flow.accept("missing")
        assert result.status == ConfirmationStatus.ALREADY_HANDLED

    def test_expired_proposals_pruned(self, extraction, now):
        flow = ConfirmationFlow(AsyncMock(), ttl_minutes=60)
        old = flow.propose(1, extraction, now=now)
        fresh = flow.propose(1, extraction, now=now + timedelta(minutes=61))

        assert flow.get(old.token) is None
        assert flow.get(fresh.token) is not None

    def test_limit_evicts_oldest(self, extraction, now):
        flow = ConfirmationFlow(AsyncMock(), limit=2)
        tokens = [flow.propose(1, extraction, now=now).token for _ in range(3)]

        assert len(flow) == 2
        assert flow.get(tokens[0]) is None
        assert flow.get(tokens[2]) is not None

    def test_tokens_fit_callback_data(self, extraction, now):
        flow = ConfirmationFlow(AsyncMock())
        proposal = flow.propose(1, extraction, now=now)

        assert ":" not in proposal.token
        assert len(f"proposal:accept:{proposal.token}".encode()) <= 64

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_proposal(self, extraction, now):
        failing_store = AsyncMock()
        failing_store.add_event.side_effect = PersistenceError("disk I/O error")
        flow = ConfirmationFlow(failing_store)
        proposal = flow.propose(1, extraction, now=now)

        with pytest.raises(PersistenceError):
            await flow.accept(proposal.token)

        assert flow.get(proposal.token) is not None
