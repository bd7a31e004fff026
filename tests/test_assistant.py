"""
Unit tests for the Gemini assistant wrapper.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core.exceptions import ResourceExhausted

from calbot.app.exceptions import GenerationError
from calbot.app.models import ChatMessage
from calbot.app.services.assistant import FALLBACK_REPLY, Assistant


def fake_model(text="Short summary.", error=None):
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=MagicMock(text=text))
    return model


class TestAssistant:
    """Tests for Assistant."""

    @pytest.mark.asyncio
    async def test_summarize_prompt(self):
        model = fake_model()
        assistant = Assistant(model=model)
        messages = [
            ChatMessage(id=1, chat_id=1, user_id=10, username="alice", text="Sync tomorrow?",
                        timestamp=datetime(2024, 1, 1, 8, 0)),
            ChatMessage(id=2, chat_id=1, user_id=11, username=None, text="Sure",
                        timestamp=datetime(2024, 1, 1, 8, 5)),
        ]

        assert await assistant.summarize(messages) == "Short summary."

        prompt = model.generate_content_async.call_args.args[0]
        assert prompt.startswith("Summarize the following conversation:")
        assert "alice: Sync tomorrow?" in prompt
        assert "11: Sure" in prompt

    @pytest.mark.asyncio
    async def test_api_error_raises(self):
        assistant = Assistant(model=fake_model(error=ResourceExhausted("quota")))

        with pytest.raises(GenerationError):
            await assistant.generate("hi")

    @pytest.mark.asyncio
    async def test_empty_response_raises(self):
        assistant = Assistant(model=fake_model(text="   "))

        with pytest.raises(GenerationError):
            await assistant.generate("hi")

    @pytest.mark.asyncio
    async def test_respond_falls_back(self):
        # Заблокированный ответ: response.text бросает ValueError
        assistant = Assistant(model=fake_model(error=ValueError("blocked")))

        assert await assistant.respond("@calbot hello") == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_respond(self):
        model = fake_model(text="Hello! How can I help?")

        assert await Assistant(model=model).respond("@calbot hello") == "Hello! How can I help?"
        assert "@calbot hello" in model.generate_content_async.call_args.args[0]
