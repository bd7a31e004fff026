"""
Генерация текста через Gemini: пересказ переписки и ответы на упоминания.
"""

import logging
from typing import Iterable, Optional

import google.generativeai as genai
from google.api_core.exceptions import GoogleAPIError

from calbot.app.config import settings
from calbot.app.exceptions import GenerationError
from calbot.app.models import ChatMessage


logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm sorry, I couldn't generate a response. Please try again."


class Assistant:
    """Обёртка над генеративной моделью. Без состояния между вызовами."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None, model=None):
        self.model_name = model_name or settings.GEMINI_MODEL
        if model is None:
            genai.configure(api_key=api_key or settings.GEMINI_API_KEY)
            model = genai.GenerativeModel(self.model_name)
        self._model = model

    async def generate(self, prompt: str) -> str:
        """Возвращает текст ответа модели на prompt."""
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except (GoogleAPIError, ValueError) as e:
            # ValueError: ответ заблокирован фильтрами и не содержит текста
            logger.error("Gemini generation failed: %s", e)
            raise GenerationError(str(e)) from e

        if not text or not text.strip():
            raise GenerationError("Empty response")
        return text.strip()

    async def summarize(self, messages: Iterable[ChatMessage]) -> str:
        lines = "\n".join(f"{m.username or m.user_id}: {m.text}" for m in messages)
        return await self.generate(f"Summarize the following conversation:\n{lines}")

    async def respond(self, text: str) -> str:
        """Ответ на сообщение с упоминанием бота. Ошибки не пробрасываются."""
        try:
            return await self.generate(
                f'As a helpful calendar assistant, respond to this message: "{text}"'
            )
        except GenerationError:
            return FALLBACK_REPLY
