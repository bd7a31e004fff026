"""
Подтверждение событий, найденных в обычных сообщениях.

Предложение живёт только в памяти и ищется по случайному токену из
callback-кнопки. Жизненный цикл: Proposed -> Confirmed | Rejected | Expired.
Повторное подтверждение (двойной клик) ничего не создаёт и возвращает
ALREADY_HANDLED.
"""

import asyncio
import logging
import secrets
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Optional

from calbot.app.config import settings
from calbot.app.exceptions import PersistenceError
from calbot.app.models import (
    ConfirmationResult,
    ConfirmationStatus,
    Extraction,
    PendingProposal,
)
from calbot.app.services.event_store import EventStore
from calbot.app.utils import local_now


logger = logging.getLogger(__name__)


class ConfirmationFlow:
    """Хранит ожидающие предложения и переводит их в события."""

    def __init__(
        self,
        store: EventStore,
        ttl_minutes: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        self.store = store
        self.ttl = timedelta(minutes=ttl_minutes if ttl_minutes is not None else settings.PROPOSAL_TTL_MINUTES)
        self.limit = limit or settings.PROPOSAL_LIMIT
        self._proposals: "OrderedDict[str, PendingProposal]" = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._proposals)

    def propose(
        self,
        chat_id: int,
        extraction: Extraction,
        participants: Optional[str] = None,
        message_link: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PendingProposal:
        """Создаёт предложение по результату распознавания."""
        now = now or local_now()
        self._prune(now)

        proposal = PendingProposal(
            token=secrets.token_urlsafe(12),
            chat_id=chat_id,
            date=extraction.date,
            time=extraction.time,
            description=extraction.description,
            participants=participants,
            message_link=message_link,
            created_at=now,
        )
        self._proposals[proposal.token] = proposal

        while len(self._proposals) > self.limit:
            token, _ = self._proposals.popitem(last=False)
            logger.debug("Proposal %s evicted (limit %s)", token, self.limit)
        return proposal

    def get(self, token: str) -> Optional[PendingProposal]:
        return self._proposals.get(token)

    async def accept(self, token: str) -> ConfirmationResult:
        """
        Подтверждает предложение: сохраняет событие ровно с теми полями,
        что были показаны пользователю.

        Raises:
            PersistenceError: если не удалось сохранить; предложение остаётся
                доступным для повторной попытки
        """
        async with self._lock:
            proposal = self._proposals.pop(token, None)
            if proposal is None:
                return ConfirmationResult(status=ConfirmationStatus.ALREADY_HANDLED)

            try:
                event_id = await self.store.add_event(
                    proposal.date,
                    proposal.time,
                    proposal.description,
                    participants=proposal.participants,
                    message_link=proposal.message_link,
                    chat_id=proposal.chat_id,
                )
            except PersistenceError:
                self._proposals[token] = proposal
                raise

        logger.info("Proposal %s confirmed as event %s", token, event_id)
        event = await self.store.get_event(event_id)
        return ConfirmationResult(status=ConfirmationStatus.CONFIRMED, event=event)

    def reject(self, token: str) -> bool:
        """Отклоняет предложение. False, если оно уже обработано или истекло."""
        proposal = self._proposals.pop(token, None)
        if proposal:
            logger.info("Proposal %s rejected", token)
        return proposal is not None

    def _prune(self, now: datetime) -> None:
        """Удаляет просроченные предложения (самые старые идут первыми)."""
        while self._proposals:
            token, proposal = next(iter(self._proposals.items()))
            if now - proposal.created_at < self.ttl:
                break
            del self._proposals[token]
            logger.debug("Proposal %s expired", token)
