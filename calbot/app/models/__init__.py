"""
Модели данных calbot.
"""

from .event import Event, EventCreate, EventStatus
from .reminder import Reminder, ReminderCreate
from .message import ChatMessage
from .proposal import Extraction, PendingProposal, ConfirmationResult, ConfirmationStatus

__all__ = [
    # Event
    "Event", "EventCreate", "EventStatus",
    # Reminder
    "Reminder", "ReminderCreate",
    # Message
    "ChatMessage",
    # Proposal
    "Extraction", "PendingProposal", "ConfirmationResult", "ConfirmationStatus",
]
