"""Composition root for the shared chat state."""

from typing import Optional

from ..config import Settings
from ..domain.models import Message, MessageKind
from ..repositories.base import Repository
from ..repositories.memory import InMemoryRepository
from .clock import Clock
from .message_log import MessageLog
from .registry import ParticipantRegistry

JOINED_TEXT = "joined"
LEFT_TEXT = "left"


class ChatRoom:
    """Holds the registry, the log and the clock they share."""

    def __init__(
        self,
        settings: Settings,
        repository: Optional[Repository] = None,
        clock: Optional[Clock] = None
    ) -> None:
        self.settings = settings
        self.clock = clock or Clock()
        self.repository = repository or InMemoryRepository()
        self.registry = ParticipantRegistry(self.repository, self.clock)
        self.messages = MessageLog(self.repository, settings.BROADCAST_TARGET)

    @property
    def broadcast(self) -> str:
        return self.settings.BROADCAST_TARGET

    def timestamp(self) -> str:
        return self.clock.wall().strftime(self.settings.MESSAGE_TIME_FORMAT)

    def new_message(self, sender: str, to: str, kind: MessageKind, text: str) -> Message:
        return Message(sender=sender, to=to, kind=kind, text=text, time=self.timestamp())

    def status_message(self, name: str, text: str) -> Message:
        """System notice about ``name`` addressed to everyone."""
        return self.new_message(name, self.broadcast, MessageKind.STATUS, text)
