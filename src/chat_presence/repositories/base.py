"""Base repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..domain.models import Message, Participant


class StoreError(Exception):
    """Raised by repositories when the backing store cannot serve a call."""


class Repository(ABC):
    """Abstract store over the participants and messages record sets."""

    @abstractmethod
    async def find_participant(self, name: str) -> Optional[Participant]:
        """Retrieve a participant by name."""
        pass

    @abstractmethod
    async def insert_participant(self, participant: Participant) -> Participant:
        """Insert a new participant record."""
        pass

    @abstractmethod
    async def update_participant(self, participant: Participant) -> Participant:
        """Replace the stored participant with the same name."""
        pass

    @abstractmethod
    async def delete_participant(self, name: str) -> bool:
        """Delete a participant; returns False if it was absent."""
        pass

    @abstractmethod
    async def list_participants(self) -> List[Participant]:
        """List participants in insertion order."""
        pass

    @abstractmethod
    async def find_message(self, message_id: str) -> Optional[Message]:
        """Retrieve a message by ID."""
        pass

    @abstractmethod
    async def insert_message(self, message: Message) -> Message:
        """Append a message to the log."""
        pass

    @abstractmethod
    async def update_message(self, message: Message) -> Message:
        """Replace the stored message with the same ID."""
        pass

    @abstractmethod
    async def delete_message(self, message_id: str) -> bool:
        """Delete a message; returns False if it was absent."""
        pass

    @abstractmethod
    async def list_messages(self) -> List[Message]:
        """List all messages oldest first."""
        pass
