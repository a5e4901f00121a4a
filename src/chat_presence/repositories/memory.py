"""In-memory repository implementation."""

import asyncio
from typing import Dict, List, Optional

import structlog

from ..domain.models import Message, Participant
from .base import Repository, StoreError

logger = structlog.get_logger()


class InMemoryRepository(Repository):
    """Async-safe in-memory store.

    Records are copied on the way in and out so callers can only change
    stored state through the update methods.
    """

    def __init__(self) -> None:
        self._participants: Dict[str, Participant] = {}
        self._messages: Dict[str, Message] = {}
        self._async_lock = asyncio.Lock()
        logger.info("repository_initialized", backend="memory")

    async def find_participant(self, name: str) -> Optional[Participant]:
        async with self._async_lock:
            participant = self._participants.get(name)
            return participant.model_copy() if participant else None

    async def insert_participant(self, participant: Participant) -> Participant:
        async with self._async_lock:
            if participant.name in self._participants:
                raise StoreError(f"Duplicate participant key {participant.name!r}")
            self._participants[participant.name] = participant.model_copy()
            return participant

    async def update_participant(self, participant: Participant) -> Participant:
        async with self._async_lock:
            if participant.name not in self._participants:
                raise StoreError(f"Participant {participant.name!r} does not exist")
            self._participants[participant.name] = participant.model_copy()
            return participant

    async def delete_participant(self, name: str) -> bool:
        async with self._async_lock:
            return self._participants.pop(name, None) is not None

    async def list_participants(self) -> List[Participant]:
        async with self._async_lock:
            return [p.model_copy() for p in self._participants.values()]

    async def find_message(self, message_id: str) -> Optional[Message]:
        async with self._async_lock:
            message = self._messages.get(message_id)
            return message.model_copy() if message else None

    async def insert_message(self, message: Message) -> Message:
        async with self._async_lock:
            if message.id in self._messages:
                raise StoreError(f"Duplicate message id {message.id}")
            self._messages[message.id] = message.model_copy()
            return message

    async def update_message(self, message: Message) -> Message:
        async with self._async_lock:
            if message.id not in self._messages:
                raise StoreError(f"Message {message.id} does not exist")
            # dict assignment keeps the original position in the log
            self._messages[message.id] = message.model_copy()
            return message

    async def delete_message(self, message_id: str) -> bool:
        async with self._async_lock:
            return self._messages.pop(message_id, None) is not None

    async def list_messages(self) -> List[Message]:
        async with self._async_lock:
            return [m.model_copy() for m in self._messages.values()]
