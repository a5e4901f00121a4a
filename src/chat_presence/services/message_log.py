"""Append-ordered message log with visibility and ownership rules."""

import asyncio
from typing import Iterable, Iterator, List, Optional

import structlog

from ..domain.errors import Forbidden, NotFound, StoreUnavailable
from ..domain.models import Message, MessageKind
from ..metrics import MESSAGES_SENT
from ..repositories.base import Repository, StoreError

logger = structlog.get_logger()


def tail(messages: Iterable[Message], n: Optional[int] = None) -> List[Message]:
    """Last ``n`` items in original order, or everything when ``n`` is None."""
    items = list(messages)
    if n is None or n >= len(items):
        return items
    if n <= 0:
        return []
    return items[len(items) - n:]


class MessageLog:
    """Messages in insertion order; filtering happens at read time."""

    def __init__(self, repository: Repository, broadcast: str) -> None:
        self._repository = repository
        self.broadcast = broadcast
        # guards find-then-write sequences on a single message id
        self._lock = asyncio.Lock()

    async def append(self, message: Message) -> str:
        """Store ``message`` at the end of the log and return its id."""
        try:
            await self._repository.insert_message(message)
        except StoreError as e:
            logger.error("message_append_store_error", sender=message.sender, error=str(e))
            raise StoreUnavailable("Could not store message") from e

        MESSAGES_SENT.labels(kind=message.kind.value).inc()
        logger.info(
            "message_appended",
            message_id=message.id,
            sender=message.sender,
            to=message.to,
            kind=message.kind.value
        )
        return message.id

    async def get(self, message_id: str) -> Optional[Message]:
        try:
            return await self._repository.find_message(message_id)
        except StoreError as e:
            logger.error("message_lookup_store_error", message_id=message_id, error=str(e))
            raise StoreUnavailable("Could not read message") from e

    async def all(self) -> List[Message]:
        try:
            return await self._repository.list_messages()
        except StoreError as e:
            logger.error("message_list_store_error", error=str(e))
            raise StoreUnavailable("Could not list messages") from e

    async def visible_to(self, name: str) -> Iterator[Message]:
        """Lazy oldest-first view of what ``name`` may read.

        Each call takes a fresh snapshot of the log, so the returned
        iterator is finite and unaffected by later writes.
        """
        snapshot = await self.all()
        return (m for m in snapshot if m.is_visible_to(name, self.broadcast))

    async def edit(self, message_id: str, requester: str, text: str) -> Message:
        """Replace the text of a message authored by ``requester``.

        Status notices are system-authored and never editable.
        """
        async with self._lock:
            message = await self._owned(message_id, requester)
            message.text = text
            try:
                await self._repository.update_message(message)
            except StoreError as e:
                logger.error("message_edit_store_error", message_id=message_id, error=str(e))
                raise StoreUnavailable("Could not update message") from e
        logger.info("message_edited", message_id=message_id, sender=requester)
        return message

    async def delete(self, message_id: str, requester: str) -> None:
        """Remove a message authored by ``requester``."""
        async with self._lock:
            await self._owned(message_id, requester)
            try:
                deleted = await self._repository.delete_message(message_id)
            except StoreError as e:
                logger.error("message_delete_store_error", message_id=message_id, error=str(e))
                raise StoreUnavailable("Could not delete message") from e
            if not deleted:
                raise NotFound(f"Message {message_id} not found")
        logger.info("message_deleted", message_id=message_id, sender=requester)

    async def _owned(self, message_id: str, requester: str) -> Message:
        message = await self.get(message_id)
        if message is None:
            logger.warning("message_not_found", message_id=message_id)
            raise NotFound(f"Message {message_id} not found")
        if message.kind == MessageKind.STATUS:
            logger.warning("status_message_change_rejected", message_id=message_id, requester=requester)
            raise Forbidden("Join and leave notices cannot be changed")
        if message.sender != requester:
            logger.warning(
                "message_ownership_mismatch",
                message_id=message_id,
                requester=requester,
                sender=message.sender
            )
            raise Forbidden("Only the author may change this message")
        return message
