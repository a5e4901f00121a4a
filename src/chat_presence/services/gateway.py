"""
Session gateway.

Entry point for every client operation. Checks the acting identity and
the payload shape before any state is touched, then delegates to the
participant registry and the message log. Failures surface as the
``ChatError`` subclasses in ``domain.errors``; the transport decides how
to render them.
"""

from typing import Any, List, Mapping, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..domain.errors import MissingIdentity, NotFound, UnknownUser, ValidationFailed
from ..domain.models import Message, MessageKind, Participant
from ..domain.schemas import MessageCreate, MessageEdit, ParticipantCreate
from .message_log import tail
from .room import JOINED_TEXT, ChatRoom

logger = structlog.get_logger()

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _validate(schema: Type[PayloadT], payload: Optional[Mapping[str, Any]]) -> PayloadT:
    try:
        return schema.model_validate(payload if payload is not None else {})
    except ValidationError as e:
        details = [
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        logger.warning("payload_validation_failed", schema=schema.__name__, details=details)
        raise ValidationFailed(details) from e


def _parse_limit(limit: Any) -> Optional[int]:
    if limit is None or limit == "":
        return None
    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ValidationFailed([f"limit: must be a positive integer, got {limit!r}"])
    if value <= 0:
        raise ValidationFailed([f"limit: must be a positive integer, got {value}"])
    return value


class SessionGateway:
    """Client-facing operations over a ``ChatRoom``."""

    def __init__(self, room: ChatRoom) -> None:
        self.room = room

    def _require_identity(self, identity: Optional[str]) -> str:
        identity = (identity or "").strip()
        if not identity:
            raise MissingIdentity("A user must be supplied for this operation")
        return identity

    async def _require_participant(self, identity: str) -> Participant:
        participant = await self.room.registry.get(identity)
        if participant is None:
            logger.warning("unknown_user", identity=identity)
            raise UnknownUser(f"User {identity!r} is not in the room")
        return participant

    async def join(self, payload: Optional[Mapping[str, Any]]) -> Participant:
        """Register a participant and announce it to the room."""
        request = _validate(ParticipantCreate, payload)
        participant = await self.room.registry.join(request.name)
        await self.room.messages.append(self.room.status_message(request.name, JOINED_TEXT))
        return participant

    async def list_participants(self) -> List[Participant]:
        return await self.room.registry.list()

    async def send(self, identity: Optional[str], payload: Optional[Mapping[str, Any]]) -> Message:
        """Post a public or private message as ``identity``."""
        sender = self._require_identity(identity)
        request = _validate(MessageCreate, payload)
        await self._require_participant(sender)

        message = self.room.new_message(
            sender=sender,
            to=request.to,
            kind=MessageKind(request.type),
            text=request.text
        )
        await self.room.messages.append(message)
        return message

    async def list_messages(self, identity: Optional[str], limit: Any = None) -> List[Message]:
        """Messages ``identity`` may see, optionally only the last ``limit``."""
        reader = self._require_identity(identity)
        count = _parse_limit(limit)
        return tail(await self.room.messages.visible_to(reader), count)

    async def heartbeat(self, identity: Optional[str]) -> Participant:
        name = (identity or "").strip()
        if not name:
            raise NotFound("No participant given for heartbeat")
        return await self.room.registry.heartbeat(name)

    async def edit_message(
        self,
        identity: Optional[str],
        message_id: str,
        payload: Optional[Mapping[str, Any]]
    ) -> Message:
        """Replace the text of one of ``identity``'s own messages."""
        author = self._require_identity(identity)
        request = _validate(MessageEdit, payload)
        await self._require_participant(author)
        return await self.room.messages.edit(message_id, author, request.text)

    async def delete_message(self, identity: Optional[str], message_id: str) -> None:
        author = self._require_identity(identity)
        await self.room.messages.delete(message_id, author)
