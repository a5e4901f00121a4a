"""Domain models for the chat room."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class MessageKind(str, Enum):
    """Kinds of message stored in the log."""

    MESSAGE = "message"
    PRIVATE_MESSAGE = "private_message"
    STATUS = "status"


CLIENT_KINDS = (MessageKind.MESSAGE, MessageKind.PRIVATE_MESSAGE)


class Participant(BaseModel):
    """Participant model."""

    name: str
    last_seen: float  # monotonic clock reading


class Message(BaseModel):
    """Message model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    sender: str = Field(alias="from")
    to: str
    kind: MessageKind = Field(alias="type")
    text: str
    time: str  # display only, ordering comes from the log

    def is_visible_to(self, name: str, broadcast: str) -> bool:
        """Broadcasts reach everyone, directed messages only both ends."""
        return self.to == broadcast or self.to == name or self.sender == name
