"""Request payload shapes accepted from clients."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class ParticipantCreate(_Payload):
    """Body of a join request"""
    name: str = Field(min_length=1)


class MessageCreate(_Payload):
    """Body of a send request; status messages are system-only"""
    to: str = Field(min_length=1)
    text: str = Field(min_length=1)
    type: Literal["message", "private_message"]


class MessageEdit(_Payload):
    """Body of an edit request; only the text may change"""
    text: str = Field(min_length=1)
