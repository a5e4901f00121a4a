"""Test suite for the session gateway."""

import pytest

from chat_presence.config import Settings
from chat_presence.domain.errors import (
    MissingIdentity,
    NameTaken,
    NotFound,
    UnknownUser,
    ValidationFailed,
)
from chat_presence.domain.models import MessageKind


@pytest.mark.asyncio
async def test_join_emits_status(gateway, room):
    """Test join registers the name and announces it."""
    participant = await gateway.join({"name": "  alice  "})
    assert participant.name == "alice"

    messages = await room.messages.all()
    assert len(messages) == 1
    assert messages[0].kind == MessageKind.STATUS
    assert messages[0].sender == "alice"
    assert messages[0].to == room.broadcast
    assert messages[0].text == "joined"


@pytest.mark.asyncio
async def test_duplicate_join_emits_nothing(gateway, room):
    """Test a rejected join adds no status message."""
    await gateway.join({"name": "alice"})
    with pytest.raises(NameTaken):
        await gateway.join({"name": "alice"})
    assert len(await room.messages.all()) == 1


@pytest.mark.asyncio
async def test_validation_failure_never_mutates(gateway, room):
    """Test structural failures leave the room untouched."""
    with pytest.raises(ValidationFailed) as exc_info:
        await gateway.join({"nome": "alice"})
    assert any(detail.startswith("name") for detail in exc_info.value.details)

    await gateway.join({"name": "alice"})
    with pytest.raises(ValidationFailed) as exc_info:
        await gateway.send("alice", {"to": "", "text": "", "type": "status"})
    assert len(exc_info.value.details) == 3

    assert len(await room.messages.all()) == 1
    assert len(await room.registry.list()) == 1


@pytest.mark.asyncio
async def test_send_requires_registered_identity(gateway):
    """Test identity checks on send."""
    payload = {"to": "Todos", "text": "hi", "type": "message"}
    with pytest.raises(MissingIdentity):
        await gateway.send(None, payload)
    with pytest.raises(MissingIdentity):
        await gateway.send("   ", payload)
    with pytest.raises(UnknownUser):
        await gateway.send("ghost", payload)


@pytest.mark.asyncio
async def test_send_and_list(gateway):
    """Test sent messages carry the identity and kind."""
    await gateway.join({"name": "alice"})
    await gateway.join({"name": "bob"})
    message = await gateway.send("alice", {"to": "bob", "text": "psst", "type": "private_message"})

    assert message.sender == "alice"
    assert message.kind == MessageKind.PRIVATE_MESSAGE

    bob_view = await gateway.list_messages("bob")
    assert bob_view[-1].id == message.id
    last_one = await gateway.list_messages("bob", "1")
    assert [m.id for m in last_one] == [message.id]

    with pytest.raises(MissingIdentity):
        await gateway.list_messages(None)
    with pytest.raises(ValidationFailed):
        await gateway.list_messages("bob", "0")


@pytest.mark.asyncio
async def test_heartbeat_without_identity(gateway):
    """Test a heartbeat with no identity is NotFound."""
    with pytest.raises(NotFound):
        await gateway.heartbeat(None)
    with pytest.raises(NotFound):
        await gateway.heartbeat("ghost")


@pytest.mark.asyncio
async def test_edit_requires_registered_author(gateway, room, clock):
    """Test an evicted author can no longer edit."""
    await gateway.join({"name": "alice"})
    message = await gateway.send("alice", {"to": "Todos", "text": "hi", "type": "message"})
    clock.advance(30)
    await room.registry.evict_expired(clock.now(), 10)

    with pytest.raises(UnknownUser):
        await gateway.edit_message("alice", message.id, {"text": "edited"})
    with pytest.raises(MissingIdentity):
        await gateway.delete_message(None, message.id)


def test_settings_defaults(monkeypatch):
    """Test configuration defaults and environment overrides."""
    for key in ("CHAT_SWEEP_INTERVAL", "CHAT_PARTICIPANT_TIMEOUT", "CHAT_BROADCAST_TARGET"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings(_env_file=None)
    assert settings.SWEEP_INTERVAL == 15.0
    assert settings.PARTICIPANT_TIMEOUT == 10.0
    assert settings.BROADCAST_TARGET == "Todos"

    monkeypatch.setenv("CHAT_PARTICIPANT_TIMEOUT", "3")
    monkeypatch.setenv("CHAT_BROADCAST_TARGET", "All")
    settings = Settings(_env_file=None)
    assert settings.PARTICIPANT_TIMEOUT == 3.0
    assert settings.BROADCAST_TARGET == "All"
