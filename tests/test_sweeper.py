"""Test suite for the presence sweeper."""

import asyncio

import pytest

from chat_presence.domain.models import MessageKind
from chat_presence.repositories.base import StoreError
from chat_presence.repositories.memory import InMemoryRepository
from chat_presence.services.room import ChatRoom
from chat_presence.services.sweeper import PresenceSweeper


def _departures(messages):
    return [m for m in messages if m.kind == MessageKind.STATUS and m.text == "left"]


@pytest.mark.asyncio
async def test_tick_evicts_idle_participant(room, clock, sweeper):
    """Test a participant idle for timeout + interval is evicted with a notice."""
    await room.registry.join("carol")
    clock.advance(sweeper.timeout + sweeper.interval)

    evicted = await sweeper.tick()

    assert [p.name for p in evicted] == ["carol"]
    assert await room.registry.list() == []
    departures = _departures(await room.messages.all())
    assert len(departures) == 1
    assert departures[0].sender == "carol"
    assert departures[0].to == "Todos"


@pytest.mark.asyncio
async def test_tick_emits_one_notice_per_evicted(room, clock, sweeper):
    """Test each evicted participant gets exactly one departure message."""
    for name in ("a", "b", "c"):
        await room.registry.join(name)
    clock.advance(5)
    await room.registry.heartbeat("b")
    clock.advance(6)

    await sweeper.tick()
    await sweeper.tick()

    departures = _departures(await room.messages.all())
    assert sorted(m.sender for m in departures) == ["a", "c"]
    assert [p.name for p in await room.registry.list()] == ["b"]


@pytest.mark.asyncio
async def test_tick_keeps_active_participants(room, clock, sweeper):
    """Test nobody is evicted while within the timeout."""
    await room.registry.join("dave")
    clock.advance(sweeper.timeout)
    assert await sweeper.tick() == []
    assert _departures(await room.messages.all()) == []


class FlakyRepository(InMemoryRepository):
    """Repository whose participant listing fails on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    async def list_participants(self):
        if self.fail:
            raise StoreError("connection refused")
        return await super().list_participants()


@pytest.mark.asyncio
async def test_sweep_loop_survives_store_errors(settings, clock):
    """Test a failing tick is logged and the next tick still runs."""
    repository = FlakyRepository()
    room = ChatRoom(settings, repository=repository, clock=clock)
    sweeper = PresenceSweeper(room, interval=0.01)

    await room.registry.join("erin")
    clock.advance(60)
    repository.fail = True

    await sweeper.start()
    try:
        await asyncio.sleep(0.05)
        assert sweeper.running
        assert await room.repository.find_participant("erin") is not None

        repository.fail = False
        for _ in range(100):
            if await room.repository.find_participant("erin") is None:
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert not sweeper.running
    assert await room.repository.find_participant("erin") is None
    assert len(_departures(await room.messages.all())) == 1


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent(sweeper):
    """Test lifecycle calls can be repeated safely."""
    await sweeper.start()
    await sweeper.start()
    assert sweeper.running
    await sweeper.stop()
    await sweeper.stop()
    assert not sweeper.running
