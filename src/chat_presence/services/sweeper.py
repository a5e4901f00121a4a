"""Background eviction of participants that stopped sending heartbeats."""

import asyncio
from typing import List, Optional

import structlog

from ..domain.models import Participant
from ..metrics import SWEEP_FAILURES
from .room import LEFT_TEXT, ChatRoom

logger = structlog.get_logger()


class PresenceSweeper:
    """Periodically evicts expired participants and announces their departure."""

    def __init__(
        self,
        room: ChatRoom,
        interval: Optional[float] = None,
        timeout: Optional[float] = None
    ) -> None:
        self.room = room
        self.interval = interval if interval is not None else room.settings.SWEEP_INTERVAL
        self.timeout = timeout if timeout is not None else room.settings.PARTICIPANT_TIMEOUT
        self._task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()
        logger.info(
            "presence_sweeper_initialized",
            interval=self.interval,
            timeout=self.timeout
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the periodic sweep task."""
        if self._task is None:
            self._task = asyncio.create_task(self._periodic_sweep())
            logger.info("presence_sweeper_started")

    async def stop(self) -> None:
        """Stop the periodic sweep task."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("presence_sweeper_stopped")

    async def _periodic_sweep(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                SWEEP_FAILURES.inc()
                logger.error("presence_sweep_error", error=str(e))

    async def tick(self) -> List[Participant]:
        """Run one sweep; returns the participants that were evicted.

        Eviction and the departure notices are separate steps: the
        registry lock is released before anything is appended.
        """
        async with self._tick_lock:
            now = self.room.clock.now()
            evicted = await self.room.registry.evict_expired(now, self.timeout)
            for participant in evicted:
                await self.room.messages.append(
                    self.room.status_message(participant.name, LEFT_TEXT)
                )
            if evicted:
                logger.info("presence_sweep_complete", evicted=[p.name for p in evicted])
            return evicted
