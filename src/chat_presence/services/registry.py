"""Participant presence tracking."""

import asyncio
from typing import List, Optional

import structlog

from ..domain.errors import NameTaken, NotFound, StoreUnavailable
from ..domain.models import Participant
from ..metrics import PARTICIPANTS_EVICTED, PARTICIPANTS_JOINED
from ..repositories.base import Repository, StoreError
from .clock import Clock

logger = structlog.get_logger()


class ParticipantRegistry:
    """Tracks active participants and decides who has timed out.

    A single lock serialises every read-modify-write on the participants
    record set, so join is check-then-insert atomic per name and a sweep
    either sees a heartbeat entirely or not at all.
    """

    def __init__(self, repository: Repository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock
        self._lock = asyncio.Lock()

    async def join(self, name: str) -> Participant:
        """Register ``name``; raises NameTaken if already present."""
        async with self._lock:
            try:
                if await self._repository.find_participant(name) is not None:
                    logger.warning("participant_name_taken", name=name)
                    raise NameTaken(f"Name {name!r} is already in use")
                participant = Participant(name=name, last_seen=self._clock.now())
                await self._repository.insert_participant(participant)
            except StoreError as e:
                logger.error("participant_join_store_error", name=name, error=str(e))
                raise StoreUnavailable("Could not register participant") from e

        PARTICIPANTS_JOINED.inc()
        logger.info("participant_joined", name=name)
        return participant

    async def heartbeat(self, name: str) -> Participant:
        """Refresh ``last_seen``; raises NotFound for unknown or evicted names."""
        async with self._lock:
            try:
                participant = await self._repository.find_participant(name)
                if participant is None:
                    logger.warning("heartbeat_unknown_participant", name=name)
                    raise NotFound(f"Participant {name!r} not found")
                participant.last_seen = self._clock.now()
                await self._repository.update_participant(participant)
            except StoreError as e:
                logger.error("heartbeat_store_error", name=name, error=str(e))
                raise StoreUnavailable("Could not record heartbeat") from e
        logger.debug("heartbeat_recorded", name=name)
        return participant

    async def get(self, name: str) -> Optional[Participant]:
        try:
            return await self._repository.find_participant(name)
        except StoreError as e:
            logger.error("participant_lookup_store_error", name=name, error=str(e))
            raise StoreUnavailable("Could not look up participant") from e

    async def list(self) -> List[Participant]:
        """Snapshot of current participants in join order."""
        try:
            return await self._repository.list_participants()
        except StoreError as e:
            logger.error("participant_list_store_error", error=str(e))
            raise StoreUnavailable("Could not list participants") from e

    async def evict_expired(self, now: float, timeout: float) -> List[Participant]:
        """Remove and return everyone unseen for strictly more than ``timeout``."""
        evicted: List[Participant] = []
        async with self._lock:
            try:
                for participant in await self._repository.list_participants():
                    if now - participant.last_seen > timeout:
                        if await self._repository.delete_participant(participant.name):
                            evicted.append(participant)
            except StoreError as e:
                logger.error(
                    "eviction_store_error",
                    evicted_so_far=[p.name for p in evicted],
                    error=str(e)
                )
                raise StoreUnavailable("Could not evict expired participants") from e
            finally:
                if evicted:
                    PARTICIPANTS_EVICTED.inc(len(evicted))

        for participant in evicted:
            logger.info(
                "participant_evicted",
                name=participant.name,
                idle_seconds=round(now - participant.last_seen, 3)
            )
        return evicted
