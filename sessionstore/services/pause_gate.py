"""
Suppression of bot replies for a chat, or for every chat at once.

A pause is a `PauseRecord` stored with a TTL matching its duration, so it
disappears on its own. Readers also compare the record's deadline with
their clock and delete records that are already past it.
"""

from __future__ import annotations

import math

from pydantic import ValidationError

from sessionstore.clock import Clock, now_ms
from sessionstore.errors import CorruptContext, InvalidArgument
from sessionstore.keys import GLOBAL_USER_ID, Namespace, build_key
from sessionstore.logging_config import get_logger
from sessionstore.models import PauseRecord
from sessionstore.store import SessionStore

logger = get_logger("pause")


class PauseGate:
    def __init__(self, store: SessionStore, *, clock: Clock = now_ms) -> None:
        self.store = store
        self.clock = clock

    @staticmethod
    def pause_key(user_id: str) -> str:
        return build_key(Namespace.PAUSE, user_id)

    async def pause(self, user_id: str, duration_ms: int) -> PauseRecord:
        """
        Pause `user_id` until now + duration_ms. Pausing again restarts the
        deadline from now instead of extending it.
        """
        key = self.pause_key(user_id)
        if isinstance(duration_ms, bool) or not isinstance(duration_ms, int) or duration_ms <= 0:
            raise InvalidArgument(f"pause duration must be a positive number of ms, got {duration_ms!r}")

        now = self.clock()
        record = PauseRecord(
            user_id=user_id,
            paused_at=now,
            expires_at=now + duration_ms,
            duration_ms=duration_ms,
        )
        ttl_seconds = max(1, math.ceil(duration_ms / 1000))
        await self.store.set(key, record.model_dump(mode="json"), ttl_seconds=ttl_seconds)
        logger.info("Chat paused (user=%s, duration_ms=%d)", user_id, duration_ms)
        return record

    async def resume(self, user_id: str) -> None:
        await self.store.delete(self.pause_key(user_id))
        logger.info("Chat resumed (user=%s)", user_id)

    async def get_pause(self, user_id: str) -> PauseRecord | None:
        """
        Return the active pause record, deleting it if it is stale or unreadable.
        """
        key = self.pause_key(user_id)
        try:
            data = await self.store.get(key)
        except CorruptContext as exc:
            logger.warning("Dropping undecodable pause record (key=%s): %s", key, exc.reason)
            await self.store.delete(key)
            return None
        if data is None:
            return None

        try:
            record = PauseRecord.model_validate(data)
        except ValidationError:
            logger.warning("Dropping malformed pause record (key=%s)", key)
            await self.store.delete(key)
            return None

        if record.is_expired(self.clock()):
            await self.store.delete(key)
            logger.debug("Expired pause cleaned up (user=%s)", user_id)
            return None
        return record

    async def is_paused(self, user_id: str, *, include_global: bool = True) -> bool:
        if await self.get_pause(user_id) is not None:
            return True
        if include_global and user_id != GLOBAL_USER_ID:
            return await self.get_pause(GLOBAL_USER_ID) is not None
        return False

    async def pause_all(self, duration_ms: int) -> PauseRecord:
        return await self.pause(GLOBAL_USER_ID, duration_ms)

    async def resume_all(self) -> None:
        await self.resume(GLOBAL_USER_ID)


__all__ = ["PauseGate"]
