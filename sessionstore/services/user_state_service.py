from __future__ import annotations

from pydantic import ValidationError

from sessionstore.clock import Clock, now_ms
from sessionstore.errors import CorruptContext
from sessionstore.keys import Namespace, build_key
from sessionstore.logging_config import get_logger
from sessionstore.models import UserState
from sessionstore.settings import settings
from sessionstore.store import SessionStore

logger = get_logger("user_state")


class UserStateService:
    """Activity counters per chat, kept under `chat:{user_id}:user-state`."""

    def __init__(
        self,
        store: SessionStore,
        *,
        ttl_seconds: int | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.ttl_seconds = settings.user_state_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.clock = clock

    async def get_state(self, user_id: str) -> UserState | None:
        key = build_key(Namespace.USER_STATE, user_id)
        try:
            data = await self.store.get(key)
        except CorruptContext as exc:
            logger.warning("Ignoring undecodable user state (key=%s): %s", key, exc.reason)
            return None
        if data is None:
            return None
        try:
            return UserState.model_validate(data)
        except ValidationError:
            logger.warning("Ignoring malformed user state (key=%s)", key)
            return None

    async def set_state(self, state: UserState) -> None:
        key = build_key(Namespace.USER_STATE, state.user_id)
        await self.store.set(key, state.model_dump(mode="json"), ttl_seconds=self.ttl_seconds)

    async def record_activity(
        self,
        user_id: str,
        *,
        paused: bool = False,
        rate_limited: bool = False,
    ) -> UserState:
        now = self.clock()
        state = await self.get_state(user_id) or UserState(user_id=user_id, last_seen=now)
        state.last_seen = now
        state.message_count += 1
        if rate_limited:
            state.rate_limit_hits += 1
            state.status = "blocked"
        elif paused:
            state.status = "paused"
        else:
            state.status = "active"
        await self.set_state(state)
        return state


__all__ = ["UserStateService"]
