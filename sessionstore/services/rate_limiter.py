"""
Fixed-window request counter per chat.

The counter is a plain integer that expires with the window, so it resets
as a whole: a burst straddling the window boundary can get up to twice
the maximum through. An exact sliding window would need a sorted-set
log of request times.
"""

from __future__ import annotations

from sessionstore.clock import Clock, now_ms
from sessionstore.errors import CorruptContext, InvalidArgument
from sessionstore.keys import Namespace, build_key
from sessionstore.logging_config import get_logger
from sessionstore.models import RateLimitStatus
from sessionstore.settings import settings
from sessionstore.store import SessionStore

logger = get_logger("ratelimit")


class RateLimiter:
    def __init__(
        self,
        store: SessionStore,
        *,
        max_requests: int | None = None,
        window_seconds: int | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.max_requests = settings.rate_limit_max_requests if max_requests is None else max_requests
        self.window_seconds = settings.rate_limit_window_seconds if window_seconds is None else window_seconds
        self.clock = clock
        if self.max_requests < 1 or self.window_seconds < 1:
            raise InvalidArgument("max_requests and window_seconds must be at least 1")

    @staticmethod
    def rate_limit_key(user_id: str) -> str:
        return build_key(Namespace.RATE_LIMIT, user_id)

    async def check_and_increment(self, user_id: str) -> RateLimitStatus:
        key = self.rate_limit_key(user_id)
        requests, remaining_ms = await self.store.increment(key, ttl_seconds=self.window_seconds)
        status = RateLimitStatus(
            blocked=requests > self.max_requests,
            requests=requests,
            reset_time=self.clock() + remaining_ms,
        )
        if requests == self.max_requests + 1:
            logger.info(
                "Rate limit exceeded (user=%s, max=%d, window=%ds)",
                user_id,
                self.max_requests,
                self.window_seconds,
            )
        return status

    async def get_status(self, user_id: str) -> RateLimitStatus:
        """
        Peek at the current window without counting a request.
        """
        key = self.rate_limit_key(user_id)
        now = self.clock()
        try:
            raw = await self.store.get(key)
        except CorruptContext:
            raw = None
        requests = raw if isinstance(raw, int) and not isinstance(raw, bool) else 0
        remaining_ms = await self.store.ttl_ms(key) if requests else None
        if remaining_ms is None:
            remaining_ms = self.window_seconds * 1000
        return RateLimitStatus(
            blocked=requests > self.max_requests,
            requests=requests,
            reset_time=now + remaining_ms,
        )

    async def reset(self, user_id: str) -> None:
        await self.store.delete(self.rate_limit_key(user_id))
        logger.info("Rate limit window reset (user=%s)", user_id)


__all__ = ["RateLimiter"]
