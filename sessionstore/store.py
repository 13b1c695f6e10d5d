"""
TTL-aware key-value access over Redis.

`SessionStore` is the only component that talks to Redis directly. Values
are stored as UTF-8 JSON (counters as plain integers). Every call is
bounded by a timeout, and any connection problem surfaces as
`StoreUnavailable`; nothing is retried here, retry policy belongs to the
caller.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Iterable, Sequence
from typing import Any, Optional, Tuple, TypeVar

from fastapi.encoders import jsonable_encoder
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .errors import CorruptContext, InvalidArgument, StoreUnavailable
from .logging_config import get_logger
from .models import HealthStatus
from .settings import settings

logger = get_logger("store")

T = TypeVar("T")

# (key, value, ttl_seconds or None)
StoreItem = Tuple[str, Any, Optional[int]]


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise InvalidArgument("key must be a non-empty string")


def _check_ttl(ttl_seconds: int | None) -> None:
    if ttl_seconds is None:
        return
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
        raise InvalidArgument("ttl_seconds must be an integer")
    if ttl_seconds <= 0:
        raise InvalidArgument(f"ttl_seconds must be positive, got {ttl_seconds}")


def encode_value(value: Any) -> str:
    return json.dumps(jsonable_encoder(value), ensure_ascii=False)


class SessionStore:
    def __init__(self, redis: Redis, *, timeout_seconds: float | None = None) -> None:
        self.redis = redis
        self.timeout_seconds = settings.store_timeout_seconds if timeout_seconds is None else timeout_seconds

    async def _call(self, operation: str, key: str | None, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.warning("Store %s timed out after %.2fs (key=%s)", operation, self.timeout_seconds, key)
            raise StoreUnavailable(operation, key, reason="timed out") from exc
        except (RedisError, OSError) as exc:
            logger.warning("Store %s failed (key=%s): %s", operation, key, exc)
            raise StoreUnavailable(operation, key, reason=str(exc) or type(exc).__name__) from exc

    async def get_raw(self, key: str) -> str | None:
        _check_key(key)
        return await self._call("get", key, self.redis.get(key))

    async def get(self, key: str) -> Any | None:
        """
        Load and JSON-decode a value; None when the key is missing or expired.
        """
        raw = await self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise CorruptContext(key, str(exc)) from exc

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """
        Store a JSON-serialisable value, replacing any previous one.
        Without a TTL the key persists until deleted.
        """
        _check_key(key)
        _check_ttl(ttl_seconds)
        data = encode_value(value)
        if ttl_seconds is not None:
            await self._call("set", key, self.redis.set(key, data, ex=ttl_seconds))
        else:
            await self._call("set", key, self.redis.set(key, data))

    async def delete(self, key: str) -> None:
        _check_key(key)
        await self._call("delete", key, self.redis.delete(key))

    async def delete_many(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        for key in keys:
            _check_key(key)
        return int(await self._call("delete", None, self.redis.delete(*keys)))

    async def exists(self, key: str) -> bool:
        _check_key(key)
        return bool(await self._call("exists", key, self.redis.exists(key)))

    async def multi_set(self, items: Iterable[StoreItem]) -> None:
        """
        Write several keys in one MULTI/EXEC transaction.

        On failure the caller must assume that none of the keys was written.
        """
        prepared: list[tuple[str, str, int | None]] = []
        for key, value, ttl_seconds in items:
            _check_key(key)
            _check_ttl(ttl_seconds)
            prepared.append((key, encode_value(value), ttl_seconds))
        if not prepared:
            return

        async def _run() -> None:
            async with self.redis.pipeline(transaction=True) as pipe:
                for key, data, ttl_seconds in prepared:
                    if ttl_seconds is not None:
                        pipe.set(key, data, ex=ttl_seconds)
                    else:
                        pipe.set(key, data)
                await pipe.execute()

        await self._call("multi_set", prepared[0][0], _run())

    async def increment(self, key: str, *, ttl_seconds: int) -> tuple[int, int]:
        """
        Atomically increment an integer counter.

        A fresh counter (or one that lost its expiry) gets `ttl_seconds`.
        Returns `(count, ttl_remaining_ms)`.
        """
        _check_key(key)
        if ttl_seconds is None:
            raise InvalidArgument("counters require a ttl")
        _check_ttl(ttl_seconds)
        window_ms = ttl_seconds * 1000

        async def _run() -> tuple[int, int]:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.pttl(key)
                count, remaining = await pipe.execute()
            if remaining is None or int(remaining) < 0:
                await self.redis.pexpire(key, window_ms)
                remaining = window_ms
            return int(count), int(remaining)

        return await self._call("increment", key, _run())

    async def ttl_ms(self, key: str) -> int | None:
        """
        Remaining lifetime in ms; None when the key is missing or has no TTL.
        """
        _check_key(key)
        remaining = await self._call("pttl", key, self.redis.pttl(key))
        if remaining is None or int(remaining) < 0:
            return None
        return int(remaining)

    async def scan_keys(self, pattern: str) -> list[str]:
        async def _run() -> list[str]:
            return [key async for key in self.redis.scan_iter(match=pattern, count=500)]

        return await self._call("scan", pattern, _run())

    # Sorted-set index helpers (conversation listing).

    async def index_add(self, index_key: str, member: str, score: float) -> None:
        _check_key(index_key)
        await self._call("zadd", index_key, self.redis.zadd(index_key, {member: score}))

    async def index_range(self, index_key: str, limit: int) -> list[str]:
        """Members ordered by descending score."""
        _check_key(index_key)
        if limit <= 0:
            return []
        members = await self._call(
            "zrevrange", index_key, self.redis.zrevrange(index_key, 0, limit - 1)
        )
        return list(members)

    async def index_remove(self, index_key: str, *members: str) -> None:
        _check_key(index_key)
        if members:
            await self._call("zrem", index_key, self.redis.zrem(index_key, *members))

    async def health_check(self) -> HealthStatus:
        """
        PING the server within the timeout. Never raises.
        """
        started = time.perf_counter()
        try:
            await asyncio.wait_for(self.redis.ping(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            latency = (time.perf_counter() - started) * 1000
            return HealthStatus(
                status="unhealthy",
                latency_ms=latency,
                details={"backend": "redis", "connection": "timeout", "timeout_seconds": self.timeout_seconds},
            )
        except (RedisError, OSError) as exc:
            latency = (time.perf_counter() - started) * 1000
            logger.warning("Store health check failed: %s", exc)
            return HealthStatus(
                status="unhealthy",
                latency_ms=latency,
                details={"backend": "redis", "connection": "disconnected", "error": str(exc)},
            )
        latency = (time.perf_counter() - started) * 1000
        return HealthStatus(
            status="healthy",
            latency_ms=latency,
            details={"backend": "redis", "connection": "connected"},
        )


__all__ = ["SessionStore", "StoreItem", "encode_value"]
