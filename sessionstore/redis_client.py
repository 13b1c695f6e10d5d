"""
Construction of the shared Redis client.

Components never build their own connection: the client returned here is
handed to `SessionStore`, which is in turn injected into the context
manager, pause gate and rate limiter.
"""

from __future__ import annotations

import asyncio
from weakref import WeakKeyDictionary

from redis.asyncio import Redis

from .settings import settings

_redis_clients_by_loop: WeakKeyDictionary[asyncio.AbstractEventLoop, Redis] = (
    WeakKeyDictionary()
)


def _ensure_event_loop() -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError as exc:  # pragma: no cover - easier debugging for sync misuse
        raise RuntimeError(
            "get_redis_client() must be called from inside a running event loop"
        ) from exc


def create_redis_client(url: str | None = None) -> Redis:
    timeout = settings.store_timeout_seconds
    return Redis.from_url(
        url or settings.redis_url,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


def get_redis_client() -> Redis:
    """
    Return the Redis client bound to the current event loop.
    """
    loop = _ensure_event_loop()
    client = _redis_clients_by_loop.get(loop)
    if client is None:
        client = create_redis_client()
        _redis_clients_by_loop[loop] = client
    return client


async def close_redis_client() -> None:
    loop = _ensure_event_loop()
    client = _redis_clients_by_loop.pop(loop, None)
    if client is not None:
        await client.aclose()


__all__ = ["close_redis_client", "create_redis_client", "get_redis_client"]
