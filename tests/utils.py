from __future__ import annotations

import asyncio
import fnmatch
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from sessionstore.clock import now_ms
from sessionstore.models import Message

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class _InMemoryPipeline:
    def __init__(self, redis: "InMemoryRedis") -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple, dict]] = []

    async def __aenter__(self) -> "_InMemoryPipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._ops.clear()

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def _queue(*args: Any, **kwargs: Any) -> "_InMemoryPipeline":
            self._ops.append((name, args, kwargs))
            return self

        return _queue

    async def execute(self) -> list[Any]:
        if self._redis.fail_pipelines:
            self._ops.clear()
            raise RedisConnectionError("pipeline aborted")
        results = []
        for name, args, kwargs in self._ops:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._ops.clear()
        return results


class InMemoryRedis:
    """
    Minimal async Redis double with TTL support driven by `clock` (epoch ms).
    """

    def __init__(self, clock=None) -> None:
        self.clock = clock or now_ms
        self._data: dict[str, str] = {}
        self._expiry: dict[str, int] = {}
        self._zsets: dict[str, dict[str, float]] = {}
        self.fail_pipelines = False
        self.calls = 0

    def _alive(self, key: str) -> bool:
        deadline = self._expiry.get(key)
        if deadline is not None and deadline <= self.clock():
            self._data.pop(key, None)
            self._expiry.pop(key, None)
        return key in self._data or key in self._zsets

    async def ping(self) -> bool:
        self.calls += 1
        return True

    async def get(self, key: str):
        self.calls += 1
        if not self._alive(key):
            return None
        return self._data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None, px: int | None = None):
        self.calls += 1
        self._data[key] = str(value)
        self._expiry.pop(key, None)
        if ex is not None:
            self._expiry[key] = self.clock() + int(ex) * 1000
        elif px is not None:
            self._expiry[key] = self.clock() + int(px)
        return True

    async def delete(self, *keys: str) -> int:
        self.calls += 1
        removed = 0
        for key in keys:
            if self._alive(key):
                removed += 1
            self._data.pop(key, None)
            self._expiry.pop(key, None)
            self._zsets.pop(key, None)
        return removed

    async def exists(self, *keys: str) -> int:
        self.calls += 1
        return sum(1 for key in keys if self._alive(key))

    async def incr(self, key: str) -> int:
        self.calls += 1
        current = self._data.get(key) if self._alive(key) else None
        try:
            value = int(current or 0) + 1
        except ValueError as exc:
            raise ResponseError("value is not an integer or out of range") from exc
        self._data[key] = str(value)
        return value

    async def pttl(self, key: str) -> int:
        self.calls += 1
        if not self._alive(key):
            return -2
        deadline = self._expiry.get(key)
        if deadline is None:
            return -1
        return deadline - self.clock()

    async def pexpire(self, key: str, ms: int) -> bool:
        self.calls += 1
        if not self._alive(key):
            return False
        self._expiry[key] = self.clock() + int(ms)
        return True

    async def scan_iter(self, match: str | None = None, count: int | None = None):
        for key in list(self._data):
            if self._alive(key) and (match is None or fnmatch.fnmatchcase(key, match)):
                yield key

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        self.calls += 1
        z = self._zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in z)
        z.update({member: float(score) for member, score in mapping.items()})
        return added

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        self.calls += 1
        z = self._zsets.get(key, {})
        ordered = sorted(z, key=lambda member: z[member], reverse=True)
        return ordered[start : None if stop == -1 else stop + 1]

    async def zrem(self, key: str, *members: str) -> int:
        self.calls += 1
        z = self._zsets.get(key, {})
        return sum(1 for member in members if z.pop(member, None) is not None)

    def pipeline(self, transaction: bool = True) -> _InMemoryPipeline:
        return _InMemoryPipeline(self)

    def ttl_of(self, key: str) -> int | None:
        """Test helper: remaining ms of a key, None without expiry."""
        if not self._alive(key):
            return None
        deadline = self._expiry.get(key)
        return None if deadline is None else deadline - self.clock()


class UnavailableRedis:
    """Every command fails as if the server went away."""

    def __init__(self) -> None:
        self.calls = 0

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        async def _fail(*args: Any, **kwargs: Any):
            self.calls += 1
            raise RedisConnectionError("Connection refused")

        return _fail

    def pipeline(self, transaction: bool = True) -> _InMemoryPipeline:
        broken = InMemoryRedis()
        broken.fail_pipelines = True
        return _InMemoryPipeline(broken)


class SlowRedis(InMemoryRedis):
    """Commands hang for `delay` seconds before answering."""

    def __init__(self, delay: float = 1.0, clock=None) -> None:
        super().__init__(clock)
        self.delay = delay

    async def get(self, key: str):
        await asyncio.sleep(self.delay)
        return await super().get(key)

    async def ping(self) -> bool:
        await asyncio.sleep(self.delay)
        return True


def make_message(
    index: int,
    *,
    sender: str = "5511999990000@s.whatsapp.net",
    body: str | None = None,
    timestamp: int | None = None,
    **extra: Any,
) -> Message:
    return Message(
        id=f"msg-{index}",
        sender=sender,
        timestamp=timestamp if timestamp is not None else START_MS + index,
        body=body if body is not None else f"message {index}",
        **extra,
    )


__all__ = [
    "FakeClock",
    "InMemoryRedis",
    "START_MS",
    "SlowRedis",
    "UnavailableRedis",
    "make_message",
]
