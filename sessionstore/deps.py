from fastapi import Depends
from redis.asyncio import Redis

from .redis_client import get_redis_client
from .services import SessionServices
from .store import SessionStore


async def get_redis() -> Redis:
    """
    FastAPI dependency that provides the shared Redis client.

    Tests override this dependency with an in-memory fake.
    """
    return get_redis_client()


async def get_session_store(redis: Redis = Depends(get_redis)) -> SessionStore:
    return SessionStore(redis)


async def get_services(store: SessionStore = Depends(get_session_store)) -> SessionServices:
    return SessionServices.from_store(store)


__all__ = ["get_redis", "get_services", "get_session_store"]
