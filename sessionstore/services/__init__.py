from __future__ import annotations

from dataclasses import dataclass

from sessionstore.clock import Clock, now_ms
from sessionstore.store import SessionStore

from .context_manager import ConversationContextManager
from .conversation_index import ConversationIndex
from .pause_gate import PauseGate
from .rate_limiter import RateLimiter
from .user_state_service import UserStateService


@dataclass
class SessionServices:
    """All store-backed components sharing one `SessionStore`."""

    store: SessionStore
    contexts: ConversationContextManager
    pause_gate: PauseGate
    rate_limiter: RateLimiter
    user_states: UserStateService
    conversations: ConversationIndex

    @classmethod
    def from_store(cls, store: SessionStore, *, clock: Clock = now_ms) -> "SessionServices":
        return cls(
            store=store,
            contexts=ConversationContextManager(store, clock=clock),
            pause_gate=PauseGate(store, clock=clock),
            rate_limiter=RateLimiter(store, clock=clock),
            user_states=UserStateService(store, clock=clock),
            conversations=ConversationIndex(store, clock=clock),
        )


__all__ = [
    "ConversationContextManager",
    "ConversationIndex",
    "PauseGate",
    "RateLimiter",
    "SessionServices",
    "UserStateService",
]
