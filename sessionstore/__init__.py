from .errors import CorruptContext, InvalidArgument, SessionStoreError, StoreUnavailable
from .gate import GateDecision, InboundGate, InboundResult
from .services import (
    ConversationContextManager,
    ConversationIndex,
    PauseGate,
    RateLimiter,
    SessionServices,
    UserStateService,
)
from .store import SessionStore

__all__ = [
    "ConversationContextManager",
    "ConversationIndex",
    "CorruptContext",
    "GateDecision",
    "InboundGate",
    "InboundResult",
    "InvalidArgument",
    "PauseGate",
    "RateLimiter",
    "SessionServices",
    "SessionStore",
    "SessionStoreError",
    "StoreUnavailable",
    "UserStateService",
]
