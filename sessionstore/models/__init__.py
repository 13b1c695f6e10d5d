from .context import CONTEXT_SCHEMA_VERSION, ContextMetadata, ConversationContext
from .conversation import ConversationSummary, MessageType
from .expiring import ExpiringRecord
from .health import HealthStatus
from .message import MediaType, Message, QuotedMessage
from .pause import PauseRecord
from .rate_limit import RateLimitStatus
from .user_state import UserPreferences, UserState, UserStatus

__all__ = [
    "CONTEXT_SCHEMA_VERSION",
    "ContextMetadata",
    "ConversationContext",
    "ConversationSummary",
    "ExpiringRecord",
    "HealthStatus",
    "MediaType",
    "Message",
    "MessageType",
    "PauseRecord",
    "QuotedMessage",
    "RateLimitStatus",
    "UserPreferences",
    "UserState",
    "UserStatus",
]
