from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .message import Message

CONTEXT_SCHEMA_VERSION = 1


class ContextMetadata(BaseModel):
    user_name: Optional[str] = Field(default=None)
    user_phone: Optional[str] = Field(default=None)
    conversation_started: int = Field(
        ..., description="Epoch ms of the first message, set once", ge=0
    )
    total_messages: int = Field(
        default=0,
        description="Messages ever appended; never decremented by trimming",
        ge=0,
    )


class ConversationContext(BaseModel):
    """
    Bounded message history of one chat plus bookkeeping.

    `messages` is chronological and holds at most the configured window;
    `metadata.total_messages` keeps counting past the window.
    """

    schema_version: int = Field(
        default=CONTEXT_SCHEMA_VERSION, description="Layout version of the stored record"
    )
    user_id: str = Field(..., description="Chat JID")
    messages: List[Message] = Field(default_factory=list)
    last_activity: int = Field(..., description="Epoch ms of the last mutation", ge=0)
    is_paused: bool = Field(
        default=False,
        description="Pause state seen at the last write; the pause gate is authoritative",
    )
    metadata: ContextMetadata

    @field_validator("schema_version")
    @classmethod
    def _known_schema(cls, value: int) -> int:
        if value < 1 or value > CONTEXT_SCHEMA_VERSION:
            raise ValueError(f"unsupported context schema version {value}")
        return value


__all__ = ["CONTEXT_SCHEMA_VERSION", "ContextMetadata", "ConversationContext"]
