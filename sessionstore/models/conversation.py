from typing import Literal

from pydantic import BaseModel, Field

MessageType = Literal["text", "audio", "image", "video", "document", "unknown"]


class ConversationSummary(BaseModel):
    """
    Listing entry for one chat, shown by the admin conversation overview.
    """

    user_id: str = Field(..., description="Chat JID")
    display_name: str = Field(..., description="Formatted phone number or group label")
    last_message: str = Field(..., description="Preview of the last message", max_length=100)
    last_message_time: int = Field(..., description="Epoch ms of the last message", ge=0)
    message_type: MessageType = Field(default="text")
    is_group: bool = Field(default=False)


__all__ = ["ConversationSummary", "MessageType"]
