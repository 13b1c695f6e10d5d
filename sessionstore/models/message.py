from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

MediaType = Literal["image", "audio", "video", "document"]


class QuotedMessage(BaseModel):
    """
    A message referenced by a reply. It never carries a quote of its own.
    """

    id: str = Field(..., description="WhatsApp message id", min_length=1)
    sender: str = Field(..., description="Chat JID the message belongs to")
    from_me: bool = Field(False, description="True when sent by the bot account")
    timestamp: int = Field(..., description="Epoch milliseconds", ge=0)
    body: Optional[str] = Field(default=None, description="Text content")
    media_type: Optional[MediaType] = Field(default=None)
    media_url: Optional[str] = Field(default=None)
    media_caption: Optional[str] = Field(default=None)
    is_forwarded: bool = Field(False)

    @property
    def message_type(self) -> str:
        if self.media_type:
            return self.media_type
        if self.body:
            return "text"
        return "unknown"


class Message(QuotedMessage):
    """
    Normalized chat message as stored in a conversation context.
    """

    quoted_message: Optional[QuotedMessage] = Field(
        default=None, description="Message this one replies to (one level deep)"
    )

    @field_validator("quoted_message", mode="before")
    @classmethod
    def _flatten_quote(cls, value: Any) -> Any:
        # A quoted Message loses its own quote.
        if isinstance(value, Message):
            return value.model_dump(exclude={"quoted_message"})
        return value


__all__ = ["MediaType", "Message", "QuotedMessage"]
