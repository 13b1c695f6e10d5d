from typing import Literal, Optional

from pydantic import BaseModel, Field

UserStatus = Literal["active", "paused", "blocked"]


class UserPreferences(BaseModel):
    language: Optional[str] = Field(default=None)
    notifications: Optional[bool] = Field(default=None)


class UserState(BaseModel):
    """
    Per-user activity snapshot kept next to the conversation context.
    """

    user_id: str = Field(..., description="Chat JID")
    status: UserStatus = Field(default="active")
    last_seen: int = Field(..., description="Epoch ms of the last inbound message", ge=0)
    message_count: int = Field(default=0, ge=0)
    rate_limit_hits: int = Field(default=0, ge=0)
    preferences: UserPreferences = Field(default_factory=UserPreferences)


__all__ = ["UserPreferences", "UserState", "UserStatus"]
