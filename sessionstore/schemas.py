from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from sessionstore.models import PauseRecord, RateLimitStatus, UserState


class PauseRequest(BaseModel):
    duration_ms: int = Field(
        3_600_000, description="Pause length in milliseconds", gt=0
    )


class UserStatusResponse(BaseModel):
    user_id: str
    is_paused: bool = Field(..., description="Includes a global pause")
    pause: Optional[PauseRecord] = Field(default=None, description="Per-user pause record")
    rate_limit: RateLimitStatus
    user_state: Optional[UserState] = None


BulkAction = Literal["clear_memory", "pause_users", "resume_users"]


class BulkActionRequest(BaseModel):
    action: BulkAction
    user_ids: Optional[List[str]] = Field(
        default=None,
        description="Target chats; clear_memory without ids clears every context",
    )
    duration_ms: int = Field(3_600_000, gt=0)


class BulkActionResponse(BaseModel):
    action: BulkAction
    total: int
    success_count: int
    message: str


__all__ = [
    "BulkAction",
    "BulkActionRequest",
    "BulkActionResponse",
    "PauseRequest",
    "UserStatusResponse",
]
