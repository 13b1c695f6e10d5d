from pydantic import Field, computed_field

from .expiring import ExpiringRecord


class PauseRecord(ExpiringRecord):
    """
    Bot replies for `user_id` (or every chat, for the "*" sentinel) are
    suppressed until `paused_until`.
    """

    user_id: str = Field(..., description="Chat JID or '*' for a global pause")
    paused_at: int = Field(..., description="Epoch ms of the pause action", ge=0)
    duration_ms: int = Field(..., description="Requested pause length", gt=0)

    @computed_field  # type: ignore[misc]
    @property
    def paused_until(self) -> int:
        """Epoch ms at which the pause ends; same instant as `expires_at`."""
        return self.expires_at


__all__ = ["PauseRecord"]
