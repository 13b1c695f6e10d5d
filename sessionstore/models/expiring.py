from pydantic import BaseModel, Field


class ExpiringRecord(BaseModel):
    """
    A stored value carrying its own absolute deadline.

    Redis TTLs remove the key eventually; readers still compare
    `expires_at` against their clock so that a record read right before
    the key disappears is never honoured past its deadline.
    """

    expires_at: int = Field(..., description="Epoch ms after which the record is void", ge=0)

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


__all__ = ["ExpiringRecord"]
