from pydantic import BaseModel, Field


class RateLimitStatus(BaseModel):
    blocked: bool = Field(..., description="True once requests exceed the window maximum")
    requests: int = Field(..., description="Requests counted in the current window", ge=0)
    reset_time: int = Field(..., description="Epoch ms when the current window ends", ge=0)


__all__ = ["RateLimitStatus"]
