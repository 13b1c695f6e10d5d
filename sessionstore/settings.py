from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    _project_root = Path(__file__).parent.parent

    model_config = SettingsConfigDict(
        env_file=str(_project_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment / mode
    environment: str = Field(
        "development",
        alias="APP_ENV",
        description="Current environment, e.g. development / production",
    )

    # Redis connection string
    redis_url: str = Field(
        "redis://localhost:6379/0",
        alias="REDIS_URL",
        description="Redis connection URL, e.g. 'redis://redis:6379/0'",
    )
    store_timeout_seconds: float = Field(
        3.0,
        alias="STORE_TIMEOUT_SECONDS",
        description="Upper bound for every session store round trip",
        gt=0,
    )
    key_prefix: str = Field(
        "chat",
        alias="CHAT_KEY_PREFIX",
        description="Prefix of every key written by the session store",
    )

    # Conversation context window
    context_max_messages: int = Field(
        20,
        alias="CONTEXT_MAX_MESSAGES",
        description="Maximum number of messages kept per conversation",
        ge=1,
    )
    context_ttl_seconds: int = Field(
        86400,
        alias="CACHE_TTL_CONTEXT",
        description="Sliding expiry of a conversation context (seconds)",
        ge=1,
    )
    max_message_body_chars: int = Field(
        65536,
        alias="MAX_MESSAGE_BODY_CHARS",
        description="Messages with a longer body are rejected",
        ge=1,
    )

    # Auxiliary records
    user_state_ttl_seconds: int = Field(7200, alias="CACHE_TTL_USER_STATE", ge=1)
    conversation_ttl_seconds: int = Field(86400, alias="CACHE_TTL_CONVERSATION", ge=1)

    # Pause gate
    default_pause_seconds: int = Field(
        3600,
        alias="DEFAULT_PAUSE_SECONDS",
        description="Pause duration used when PAUSE carries no argument",
        ge=1,
    )
    pause_fail_open: bool = Field(
        True,
        alias="PAUSE_FAIL_OPEN",
        description="Treat an unreachable store as 'not paused'",
    )

    # Rate limiting
    rate_limit_window_seconds: int = Field(60, alias="RATE_LIMIT_WINDOW_SECONDS", ge=1)
    rate_limit_max_requests: int = Field(10, alias="RATE_LIMIT_MAX_REQUESTS", ge=1)
    rate_limit_fail_closed: bool = Field(
        True,
        alias="RATE_LIMIT_FAIL_CLOSED",
        description="Treat an unreachable store as 'blocked'",
    )

    # Admin API
    admin_api_token: str | None = Field(
        None,
        alias="ADMIN_API_TOKEN",
        description="Token required by the admin HTTP API",
    )

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_timezone: str | None = Field(None, alias="LOG_TIMEZONE")
    log_backup_days: int = Field(7, alias="LOG_BACKUP_DAYS", ge=0)


settings = Settings()
