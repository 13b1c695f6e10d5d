"""
Key layout of everything the session store persists.

Keys follow `{prefix}:{user_id}:{namespace}`, e.g. `chat:5511999@s.whatsapp.net:context`.
"""

from __future__ import annotations

import unicodedata
from enum import Enum

from .errors import InvalidArgument
from .settings import settings

GLOBAL_USER_ID = "*"
MAX_USER_ID_LENGTH = 256


class Namespace(str, Enum):
    CONTEXT = "context"
    PAUSE = "pause"
    RATE_LIMIT = "rate-limit"
    USER_STATE = "user-state"
    SUMMARY = "summary"


def validate_user_id(user_id: str) -> str:
    if not isinstance(user_id, str) or not user_id:
        raise InvalidArgument("user_id must be a non-empty string")
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise InvalidArgument(f"user_id longer than {MAX_USER_ID_LENGTH} characters")
    for ch in user_id:
        if ch.isspace() or unicodedata.category(ch).startswith("C"):
            raise InvalidArgument("user_id must not contain whitespace or control characters")
    return user_id


def build_key(namespace: Namespace, user_id: str, *, prefix: str | None = None) -> str:
    validate_user_id(user_id)
    return f"{prefix or settings.key_prefix}:{user_id}:{Namespace(namespace).value}"


def namespace_pattern(namespace: Namespace, *, prefix: str | None = None) -> str:
    """Glob matching every key of one namespace, for SCAN."""
    return f"{prefix or settings.key_prefix}:*:{Namespace(namespace).value}"


def conversation_index_key(*, prefix: str | None = None) -> str:
    return f"{prefix or settings.key_prefix}:conversations"


__all__ = [
    "GLOBAL_USER_ID",
    "MAX_USER_ID_LENGTH",
    "Namespace",
    "build_key",
    "conversation_index_key",
    "namespace_pattern",
    "validate_user_id",
]
