"""
Bounded per-chat message history.

Each context is one JSON document under `chat:{user_id}:context`, updated
by read-modify-write and stored with a sliding TTL so idle chats age out.
Two concurrent appends for the same chat can race (last write wins); chat
delivery is serial per chat, so this is accepted.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from sessionstore.clock import Clock, now_ms
from sessionstore.errors import CorruptContext, InvalidArgument
from sessionstore.keys import Namespace, build_key, namespace_pattern
from sessionstore.logging_config import get_logger
from sessionstore.models import ContextMetadata, ConversationContext, Message
from sessionstore.settings import settings
from sessionstore.store import SessionStore

logger = get_logger("context")


class ConversationContextManager:
    def __init__(
        self,
        store: SessionStore,
        *,
        max_messages: int | None = None,
        ttl_seconds: int | None = None,
        max_body_chars: int | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.max_messages = settings.context_max_messages if max_messages is None else max_messages
        self.ttl_seconds = settings.context_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_body_chars = settings.max_message_body_chars if max_body_chars is None else max_body_chars
        self.clock = clock
        if self.max_messages < 1:
            raise InvalidArgument("max_messages must be at least 1")
        if self.max_body_chars < 1:
            raise InvalidArgument("max_body_chars must be at least 1")

    @staticmethod
    def context_key(user_id: str) -> str:
        return build_key(Namespace.CONTEXT, user_id)

    def validate_message(self, message: Message | Mapping[str, Any]) -> Message:
        if not isinstance(message, Message):
            try:
                message = Message.model_validate(message)
            except ValidationError as exc:
                raise InvalidArgument(f"malformed message: {exc.error_count()} validation error(s)") from exc
        if message.body is not None and len(message.body) > self.max_body_chars:
            raise InvalidArgument(
                f"message body exceeds {self.max_body_chars} characters ({len(message.body)})"
            )
        return message

    async def get_context(self, user_id: str) -> ConversationContext | None:
        """
        Return the stored context, or None.

        A record that cannot be decoded is logged and reported as absent so
        the next successful append replaces it.
        """
        key = self.context_key(user_id)
        try:
            data = await self.store.get(key)
        except CorruptContext as exc:
            logger.warning("Ignoring undecodable context (key=%s): %s", key, exc.reason)
            return None
        if data is None:
            return None
        try:
            return ConversationContext.model_validate(data)
        except ValidationError as exc:
            logger.warning(
                "Ignoring context that does not match the schema (key=%s, errors=%d)",
                key,
                exc.error_count(),
            )
            return None

    async def append_message(
        self,
        user_id: str,
        message: Message | Mapping[str, Any],
        *,
        is_paused: bool | None = None,
    ) -> ConversationContext:
        key = self.context_key(user_id)
        message = self.validate_message(message)

        context = await self.get_context(user_id)
        now = self.clock()
        if context is None:
            context = ConversationContext(
                user_id=user_id,
                last_activity=now,
                metadata=ContextMetadata(conversation_started=now),
            )

        context.messages.append(message)
        context.metadata.total_messages = max(
            context.metadata.total_messages + 1, len(context.messages)
        )
        overflow = len(context.messages) - self.max_messages
        if overflow > 0:
            # Oldest first.
            del context.messages[:overflow]
        context.last_activity = now
        if is_paused is not None:
            context.is_paused = is_paused

        await self.store.set(key, context.model_dump(mode="json"), ttl_seconds=self.ttl_seconds)
        logger.debug(
            "Context saved (user=%s, window=%d, total=%d)",
            user_id,
            len(context.messages),
            context.metadata.total_messages,
        )
        return context

    async def clear_context(self, user_id: str) -> None:
        """
        Drop the whole context. Pause and rate-limit state are untouched.
        """
        await self.store.delete(self.context_key(user_id))
        logger.info("Context cleared (user=%s)", user_id)

    async def clear_all_contexts(self) -> int:
        keys = await self.store.scan_keys(namespace_pattern(Namespace.CONTEXT))
        removed = await self.store.delete_many(keys)
        logger.info("Cleared %d stored contexts", removed)
        return removed


__all__ = ["ConversationContextManager"]
