"""
Listing of recently active chats for the admin overview.

Each chat keeps a `ConversationSummary` under `chat:{user_id}:summary`
(expiring with the conversation TTL) and a member in the sorted set
`chat:conversations`, scored by the time of its last message. Index
members whose summary has expired are pruned while listing.
"""

from __future__ import annotations

from pydantic import ValidationError

from sessionstore.clock import Clock, now_ms
from sessionstore.errors import CorruptContext, InvalidArgument
from sessionstore.keys import Namespace, build_key, conversation_index_key
from sessionstore.logging_config import get_logger
from sessionstore.models import ConversationSummary, Message
from sessionstore.settings import settings
from sessionstore.store import SessionStore

logger = get_logger("conversations")

PREVIEW_LENGTH = 100
USER_JID_SUFFIX = "@s.whatsapp.net"
GROUP_JID_SUFFIX = "@g.us"

_MEDIA_PREVIEWS = {
    "audio": "[Audio message]",
    "image": "[Image message]",
    "video": "[Video message]",
    "document": "[Document]",
}


def format_display_name(user_id: str) -> str:
    if user_id.endswith(GROUP_JID_SUFFIX):
        return "WhatsApp group"
    phone = user_id.removesuffix(USER_JID_SUFFIX)
    # Brazilian mobile: 55 + 2-digit area code + 9-digit number.
    if phone.isdigit() and len(phone) == 13 and phone.startswith("55"):
        area, number = phone[2:4], phone[4:]
        return f"+55 ({area}) {number[:5]}-{number[5:]}"
    if phone.isdigit():
        return f"+{phone}"
    return phone


def message_preview(message: Message) -> str:
    if message.body:
        return message.body[:PREVIEW_LENGTH]
    if message.media_type:
        return _MEDIA_PREVIEWS[message.media_type]
    return "[Message]"


class ConversationIndex:
    def __init__(
        self,
        store: SessionStore,
        *,
        ttl_seconds: int | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.ttl_seconds = settings.conversation_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.clock = clock

    async def record(self, message: Message) -> ConversationSummary:
        user_id = message.sender
        now = self.clock()
        summary = ConversationSummary(
            user_id=user_id,
            display_name=format_display_name(user_id),
            last_message=message_preview(message),
            last_message_time=now,
            message_type=message.message_type,
            is_group=user_id.endswith(GROUP_JID_SUFFIX),
        )
        await self.store.set(
            build_key(Namespace.SUMMARY, user_id),
            summary.model_dump(mode="json"),
            ttl_seconds=self.ttl_seconds,
        )
        await self.store.index_add(conversation_index_key(), user_id, now)
        return summary

    async def list_conversations(self, limit: int = 50) -> list[ConversationSummary]:
        """
        Most recently active chats first.
        """
        index_key = conversation_index_key()
        user_ids = await self.store.index_range(index_key, limit)
        summaries: list[ConversationSummary] = []
        stale: list[str] = []
        for user_id in user_ids:
            try:
                data = await self.store.get(build_key(Namespace.SUMMARY, user_id))
                summary = ConversationSummary.model_validate(data) if data is not None else None
            except (CorruptContext, InvalidArgument, ValidationError):
                summary = None
            if summary is None:
                stale.append(user_id)
                continue
            summaries.append(summary)

        if stale:
            await self.store.index_remove(index_key, *stale)
            logger.debug("Pruned %d expired conversations from the index", len(stale))
        return summaries


__all__ = ["ConversationIndex", "format_display_name", "message_preview"]
