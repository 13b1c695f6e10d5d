"""
Per-message admission for the inbound chat pipeline.

For every inbound message the gate checks the pause state, then the rate
limit, then appends the message to the conversation context, which is
handed back for prompt assembly. When the store is unreachable the pause
check fails open and the rate limit fails closed, unless configured
otherwise.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Literal, Optional

from .clock import Clock, now_ms
from .commands import Command, CommandProcessor, CommandType, parse_command
from .errors import InvalidArgument, StoreUnavailable
from .keys import GLOBAL_USER_ID, validate_user_id
from .logging_config import get_logger
from .models import ConversationContext, Message, RateLimitStatus
from .services import (
    ConversationContextManager,
    ConversationIndex,
    PauseGate,
    RateLimiter,
    SessionServices,
    UserStateService,
)
from .settings import settings

logger = get_logger("gate")

RejectReason = Literal["own_message", "invalid", "paused", "rate_limited", "store_unavailable"]


@dataclass
class GateDecision:
    allowed: bool
    reason: Optional[RejectReason] = None
    rate_limit: Optional[RateLimitStatus] = None


@dataclass
class InboundResult:
    user_id: str
    accepted: bool
    reason: Optional[RejectReason] = None
    context: Optional[ConversationContext] = None
    command: Optional[Command] = None
    reply: Optional[str] = None
    rate_limit: Optional[RateLimitStatus] = None

    @property
    def needs_llm_reply(self) -> bool:
        return self.accepted and self.command is None


def rate_limit_notice(status: RateLimitStatus) -> str:
    reset = datetime.datetime.fromtimestamp(status.reset_time / 1000, tz=datetime.timezone.utc)
    return f"You have reached the message limit. Try again after {reset.strftime('%H:%M')} UTC."


class InboundGate:
    def __init__(
        self,
        pause_gate: PauseGate,
        rate_limiter: RateLimiter,
        contexts: ConversationContextManager,
        *,
        user_states: UserStateService | None = None,
        conversations: ConversationIndex | None = None,
        pause_fail_open: bool | None = None,
        rate_limit_fail_closed: bool | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.pause_gate = pause_gate
        self.rate_limiter = rate_limiter
        self.contexts = contexts
        self.user_states = user_states
        self.conversations = conversations
        self.commands = CommandProcessor(contexts, pause_gate)
        self.pause_fail_open = (
            settings.pause_fail_open if pause_fail_open is None else pause_fail_open
        )
        self.rate_limit_fail_closed = (
            settings.rate_limit_fail_closed
            if rate_limit_fail_closed is None
            else rate_limit_fail_closed
        )
        self.clock = clock

    @classmethod
    def from_services(cls, services: SessionServices, **kwargs) -> "InboundGate":
        return cls(
            services.pause_gate,
            services.rate_limiter,
            services.contexts,
            user_states=services.user_states,
            conversations=services.conversations,
            **kwargs,
        )

    async def admit(self, user_id: str, *, skip_own_pause: bool = False) -> GateDecision:
        """
        Pause check, then rate limit. With `skip_own_pause` only the global
        pause is consulted.
        """
        try:
            paused = await self.pause_gate.is_paused(GLOBAL_USER_ID if skip_own_pause else user_id)
        except StoreUnavailable as exc:
            if not self.pause_fail_open:
                logger.warning("Pause state unknown, rejecting message (user=%s): %s", user_id, exc)
                return GateDecision(allowed=False, reason="store_unavailable")
            logger.warning("Pause state unknown, treating as not paused (user=%s): %s", user_id, exc)
            paused = False
        if paused:
            logger.debug("Chat is paused, skipping message (user=%s)", user_id)
            return GateDecision(allowed=False, reason="paused")

        try:
            status = await self.rate_limiter.check_and_increment(user_id)
        except StoreUnavailable as exc:
            if self.rate_limit_fail_closed:
                logger.warning("Rate limit unknown, rejecting message (user=%s): %s", user_id, exc)
                return GateDecision(allowed=False, reason="store_unavailable")
            logger.warning("Rate limit unknown, admitting message (user=%s): %s", user_id, exc)
            return GateDecision(allowed=True)

        if status.blocked:
            return GateDecision(allowed=False, reason="rate_limited", rate_limit=status)
        return GateDecision(allowed=True, rate_limit=status)

    async def _record_side_state(self, message: Message, decision: GateDecision) -> None:
        # Listing and activity counters are informational; losing one update is fine.
        user_id = message.sender
        try:
            if self.conversations is not None:
                await self.conversations.record(message)
            if self.user_states is not None:
                await self.user_states.record_activity(
                    user_id,
                    paused=decision.reason == "paused",
                    rate_limited=decision.reason == "rate_limited",
                )
        except StoreUnavailable as exc:
            logger.warning("Could not update conversation bookkeeping (user=%s): %s", user_id, exc)

    async def handle_inbound(self, message: Message) -> InboundResult:
        user_id = message.sender
        if message.from_me:
            return InboundResult(user_id=user_id, accepted=False, reason="own_message")

        try:
            validate_user_id(user_id)
            message = self.contexts.validate_message(message)
        except InvalidArgument as exc:
            logger.warning("Rejecting malformed message (user=%r, message=%s): %s", user_id, message.id, exc)
            return InboundResult(user_id=user_id, accepted=False, reason="invalid")

        command = parse_command(message.body, user_id=user_id, issued_at=self.clock())
        # RESUME lifts the chat's own pause, so only a global pause can hold it back.
        decision = await self.admit(
            user_id, skip_own_pause=bool(command and command.type is CommandType.RESUME)
        )
        await self._record_side_state(message, decision)

        if not decision.allowed:
            reply = None
            status = decision.rate_limit
            if status is not None and status.requests == self.rate_limiter.max_requests + 1:
                # Only the first rejected message of a window gets a notice.
                reply = rate_limit_notice(status)
            return InboundResult(
                user_id=user_id,
                accepted=False,
                reason=decision.reason,
                reply=reply,
                rate_limit=status,
            )

        try:
            context = await self.contexts.append_message(user_id, message, is_paused=False)
            reply = None
            if command is not None:
                reply = await self.commands.execute(command)
                context = await self.contexts.get_context(user_id)
        except StoreUnavailable as exc:
            logger.error("Dropping message, store unavailable (user=%s, message=%s): %s", user_id, message.id, exc)
            return InboundResult(user_id=user_id, accepted=False, reason="store_unavailable")

        return InboundResult(
            user_id=user_id,
            accepted=True,
            context=context,
            command=command,
            reply=reply,
            rate_limit=decision.rate_limit,
        )

    async def record_reply(self, user_id: str, text: str) -> ConversationContext:
        """
        Append the bot's reply to the context once it has been sent.
        """
        now = self.clock()
        reply = Message(
            id=f"bot_{now}",
            sender=user_id,
            from_me=True,
            timestamp=now,
            body=text,
        )
        return await self.contexts.append_message(user_id, reply)


__all__ = ["GateDecision", "InboundGate", "InboundResult", "rate_limit_notice"]
