"""
Chat commands a user can send instead of a regular message.

The first word of the message body selects the command (case-insensitive);
remaining words are its arguments.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum

from .clock import now_ms
from .logging_config import get_logger
from .services import ConversationContextManager, PauseGate
from .settings import settings

logger = get_logger("commands")


class CommandType(str, Enum):
    RESET = "RESET"
    PAUSE = "PAUSE"
    RESUME = "RESUME"
    STATUS = "STATUS"
    HELP = "HELP"


COMMAND_ALIASES: dict[str, CommandType] = {
    "RESET": CommandType.RESET,
    "PAUSE": CommandType.PAUSE,
    "PAUSA": CommandType.PAUSE,
    "RESUME": CommandType.RESUME,
    "RETOMAR": CommandType.RESUME,
    "STATUS": CommandType.STATUS,
    "HELP": CommandType.HELP,
    "AJUDA": CommandType.HELP,
}

HELP_TEXT = (
    "Available commands:\n\n"
    "- RESET: start the conversation over\n"
    "- PAUSE [minutes]: pause the assistant\n"
    "- RESUME: resume the assistant\n"
    "- STATUS: show the conversation status\n"
    "- HELP: show this help"
)


@dataclass
class Command:
    type: CommandType
    user_id: str
    args: list[str] = field(default_factory=list)
    issued_at: int = 0


def parse_command(text: str | None, *, user_id: str = "", issued_at: int | None = None) -> Command | None:
    if not text:
        return None
    parts = text.strip().split()
    if not parts:
        return None
    command_type = COMMAND_ALIASES.get(parts[0].upper())
    if command_type is None:
        return None
    return Command(
        type=command_type,
        user_id=user_id,
        args=parts[1:],
        issued_at=issued_at if issued_at is not None else now_ms(),
    )


def _pause_minutes(args: list[str]) -> int:
    if args and args[0].isdigit() and int(args[0]) > 0:
        return int(args[0])
    return max(1, round(settings.default_pause_seconds / 60))


class CommandProcessor:
    def __init__(self, contexts: ConversationContextManager, pause_gate: PauseGate) -> None:
        self.contexts = contexts
        self.pause_gate = pause_gate

    async def execute(self, command: Command) -> str:
        """
        Run the command against the store and return the reply text.
        Store errors propagate to the caller.
        """
        user_id = command.user_id
        logger.info("Executing command %s (user=%s)", command.type.value, user_id)

        if command.type is CommandType.RESET:
            await self.contexts.clear_context(user_id)
            return "Conversation reset. How can I help you today?"

        if command.type is CommandType.PAUSE:
            minutes = _pause_minutes(command.args)
            await self.pause_gate.pause(user_id, minutes * 60_000)
            return f"Assistant paused for {minutes} minute(s). Send RESUME to continue."

        if command.type is CommandType.RESUME:
            await self.pause_gate.resume(user_id)
            return "Assistant resumed. How can I help you?"

        if command.type is CommandType.STATUS:
            paused = await self.pause_gate.is_paused(user_id)
            context = await self.contexts.get_context(user_id)
            total = context.metadata.total_messages if context else 0
            lines = [
                "Conversation status:",
                "",
                f"- State: {'paused' if paused else 'active'}",
                f"- Messages: {total}",
            ]
            if context is not None:
                started = datetime.datetime.fromtimestamp(
                    context.metadata.conversation_started / 1000, tz=datetime.timezone.utc
                )
                lines.append(f"- Started: {started.strftime('%Y-%m-%d %H:%M UTC')}")
            return "\n".join(lines)

        return HELP_TEXT


__all__ = [
    "COMMAND_ALIASES",
    "Command",
    "CommandProcessor",
    "CommandType",
    "HELP_TEXT",
    "parse_command",
]
