"""
Discord Literal Command Dispatcher

Recognizes a fixed set of exact-match chat commands and performs the
matching response action.

IMPORTANT:
- Matching is exact and case-sensitive (no prefix or argument parsing)
- Reply-send failures propagate to the caller (no retry, no suppression)
- `!sync` short-circuits activity emission
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from shared.logging.logger import get_logger

log = get_logger("discord.commands.dispatcher", runtime="discord")

PING = "!ping"
HELP = "!help"
STATUS = "!status"
SYNC = "!sync"

COMMANDS: tuple[str, ...] = (PING, HELP, STATUS, SYNC)

HELP_TEXT = "I am a bot!  I can help you with things."
STATUS_TEXT = "I am alive and well!"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601, UTC, millisecond precision, `Z` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def ping_reply(moment: datetime) -> str:
    return f"Pong!  Received your ping at {format_timestamp(moment)}."


@dataclass(frozen=True)
class CommandResult:
    command: Optional[str]
    reply: Optional[str] = None
    emit_activity: bool = True

    @property
    def matched(self) -> bool:
        return self.command is not None


class CommandDispatcher:
    """
    Dispatches literal chat commands.

    `sync` is the orchestrator's flat guild sync, injected so the
    dispatcher never owns state directly.
    """

    def __init__(
        self,
        *,
        sync: Callable[[], Awaitable[Any]],
        clock: Callable[[], datetime] = utc_now,
    ):
        self._sync = sync
        self._clock = clock

    @staticmethod
    def match(content: Optional[str]) -> Optional[str]:
        if content in COMMANDS:
            return content
        return None

    async def dispatch(
        self,
        message: Any,
        *,
        now: Optional[datetime] = None,
    ) -> CommandResult:
        command = self.match(getattr(message, "content", None))
        if command is None:
            return CommandResult(command=None)

        if command == SYNC:
            log.info("Sync requested via chat command")
            await self._sync()
            return CommandResult(command=SYNC, emit_activity=False)

        if command == PING:
            reply = ping_reply(now or self._clock())
        elif command == HELP:
            reply = HELP_TEXT
        else:
            reply = STATUS_TEXT

        await message.channel.send(reply)
        log.debug(f"Command {command} answered in channel {message.channel.id}")

        return CommandResult(command=command, reply=reply)
