"""
Discord Gateway Session

This module owns the discord.py client itself. Connection lifecycle,
reconnection and rate limiting are delegated to discord.py.

Responsibilities:
- build the client with the configured gateway intents
- translate client events (ready / resumed / message / error) into InboundEvent
  values handed to a single consumer
- expose login() / connect() / close()

IMPORTANT:
- This client MUST be controlled by DiscordService
- This client MUST NOT create its own event loop
- This client MUST NOT handle events itself (delivery only)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional

import discord

from shared.config.discord import DiscordServiceSettings, build_intents
from shared.logging.logger import get_logger

log = get_logger("discord.client", runtime="discord")

READY = "ready"
RESUMED = "resumed"
MESSAGE = "message"
ERROR = "error"


@dataclass(frozen=True)
class InboundEvent:
    kind: str
    payload: Any = None


DeliverFn = Callable[[InboundEvent], None]


class DiscordGateway:
    """
    Thin wrapper around discord.Client.
    """

    def __init__(self, settings: DiscordServiceSettings):
        self._settings = settings
        self._deliver: Optional[DeliverFn] = None
        self._client = self._build_client()

    # --------------------------------------------------

    def _build_client(self) -> discord.Client:
        client = discord.Client(intents=build_intents(self._settings.intents))

        @client.event
        async def on_ready():
            log.info(
                f"Discord connected as {client.user} "
                f"guilds={len(client.guilds)}"
            )
            self._push(InboundEvent(READY))

        @client.event
        async def on_resumed():
            log.info("Discord connection resumed")
            self._push(InboundEvent(RESUMED))

        @client.event
        async def on_disconnect():
            log.warning("Discord connection lost")

        @client.event
        async def on_message(message: discord.Message):
            self._push(InboundEvent(MESSAGE, message))

        @client.event
        async def on_error(event_method: str, *args, **kwargs):
            error = sys.exc_info()[1]
            log.error(f"Discord client error in {event_method}: {error}")
            self._push(InboundEvent(ERROR, error))

        return client

    def _push(self, event: InboundEvent) -> None:
        if self._deliver is None:
            log.warning(f"Discord event dropped (no consumer bound): {event.kind}")
            return
        self._deliver(event)

    # --------------------------------------------------

    def bind(self, deliver: DeliverFn) -> None:
        self._deliver = deliver

    @property
    def client(self) -> discord.Client:
        return self._client

    async def login(self, token: str) -> None:
        await self._client.login(token)

    async def connect(self) -> None:
        await self._client.connect(reconnect=True)

    async def close(self) -> None:
        await self._client.close()
