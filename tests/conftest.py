"""Test harness configuration.

Log files go to a throwaway directory; fakes stand in for the discord.py
client and its cache.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Optional

import pytest

os.environ.setdefault("RELAY_LOG_DIR", tempfile.mkdtemp(prefix="relay-logs-"))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeChannel:
    def __init__(
        self,
        channel_id: int,
        name: str = "general",
        kind: str = "text",
        members: Optional[list[Any]] = None,
    ) -> None:
        self.id = channel_id
        self.name = name
        self.type = kind
        self.members = list(members or [])
        self.sent: list[str] = []
        self.fail_with: Optional[Exception] = None

    async def send(self, content: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(content)


class FakeDMChannel:
    """Direct-message channel: no `name` attribute at all."""

    def __init__(self, channel_id: int) -> None:
        self.id = channel_id
        self.type = "private"
        self.sent: list[str] = []

    async def send(self, content: str) -> None:
        self.sent.append(content)


def make_guild(guild_id: int, name: str = "", channels: Optional[list[Any]] = None):
    return SimpleNamespace(id=guild_id, name=name or f"guild-{guild_id}", channels=list(channels or []))


def make_message(
    content: str,
    *,
    channel: Any = None,
    author_id: int = 4242,
    author: str = "alice",
    bot: bool = False,
    created_at: Optional[datetime] = None,
):
    return SimpleNamespace(
        content=content,
        author=SimpleNamespace(id=author_id, name=author, bot=bot),
        channel=channel if channel is not None else FakeChannel(900, name="general"),
        created_at=created_at or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


class FakeDirectory:
    def __init__(self, guilds: Optional[list[Any]] = None) -> None:
        self.guilds = list(guilds or [])
        self.list_guild_calls = 0
        self.member_queries: list[Any] = []
        self.fail_members_for: Optional[Any] = None
        self.extra_channels: dict[int, Any] = {}

    async def list_guilds(self) -> list[Any]:
        self.list_guild_calls += 1
        return list(self.guilds)

    async def list_guild_channels(self, guild: Any) -> list[Any]:
        return list(guild.channels)

    async def list_channels(self) -> list[Any]:
        channels: list[Any] = []
        for guild in await self.list_guilds():
            channels.extend(await self.list_guild_channels(guild))
        return channels

    async def fetch_channel(self, channel_id: Any) -> Any:
        for guild in self.guilds:
            for channel in guild.channels:
                if str(channel.id) == str(channel_id):
                    return channel
        if int(channel_id) in self.extra_channels:
            return self.extra_channels[int(channel_id)]
        raise LookupError(f"unknown channel {channel_id}")

    async def list_channel_members(self, channel_id: Any) -> list[Any]:
        self.member_queries.append(channel_id)
        if self.fail_members_for is not None and str(channel_id) == str(self.fail_members_for):
            raise ConnectionError("directory unavailable")
        channel = await self.fetch_channel(channel_id)
        return list(channel.members)


class FakeGateway:
    def __init__(self, login_error: Optional[Exception] = None) -> None:
        self.client = None
        self.login_calls: list[str] = []
        self.login_error = login_error
        self.closed = False
        self.deliver = None
        self._closed_event = asyncio.Event()

    def bind(self, deliver) -> None:
        self.deliver = deliver

    async def login(self, token: str) -> None:
        self.login_calls.append(token)
        if self.login_error is not None:
            raise self.login_error

    async def connect(self) -> None:
        await self._closed_event.wait()

    async def close(self) -> None:
        self.closed = True
        self._closed_event.set()


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory(
        guilds=[
            make_guild(1, channels=[FakeChannel(10, "general", members=["a", "b"]), FakeChannel(11, "random")]),
            make_guild(2, channels=[FakeChannel(20, "lobby", members=["c"])]),
        ]
    )
