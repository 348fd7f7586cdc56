from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from conftest import FakeChannel, make_guild
from services.discord.directory import DiscordDirectory


class _Client:
    """discord.Client stand-in: a channel cache plus a REST fetch."""

    def __init__(self, guilds: list[Any], remote: dict[int, Any] | None = None) -> None:
        self.guilds = guilds
        self.remote = remote or {}
        self.cache_lookups: list[int] = []
        self.fetched: list[int] = []

    def get_channel(self, channel_id: int) -> Any:
        self.cache_lookups.append(channel_id)
        for guild in self.guilds:
            for channel in guild.channels:
                if channel.id == channel_id:
                    return channel
        return None

    async def fetch_channel(self, channel_id: int) -> Any:
        self.fetched.append(channel_id)
        return self.remote[channel_id]


@pytest.fixture
def client() -> _Client:
    return _Client(
        [
            make_guild(1, channels=[FakeChannel(10, members=["a"]), FakeChannel(11)]),
            make_guild(2, channels=[FakeChannel(20)]),
        ],
        remote={42: SimpleNamespace(id=42, members=["m"]), 43: SimpleNamespace(id=43)},
    )


@pytest.mark.anyio
async def test_channels_are_flattened_in_guild_order(client: _Client) -> None:
    directory = DiscordDirectory(client)  # type: ignore[arg-type]

    assert [g.id for g in await directory.list_guilds()] == [1, 2]
    assert [c.id for c in await directory.list_channels()] == [10, 11, 20]


@pytest.mark.anyio
async def test_cached_channel_skips_network(client: _Client) -> None:
    directory = DiscordDirectory(client)  # type: ignore[arg-type]

    channel = await directory.fetch_channel("10")

    assert channel.id == 10
    assert client.cache_lookups == [10]
    assert client.fetched == []


@pytest.mark.anyio
async def test_uncached_channel_is_fetched(client: _Client) -> None:
    directory = DiscordDirectory(client)  # type: ignore[arg-type]

    members = await directory.list_channel_members("42")

    assert members == ["m"]
    assert client.fetched == [42]


@pytest.mark.anyio
async def test_channel_without_members_attribute_has_no_members(client: _Client) -> None:
    directory = DiscordDirectory(client)  # type: ignore[arg-type]

    assert await directory.list_channel_members(43) == []
    assert await directory.list_channel_members(11) == []


@pytest.mark.anyio
async def test_fetch_failure_propagates(client: _Client) -> None:
    directory = DiscordDirectory(client)  # type: ignore[arg-type]

    with pytest.raises(KeyError):
        await directory.fetch_channel(404)
