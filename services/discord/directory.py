"""
Discord Directory Query

Read capability over the discord.py client cache: guilds, their channels,
and channel members. Falls back to a network fetch when a channel is not
cached.

IMPORTANT:
- This module does NOT own the Discord client
- This module does NOT write mirrored state
"""

from __future__ import annotations

from typing import Any, List

import discord

from shared.logging.logger import get_logger

log = get_logger("discord.directory", runtime="discord")


class DiscordDirectory:
    def __init__(self, client: discord.Client):
        self._client = client

    async def list_guilds(self) -> List[discord.Guild]:
        return list(self._client.guilds)

    async def list_guild_channels(self, guild: discord.Guild) -> List[Any]:
        return list(guild.channels)

    async def list_channels(self) -> List[Any]:
        """
        Every cached channel across every guild, flattened.
        """
        channels: List[Any] = []
        for guild in await self.list_guilds():
            channels.extend(await self.list_guild_channels(guild))
        return channels

    async def fetch_channel(self, channel_id: int | str) -> Any:
        channel = self._client.get_channel(int(channel_id))
        if channel is None:
            log.debug(f"Channel {channel_id} not cached; fetching")
            channel = await self._client.fetch_channel(int(channel_id))
        return channel

    async def list_channel_members(self, channel_id: int | str) -> List[Any]:
        channel = await self.fetch_channel(channel_id)
        return list(getattr(channel, "members", None) or [])
