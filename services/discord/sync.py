"""
Discord Sync Orchestrator

Full-traversal reconciliation of the state mirror against the Directory
Query capability.

Three operations, increasing in scope:
- sync()              → flat guild list (separate location), commit
- sync_guilds()       → guild mapping keyed by id, swapped in at once, commit
- sync_all_channels() → channel mapping keyed by id, filled per channel
                        while member lists are queried, single commit

IMPORTANT:
- sync() and sync_guilds() are distinct paths with distinct storage shapes
- sync_all_channels() writes entries as it iterates; observers can see a
  partially-populated channel mapping mid-traversal
- A directory failure aborts the remaining traversal; earlier writes stay
- No mutual exclusion between concurrent runs; last commit wins
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from shared.logging.logger import get_logger
from services.discord.directory import DiscordDirectory
from services.discord.state import DiscordStateMirror

log = get_logger("discord.sync", runtime="discord")

EmitFn = Callable[[str, Any], None]


class DiscordSyncOrchestrator:
    def __init__(
        self,
        *,
        directory: DiscordDirectory,
        mirror: DiscordStateMirror,
        emit: Optional[EmitFn] = None,
    ):
        self._directory = directory
        self._mirror = mirror
        self._emit = emit

    def _log_event(self, message: str) -> None:
        log.info(message)
        if self._emit:
            self._emit("log", message)

    # --------------------------------------------------

    async def sync(self) -> "DiscordSyncOrchestrator":
        """
        Lightweight sync: store the guild list as-is (not keyed).
        """
        self._log_event("Syncing Discord service...")
        guilds = await self._directory.list_guilds()
        self._mirror.replace_guild_list(guilds)
        self._mirror.commit()
        return self

    async def sync_guilds(self) -> "DiscordSyncOrchestrator":
        """
        Keyed guild sync: full replace, stale guilds are dropped.
        """
        guilds = await self._directory.list_guilds()
        keyed: Dict[str, Any] = {}
        for guild in guilds:
            keyed[str(guild.id)] = guild

        self._mirror.replace_guilds(keyed)
        log.info(f"Guild sync complete: {len(keyed)} guild(s)")
        self._mirror.commit()
        return self

    async def sync_all_channels(self) -> "DiscordSyncOrchestrator":
        """
        Channel sync across every guild with a member query per channel.
        """
        channels = await self._directory.list_channels()
        self._mirror.reset_channels()

        for channel in channels:
            self._mirror.put_channel(channel.id, channel)
            # TODO: store member lists once the mirror has a member mapping
            members = await self._directory.list_channel_members(channel.id)
            log.debug(f"Channel {channel.id} members: {len(members)}")

        log.info(f"Channel sync complete: {len(channels)} channel(s)")
        self._mirror.commit()
        return self
