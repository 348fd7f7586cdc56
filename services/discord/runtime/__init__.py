"""
Discord Runtime Package

Session lifecycle for the relay service:
- Session status model and lifecycle tracking (lifecycle)
- Session owner wiring gateway, dispatcher and sync (supervisor)

IMPORTANT:
- Importing this package MUST NOT start the Discord client
- Importing this package MUST NOT create asyncio tasks
- The supervisor is imported from its own module so that state
  modules can depend on lifecycle without a cycle
"""

from services.discord.runtime.lifecycle import DiscordRuntimeLifecycle, SessionStatus

__all__ = [
    "DiscordRuntimeLifecycle",
    "SessionStatus",
]
