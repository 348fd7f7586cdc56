"""
Discord Command Package

Literal text commands handled by the relay service:

- !ping    → reply with a timestamped pong
- !help    → fixed help text
- !status  → fixed status text
- !sync    → flat guild sync, no reply

IMPORTANT DESIGN RULES:
- No command registration on import
- No Discord client ownership
"""

from __future__ import annotations

from services.discord.commands.dispatcher import (
    COMMANDS,
    CommandDispatcher,
    CommandResult,
)

__all__ = [
    "COMMANDS",
    "CommandDispatcher",
    "CommandResult",
]
