"""
Discord Runtime Lifecycle Utilities

Session status model and a passive lifecycle tracker for the relay
service.

This module does NOT:
- Start asyncio tasks
- Own the Discord client
- Perform network I/O
- Persist state directly
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from shared.logging.logger import get_logger

log = get_logger("discord.runtime.lifecycle", runtime="discord")


class SessionStatus(str, Enum):
    STOPPED = "STOPPED"
    STARTING = "STARTING"
    READY = "READY"
    ERRORED = "ERRORED"


class DiscordRuntimeLifecycle:
    """
    Passive lifecycle state tracker for the Discord session.

    Owned by DiscordService; queried by diagnostics.
    """

    def __init__(self):
        self._started_at: Optional[datetime] = None
        self._ready_at: Optional[datetime] = None
        self._stopped_at: Optional[datetime] = None
        self._last_error_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    # --------------------------------------------------
    # Lifecycle Transitions (STATE ONLY)
    # --------------------------------------------------

    def mark_started(self):
        self._started_at = datetime.now(timezone.utc)
        self._stopped_at = None
        log.info("Discord session marked as starting")

    def mark_ready(self):
        """
        Mark the session as ready (first ready signal, initial sync done).
        """
        if self._ready_at is None:
            self._ready_at = datetime.now(timezone.utc)
            log.info("Discord session marked as ready")

    def mark_error(self, error: Any):
        self._last_error_at = datetime.now(timezone.utc)
        self._last_error = str(error)

    def mark_stopped(self):
        self._stopped_at = datetime.now(timezone.utc)
        log.info("Discord session marked as stopped")

    # --------------------------------------------------
    # Introspection
    # --------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "ready_at": self._ready_at.isoformat() if self._ready_at else None,
            "stopped_at": self._stopped_at.isoformat() if self._stopped_at else None,
            "last_error_at": (
                self._last_error_at.isoformat() if self._last_error_at else None
            ),
            "last_error": self._last_error,
        }
