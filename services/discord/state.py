"""
Discord State Mirror

In-memory snapshot of upstream directory data (guilds, channels, users),
keyed by upstream identifier, plus the flat guild list written by the
lightweight sync path.

Responsibilities:
- Own the mirrored state (no module-level globals)
- Expose read access for diagnostics / alerts
- Expose explicit mutators: every write replaces a whole value
- Persist snapshots through StatePublisher on commit()

IMPORTANT:
- This module does NOT talk to Discord
- Records are stored as-is (opaque upstream objects)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from shared.config.discord import default_state
from shared.logging.logger import get_logger
from shared.storage.state_publisher import StatePublisher
from services.discord.runtime.lifecycle import SessionStatus

log = get_logger("discord.state", runtime="discord")

SNAPSHOT_NAME = "discord/mirror.json"


def describe_record(record: Any) -> Dict[str, Any]:
    """
    JSON-safe summary of an upstream record for persistence.
    """
    if isinstance(record, Mapping):
        return {key: record.get(key) for key in ("id", "name", "type", "username") if key in record}

    summary: Dict[str, Any] = {"id": str(getattr(record, "id", ""))}
    name = getattr(record, "name", None)
    if name is not None:
        summary["name"] = str(name)
    kind = getattr(record, "type", None)
    if kind is not None:
        summary["type"] = str(kind)
    return summary


class DiscordStateMirror:
    """
    Explicitly-owned session state.

    The sync orchestrator and the service write through the mutators
    below; everything else reads.
    """

    def __init__(
        self,
        initial_state: Optional[Dict[str, Dict[str, Any]]] = None,
        *,
        publisher: Optional[StatePublisher] = None,
        snapshot_name: str = SNAPSHOT_NAME,
    ):
        content = default_state()
        if initial_state:
            for key, value in initial_state.items():
                if key not in content or not isinstance(value, Mapping):
                    log.warning(f"Ignoring unknown initial state entry: {key}")
                    continue
                content[key] = dict(value)

        self._status: SessionStatus = SessionStatus.STOPPED
        self._guilds: List[Any] = []
        self._content: Dict[str, Dict[str, Any]] = content
        self._publisher = publisher
        self._snapshot_name = snapshot_name
        self._commits: int = 0
        self._last_commit_at: Optional[datetime] = None

    # --------------------------------------------------
    # Read access
    # --------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def guilds(self) -> List[Any]:
        """Flat guild list written by the lightweight sync path."""
        return list(self._guilds)

    @property
    def content(self) -> Dict[str, Dict[str, Any]]:
        return {key: dict(value) for key, value in self._content.items()}

    @property
    def content_guilds(self) -> Dict[str, Any]:
        return dict(self._content["guilds"])

    @property
    def channels(self) -> Dict[str, Any]:
        return dict(self._content["channels"])

    @property
    def users(self) -> Dict[str, Any]:
        return dict(self._content["users"])

    @property
    def commit_count(self) -> int:
        return self._commits

    # --------------------------------------------------
    # Mutators
    # --------------------------------------------------

    def set_status(self, status: SessionStatus) -> None:
        if status != self._status:
            log.debug(f"Session status {self._status.value} -> {status.value}")
        self._status = status

    def replace_guild_list(self, guilds: Iterable[Any]) -> None:
        self._guilds = list(guilds)

    def replace_guilds(self, guilds: Mapping[str, Any]) -> None:
        self._content["guilds"] = {str(key): value for key, value in guilds.items()}

    def reset_channels(self) -> None:
        self._content["channels"] = {}

    def put_channel(self, channel_id: str | int, channel: Any) -> None:
        self._content["channels"][str(channel_id)] = channel

    def put_user(self, user_id: str | int, user: Any) -> None:
        self._content["users"][str(user_id)] = user

    # --------------------------------------------------
    # Snapshot / persistence
    # --------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """
        JSON-safe view of the mirror for diagnostics and persistence.
        """
        return {
            "status": self._status.value,
            "guilds": [describe_record(guild) for guild in self._guilds],
            "content": {
                key: {
                    record_id: describe_record(record)
                    for record_id, record in mapping.items()
                }
                for key, mapping in self._content.items()
            },
            "commits": self._commits,
            "last_commit_at": (
                self._last_commit_at.isoformat() if self._last_commit_at else None
            ),
        }

    def commit(self) -> Dict[str, Any]:
        """
        Persist the current snapshot. Persistence failures are logged only.

        Returns the freshly built snapshot, detached from the mirror.
        """
        self._commits += 1
        self._last_commit_at = datetime.now(timezone.utc)
        payload = self.snapshot()

        if self._publisher is not None:
            try:
                self._publisher.publish(self._snapshot_name, payload)
            except Exception as e:
                log.error(f"Failed to persist Discord state snapshot: {e}")

        return payload
