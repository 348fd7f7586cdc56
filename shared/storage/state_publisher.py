"""
State snapshot publisher.

This module centralizes atomic writes of runtime state snapshots
(mirror commits, diagnostics) under a single state directory.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from shared.logging.logger import get_logger

log = get_logger("shared.state_publisher")


class StatePublisher:
    """
    Atomic JSON snapshot writer rooted at a state directory.
    """

    DEFAULT_BASE_DIR = Path("shared/state")

    def __init__(self, base_dir: Path | str | None = None):
        self._base_dir = Path(base_dir) if base_dir else self.DEFAULT_BASE_DIR
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Atomic writer
    # ------------------------------------------------------------------

    def _write_atomic(self, path: Path, payload: Any) -> None:
        serialized = json.dumps(payload, indent=2, default=str)
        path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, encoding="utf-8"
        ) as tmp:
            tmp.write(serialized)
            tmp.flush()
            os.fsync(tmp.fileno())
            temp_path = Path(tmp.name)

        temp_path.replace(path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def publish(self, relative_path: Path | str, payload: Any) -> None:
        """
        Write snapshot to <base_dir>/<relative_path>.
        """
        self._write_atomic(self._base_dir / Path(relative_path), payload)

    def load(self, relative_path: Path | str) -> Optional[Any]:
        """
        Read a previously published snapshot, or None when absent/unreadable.
        """
        source = self._base_dir / Path(relative_path)
        if not source.exists():
            return None

        try:
            return json.loads(source.read_text(encoding="utf-8"))
        except Exception as e:
            log.warning(f"Failed to load state snapshot {source}: {e}")
            return None
