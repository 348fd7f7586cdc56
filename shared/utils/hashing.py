"""Deterministic identifier helpers for locally-derived entity ids."""
from __future__ import annotations

import hashlib
import json


def stable_entity_id(name: str) -> str:
    """Derive a deterministic id for a named entity.

    The id is the SHA-256 hex digest of the canonical JSON document
    ``{"name": <name>}``, so the same name always maps to the same id
    regardless of process or host.
    """

    if not name:
        raise ValueError("name is required")

    canonical = json.dumps({"name": name}, separators=(",", ":"), sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def user_entity_id(user_ref: str | int) -> str:
    return stable_entity_id(f"discord/users/{user_ref}")


def channel_entity_id(channel_ref: str | int) -> str:
    return stable_entity_id(f"discord/channels/{channel_ref}")
