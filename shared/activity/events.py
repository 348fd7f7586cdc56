"""Canonical activity-stream record and helpers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

DISCORD_MESSAGE = "DiscordMessage"


@dataclass(frozen=True)
class ActivityActor:
    id: str
    username: str
    ref: str


@dataclass(frozen=True)
class ActivityObject:
    content: str
    created: Optional[int]


@dataclass(frozen=True)
class ActivityTarget:
    id: str
    name: Optional[str]
    type: Optional[str]
    ref: str


@dataclass(frozen=True)
class Activity:
    type: str
    actor: ActivityActor
    object: ActivityObject
    target: ActivityTarget

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        # DM channels carry no name; the key is absent rather than empty
        if self.target.name is None:
            payload["target"].pop("name", None)
        return payload


def create_activity(
    *,
    actor_id: str,
    username: str,
    actor_ref: str,
    content: str,
    created: Optional[int],
    target_id: str,
    target_ref: str,
    target_name: Optional[str] = None,
    target_type: Optional[str] = None,
    activity_type: str = DISCORD_MESSAGE,
) -> Activity:
    if not actor_id:
        raise ValueError("actor_id is required")
    if not target_id:
        raise ValueError("target_id is required")

    return Activity(
        type=activity_type,
        actor=ActivityActor(
            id=actor_id,
            username=str(username),
            ref=str(actor_ref),
        ),
        object=ActivityObject(content=content, created=created),
        target=ActivityTarget(
            id=target_id,
            name=target_name,
            type=target_type,
            ref=str(target_ref),
        ),
    )


__all__ = [
    "Activity",
    "ActivityActor",
    "ActivityObject",
    "ActivityTarget",
    "DISCORD_MESSAGE",
    "create_activity",
]
