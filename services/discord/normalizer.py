"""
Discord message normalization.

Turns a discord.py message into the canonical Activity record. Pure:
no network access, no logging, no state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from shared.activity.events import Activity, create_activity
from shared.utils.hashing import channel_entity_id, user_entity_id


def _created_millis(created_at: Optional[datetime]) -> Optional[int]:
    if created_at is None:
        return None
    return int(created_at.timestamp() * 1000)


def _channel_type(channel: Any) -> Optional[str]:
    raw = getattr(channel, "type", None)
    if raw is None:
        return None
    return str(raw)


def author_name(author: Any) -> str:
    # discord.py exposes the account name as `name`
    return str(getattr(author, "name", None) or getattr(author, "username", ""))


def normalize_message(message: Any) -> Activity:
    """
    Build the Activity for an inbound message.

    Bot authors must be filtered by the caller. Direct-message channels have
    no name, which yields ``target.name = None``.
    """
    author = message.author
    channel = message.channel

    return create_activity(
        actor_id=user_entity_id(author.id),
        username=author_name(author),
        actor_ref=str(author.id),
        content=message.content,
        created=_created_millis(getattr(message, "created_at", None)),
        target_id=channel_entity_id(channel.id),
        target_ref=str(channel.id),
        target_name=getattr(channel, "name", None),
        target_type=_channel_type(channel),
    )
