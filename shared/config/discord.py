"""
Discord service configuration loader.

Design rules:
- Import-safe (no side effects)
- Defaults < JSON file < environment < explicit overrides
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import discord
from dotenv import load_dotenv

from shared.logging.logger import get_logger

log = get_logger("shared.config.discord")

_CONFIG_PATH = Path(__file__).parent / "discord_service.json"

DEFAULT_AUTHORITY = "localhost:3040"

DEFAULT_SCOPES: tuple[str, ...] = (
    "bot",
    "identify",
    "guilds",
    "guilds.join",
)

DEFAULT_INTENTS: tuple[str, ...] = (
    "guilds",
    "guild_messages",
    "guild_reactions",
    "members",
    "dm_messages",
    "dm_reactions",
    "dm_typing",
    "guild_typing",
    "voice_states",
    "presences",
    "message_content",
)

ENV_TOKEN = "DISCORD_BOT_TOKEN"
ENV_CLIENT_ID = "DISCORD_CLIENT_ID"
ENV_CLIENT_SECRET = "DISCORD_CLIENT_SECRET"
ENV_AUTHORITY = "DISCORD_AUTHORITY"
ENV_SECURE = "DISCORD_SECURE"


def default_state() -> Dict[str, Dict[str, Any]]:
    return {
        "channels": {},
        "guilds": {},
        "users": {},
    }


@dataclass
class DiscordAppCredentials:
    id: Optional[str] = None
    secret: Optional[str] = None


@dataclass
class DiscordServiceSettings:
    authority: str = DEFAULT_AUTHORITY
    token: Optional[str] = None
    alerts: List[str] = field(default_factory=list)
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    intents: List[str] = field(default_factory=lambda: list(DEFAULT_INTENTS))
    secure: bool = False
    state: Dict[str, Dict[str, Any]] = field(default_factory=default_state)
    app: DiscordAppCredentials = field(default_factory=DiscordAppCredentials)
    http_host: str = "0.0.0.0"
    http_port: int = 3040
    state_dir: str = "shared/state"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authority": self.authority,
            "token": self.token,
            "alerts": list(self.alerts),
            "scopes": list(self.scopes),
            "intents": list(self.intents),
            "secure": self.secure,
            "state": copy.deepcopy(self.state),
            "app": {"id": self.app.id, "secret": self.app.secret},
            "http_host": self.http_host,
            "http_port": self.http_port,
            "state_dir": self.state_dir,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DiscordServiceSettings":
        merged = merge_settings(cls().to_dict(), raw or {})
        app_raw = merged.get("app") if isinstance(merged.get("app"), dict) else {}

        raw_state = merged.get("state")
        if not isinstance(raw_state, dict):
            raw_state = {}
        state = default_state()
        for key in state:
            if isinstance(raw_state.get(key), dict):
                state[key] = raw_state[key]

        return cls(
            authority=str(merged.get("authority") or DEFAULT_AUTHORITY),
            token=_normalize_optional_str(merged.get("token")),
            alerts=_normalize_str_list(merged.get("alerts")),
            scopes=_normalize_str_list(merged.get("scopes")),
            intents=_normalize_str_list(merged.get("intents")),
            secure=_normalize_bool(merged.get("secure")),
            state=state,
            app=DiscordAppCredentials(
                id=_normalize_optional_str(app_raw.get("id")),
                secret=_normalize_optional_str(app_raw.get("secret")),
            ),
            http_host=str(merged.get("http_host") or "0.0.0.0"),
            http_port=int(merged.get("http_port") or 3040),
            state_dir=str(merged.get("state_dir") or "shared/state"),
        )


def _normalize_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        raw = value.strip()
        return raw or None
    return None


def _normalize_str_list(raw: Any) -> List[str]:
    if not isinstance(raw, (list, tuple)):
        return []
    normalized: List[str] = []
    for entry in raw:
        value = _normalize_optional_str(entry)
        if value:
            normalized.append(value)
    return normalized


def _normalize_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def merge_settings(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge ``override`` into a copy of ``base``.

    Nested dicts merge key by key; any other value (lists included)
    replaces the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _load_file_settings(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        log.warning(f"Failed to load discord service config ({exc}); using defaults")
        return {}

    if not isinstance(data, dict):
        log.warning("Discord service config root is not an object; ignoring")
        return {}

    return data


def _env_settings() -> Dict[str, Any]:
    env: Dict[str, Any] = {}

    token = os.getenv(ENV_TOKEN)
    if token:
        env["token"] = token

    authority = os.getenv(ENV_AUTHORITY)
    if authority:
        env["authority"] = authority

    secure = os.getenv(ENV_SECURE)
    if secure:
        env["secure"] = _normalize_bool(secure)

    app: Dict[str, Any] = {}
    client_id = os.getenv(ENV_CLIENT_ID)
    if client_id:
        app["id"] = client_id
    client_secret = os.getenv(ENV_CLIENT_SECRET)
    if client_secret:
        app["secret"] = client_secret
    if app:
        env["app"] = app

    return env


def load_service_settings(
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> DiscordServiceSettings:
    load_dotenv()

    raw = _load_file_settings(path or _CONFIG_PATH)
    raw = merge_settings(raw, _env_settings())
    if overrides:
        raw = merge_settings(raw, overrides)

    settings = DiscordServiceSettings.from_dict(raw)
    log.info(
        f"Discord service settings loaded: authority={settings.authority} "
        f"token_present={bool(settings.token)} intents={len(settings.intents)}"
    )
    return settings


def build_intents(names: Iterable[str]) -> discord.Intents:
    """
    Build a discord.Intents value from intent flag names.
    """
    intents = discord.Intents.none()
    valid = set(discord.Intents.VALID_FLAGS)
    for name in names:
        if name not in valid:
            raise ValueError(f"Unknown Discord gateway intent: {name}")
        setattr(intents, name, True)
    return intents


__all__ = [
    "DEFAULT_INTENTS",
    "DEFAULT_SCOPES",
    "DiscordAppCredentials",
    "DiscordServiceSettings",
    "build_intents",
    "default_state",
    "load_service_settings",
    "merge_settings",
]
