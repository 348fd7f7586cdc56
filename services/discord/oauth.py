"""
Discord OAuth2 helpers.

Responsibilities:
- Authorization-code → token exchange
- Token → user resolution
- Authorization link builders (application install link, login link)

HTTP failures are logged and resolve to None; callers must check.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlencode

import httpx

from shared.config.discord import DiscordServiceSettings
from shared.logging.logger import get_logger

log = get_logger("discord.oauth", runtime="discord")

TOKEN_URL = "https://discord.com/api/oauth2/token"
TOKEN_USER_URL = "https://discord.com/api/oauth2/@me"
APPLICATION_AUTHORIZE_URL = "http://discord.com/api/oauth2/authorize"
LOGIN_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
CALLBACK_PATH = "/services/discord/authorize"


class DiscordOAuthClient:
    def __init__(
        self,
        settings: DiscordServiceSettings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ):
        self._settings = settings
        self._http_client = http_client
        self._timeout = timeout

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    # ------------------------------------------------------------------ #
    # Links
    # ------------------------------------------------------------------ #

    @property
    def redirect_uri(self) -> str:
        scheme = "https" if self._settings.secure else "http"
        return f"{scheme}://{self._settings.authority}{CALLBACK_PATH}"

    def generate_application_link(self) -> str:
        """
        Bot installation link carrying the configured scopes.
        """
        params = urlencode({
            "client_id": self._settings.app.id or "",
            "permissions": 0,
            "scope": ",".join(self._settings.scopes),
        })
        return f"{APPLICATION_AUTHORIZE_URL}?{params}"

    def generate_authorize_link(self) -> str:
        """
        User login link; always `identify` only, redirects to the callback.
        """
        params = urlencode({
            "client_id": self._settings.app.id or "",
            "permissions": 0,
            "redirect_uri": self.redirect_uri,
            "scope": ",".join(["identify"]),
            "response_type": "code",
        })
        return f"{LOGIN_AUTHORIZE_URL}?{params}"

    # ------------------------------------------------------------------ #
    # HTTP
    # ------------------------------------------------------------------ #

    async def exchange_code_for_token(self, code: str) -> Optional[Dict[str, Any]]:
        params = {
            "client_id": self._settings.app.id,
            "client_secret": self._settings.app.secret,
            "code": code,
            "grant_type": "authorization_code",
            "scope": "identify",
            "redirect_uri": self.redirect_uri,
        }

        try:
            async with self._session() as client:
                response = await client.post(
                    TOKEN_URL,
                    data=params,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
            token = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Could not fetch token: {e}")
            return None

        if response.is_error:
            log.warning(f"Token exchange returned HTTP {response.status_code}")

        return token

    async def get_token_user(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            async with self._session() as client:
                response = await client.get(
                    TOKEN_USER_URL,
                    headers={"Authorization": f"Bearer {token}"},
                )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Could not fetch user: {e}")
            return None

        if not isinstance(payload, dict):
            return None

        return payload.get("user")
