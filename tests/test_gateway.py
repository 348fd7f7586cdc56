from __future__ import annotations

from typing import Any

import pytest

from services.discord.client import ERROR, MESSAGE, READY, RESUMED, DiscordGateway, InboundEvent
from shared.config.discord import DiscordServiceSettings


def _gateway() -> tuple[DiscordGateway, list[InboundEvent]]:
    delivered: list[InboundEvent] = []
    gateway = DiscordGateway(DiscordServiceSettings())
    gateway.bind(delivered.append)
    return gateway, delivered


def test_client_uses_configured_intents() -> None:
    gateway = DiscordGateway(DiscordServiceSettings(intents=["guilds", "guild_messages"]))

    assert gateway.client.intents.guilds is True
    assert gateway.client.intents.guild_messages is True
    assert gateway.client.intents.message_content is False


@pytest.mark.anyio
async def test_message_becomes_inbound_event() -> None:
    gateway, delivered = _gateway()
    message = object()

    await gateway.client.on_message(message)

    assert delivered == [InboundEvent(MESSAGE, message)]


@pytest.mark.anyio
async def test_ready_and_resumed_become_inbound_events() -> None:
    gateway, delivered = _gateway()

    await gateway.client.on_ready()
    await gateway.client.on_resumed()

    assert [event.kind for event in delivered] == [READY, RESUMED]


@pytest.mark.anyio
async def test_handler_error_is_delivered_with_active_exception() -> None:
    gateway, delivered = _gateway()
    failure = RuntimeError("handler blew up")

    try:
        raise failure
    except RuntimeError:
        await gateway.client.on_error("on_message")

    assert delivered == [InboundEvent(ERROR, failure)]


@pytest.mark.anyio
async def test_events_are_dropped_without_consumer() -> None:
    gateway = DiscordGateway(DiscordServiceSettings())

    await gateway.client.on_message(object())
    await gateway.client.on_disconnect()

    delivered: list[InboundEvent] = []
    gateway.bind(delivered.append)
    assert delivered == []


@pytest.mark.anyio
async def test_session_calls_are_forwarded(monkeypatch: pytest.MonkeyPatch) -> None:
    gateway, _ = _gateway()
    calls: list[tuple[str, Any]] = []

    async def _login(token: str) -> None:
        calls.append(("login", token))

    async def _connect(*, reconnect: bool) -> None:
        calls.append(("connect", reconnect))

    async def _close() -> None:
        calls.append(("close", None))

    monkeypatch.setattr(gateway.client, "login", _login)
    monkeypatch.setattr(gateway.client, "connect", _connect)
    monkeypatch.setattr(gateway.client, "close", _close)

    await gateway.login("bot-token")
    await gateway.connect()
    await gateway.close()

    assert calls == [("login", "bot-token"), ("connect", True), ("close", None)]
