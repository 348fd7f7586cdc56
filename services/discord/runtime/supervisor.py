"""
Discord Session Supervisor

Owns the lifecycle of the Discord relay session.

Responsibilities:
- start the gateway session (fail fast without a token)
- consume inbound gateway events from a single queue, in order
- route messages through the command dispatcher and the normalizer
- run the initial sync before readiness is announced
- expose activity / error / ready / log listeners
- OAuth callback completion and alert delivery

IMPORTANT:
- MUST NOT create its own event loop
- MUST NOT install signal handlers
- Gateway runtime errors are reported, never fatal
"""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from shared.activity.events import Activity
from shared.config.discord import DiscordServiceSettings
from shared.logging.logger import get_logger
from shared.storage.state_publisher import StatePublisher
from services.discord.client import ERROR, MESSAGE, READY, RESUMED, DiscordGateway, InboundEvent
from services.discord.commands.dispatcher import CommandDispatcher, format_timestamp, utc_now
from services.discord.directory import DiscordDirectory
from services.discord.errors import DiscordConfigurationError
from services.discord.normalizer import author_name, normalize_message
from services.discord.oauth import CALLBACK_PATH, DiscordOAuthClient
from services.discord.runtime.lifecycle import DiscordRuntimeLifecycle, SessionStatus
from services.discord.state import DiscordStateMirror
from services.discord.sync import DiscordSyncOrchestrator

log = get_logger("discord.supervisor", runtime="discord")

EVENTS: tuple[str, ...] = ("activity", "error", "ready", "log")

Listener = Callable[[Any], Any]
RouteHandler = Callable[[Dict[str, List[str]]], Tuple[int, str]]


@dataclass(frozen=True)
class ServiceRoute:
    method: str
    path: str
    handler: RouteHandler


class DiscordService:
    """
    Owns the Discord session.

    Contract:
    - start() is awaitable and resolves once login succeeded
    - stop() is idempotent
    - the "ready" event fires only after the initial sync completed
    """

    def __init__(
        self,
        settings: DiscordServiceSettings,
        *,
        gateway: Optional[DiscordGateway] = None,
        directory: Optional[DiscordDirectory] = None,
        oauth: Optional[DiscordOAuthClient] = None,
        mirror: Optional[DiscordStateMirror] = None,
    ):
        self.settings = settings

        self._gateway = gateway or DiscordGateway(settings)
        self._gateway.bind(self.deliver)

        self._directory = directory or DiscordDirectory(self._gateway.client)
        self._oauth = oauth or DiscordOAuthClient(settings)
        self._mirror = mirror or DiscordStateMirror(
            settings.state,
            publisher=StatePublisher(settings.state_dir),
        )
        self._sync = DiscordSyncOrchestrator(
            directory=self._directory,
            mirror=self._mirror,
            emit=self.emit,
        )
        self._dispatcher = CommandDispatcher(sync=self._sync.sync)
        self._lifecycle = DiscordRuntimeLifecycle()

        self._listeners: Dict[str, List[Listener]] = {name: [] for name in EVENTS}
        self._inbox: asyncio.Queue[InboundEvent] = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._listener_tasks: set[asyncio.Task] = set()
        self._ready_event = asyncio.Event()
        self._ready_seen: bool = False
        self._running: bool = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # --------------------------------------------------
    # Events
    # --------------------------------------------------

    def on(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown service event: {event}")
        self._listeners[event].append(callback)

    def emit(self, event: str, payload: Any = None) -> None:
        for callback in list(self._listeners.get(event, [])):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._listener_tasks.add(task)
                    task.add_done_callback(self._listener_tasks.discard)
            except Exception as e:
                log.warning(f"Listener for '{event}' error ignored: {e}")

    def _log_event(self, message: str) -> None:
        log.info(message)
        self.emit("log", message)

    def deliver(self, event: InboundEvent) -> None:
        """
        Inbound channel for gateway events (consumed by one loop).
        """
        self._inbox.put_nowait(event)

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    async def start(self) -> "DiscordService":
        if self._running:
            log.warning("Discord service already running")
            return self

        self._loop = asyncio.get_running_loop()

        if not self.settings.token:
            link = self.generate_application_link()
            self.emit(
                "error",
                f"Discord token not provided.  Please visit {link} to generate a token.",
            )
            raise DiscordConfigurationError(
                "Discord token not provided.",
                remediation=link,
            )

        self._lifecycle.mark_started()
        self._mirror.set_status(SessionStatus.STARTING)

        try:
            await self._gateway.login(self.settings.token)
        except Exception as exc:
            self._lifecycle.mark_error(exc)
            self._mirror.set_status(SessionStatus.STOPPED)
            self.emit("error", f"Discord Internal Exception (DIE): {exc}")
            raise

        self._running = True
        self._log_event("Discord client started.")

        self._tasks.append(asyncio.create_task(self._dispatch_loop()))
        self._tasks.append(asyncio.create_task(self._run_gateway()))
        return self

    async def _run_gateway(self) -> None:
        try:
            await self._gateway.connect()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(f"Discord gateway connection failed: {e}")
            self.deliver(InboundEvent(ERROR, e))

    async def stop(self) -> None:
        if not self._running:
            return

        log.info("Stopping Discord service")

        try:
            await self._gateway.close()
        except Exception as e:
            log.warning(f"Discord close error ignored: {e}")

        for task in self._tasks:
            if not task.done():
                task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        self._tasks.clear()
        self._running = False
        self._ready_event.clear()
        self._lifecycle.mark_stopped()
        self._mirror.set_status(SessionStatus.STOPPED)
        self._mirror.commit()

        log.info("Discord service stopped")

    async def wait_until_ready(self) -> None:
        await self._ready_event.wait()

    # --------------------------------------------------
    # Inbound event handling
    # --------------------------------------------------

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._inbox.get()
            try:
                await self.handle_event(event)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error(f"Failed to handle Discord {event.kind} event: {e}")
                self.emit("error", e)
            finally:
                self._inbox.task_done()

    async def handle_event(self, event: InboundEvent) -> None:
        if event.kind == READY:
            await self._handle_ready()
        elif event.kind == MESSAGE:
            await self.handle_message(event.payload)
        elif event.kind == RESUMED:
            self._restore_ready()
        elif event.kind == ERROR:
            self._handle_gateway_error(event.payload)
        else:
            log.debug(f"Ignoring unknown inbound event: {event.kind}")

    async def _handle_ready(self) -> None:
        if self._ready_seen:
            log.info("Discord ready signal repeated; session already ready")
            self._restore_ready()
            return
        self._ready_seen = True

        await self._sync.sync_guilds()
        await self._sync.sync()

        self._mirror.set_status(SessionStatus.READY)
        self._lifecycle.mark_ready()
        self._ready_event.set()
        self.emit("ready", self)

    def _restore_ready(self) -> None:
        # only a session that completed its initial sync can be READY
        if self._ready_seen and self._mirror.status is SessionStatus.ERRORED:
            log.info("Discord session recovered")
            self._mirror.set_status(SessionStatus.READY)

    def _handle_gateway_error(self, error: Any) -> None:
        self._lifecycle.mark_error(error)
        self._mirror.set_status(SessionStatus.ERRORED)
        self.emit("error", error)

    async def handle_message(self, message: Any) -> Optional[Activity]:
        """
        Process one inbound message. Reply-send failures propagate.
        """
        if getattr(message.author, "bot", False):
            return None

        now = utc_now()
        self._log_event(
            f"{format_timestamp(now)} {author_name(message.author)}: {message.content}"
        )

        result = await self._dispatcher.dispatch(message, now=now)
        if not result.emit_activity:
            return None

        activity = normalize_message(message)
        self.emit("activity", activity)
        return activity

    # --------------------------------------------------
    # Sync passthroughs
    # --------------------------------------------------

    async def sync(self) -> "DiscordService":
        await self._sync.sync()
        return self

    async def sync_guilds(self) -> "DiscordService":
        await self._sync.sync_guilds()
        return self

    async def sync_all_channels(self) -> "DiscordService":
        await self._sync.sync_all_channels()
        return self

    async def list_channel_members(self, channel_id: int | str) -> List[Any]:
        return await self._directory.list_channel_members(channel_id)

    # --------------------------------------------------
    # Outbound
    # --------------------------------------------------

    async def send_to_channel(self, channel_id: int | str, message: str) -> None:
        channel = await self._directory.fetch_channel(channel_id)
        await channel.send(message)

    async def alert(self, message: str) -> None:
        log.warning(f"Alerting Discord: {message}")
        for channel_id in self.settings.alerts:
            try:
                await self.send_to_channel(channel_id, message)
            except Exception as e:
                log.warning(f"Failed to deliver alert to channel {channel_id}: {e}")

    # --------------------------------------------------
    # OAuth
    # --------------------------------------------------

    def generate_application_link(self) -> str:
        return self._oauth.generate_application_link()

    def generate_authorize_link(self) -> str:
        return self._oauth.generate_authorize_link()

    @property
    def routes(self) -> List[ServiceRoute]:
        return [
            ServiceRoute(
                method="GET",
                path=CALLBACK_PATH,
                handler=self.handle_oauth_callback,
            ),
        ]

    def handle_oauth_callback(self, query: Dict[str, List[str]]) -> Tuple[int, str]:
        """
        OAuth redirect target. Always acknowledges; a received code is
        exchanged on the service loop in the background.
        """
        codes = query.get("code") or []
        if not codes:
            return 200, "ok"

        if self._loop is None or not self._loop.is_running():
            log.warning("OAuth code received while the service loop is not running; ignored")
            return 200, "ok"

        future = asyncio.run_coroutine_threadsafe(
            self.complete_authorization(codes[0]),
            self._loop,
        )
        future.add_done_callback(self._log_authorization_result)
        return 200, "ok"

    @staticmethod
    def _log_authorization_result(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            log.error(f"OAuth authorization failed: {error}")

    async def complete_authorization(self, code: str) -> Optional[Dict[str, Any]]:
        token = await self._oauth.exchange_code_for_token(code)
        access_token = token.get("access_token") if isinstance(token, dict) else None
        if not access_token:
            log.warning("OAuth code exchange returned no access token")
            return None

        user = await self._oauth.get_token_user(access_token)
        if not isinstance(user, dict) or not user.get("id"):
            log.warning("OAuth token did not resolve to a user")
            return None

        self._mirror.put_user(user["id"], user)
        self._mirror.commit()
        self._log_event(f"Discord user authorized: {user.get('username')} ({user['id']})")
        return user

    # --------------------------------------------------
    # Read-only Introspection
    # --------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def ready(self) -> bool:
        return self._ready_event.is_set()

    @property
    def status(self) -> SessionStatus:
        return self._mirror.status

    @property
    def mirror(self) -> DiscordStateMirror:
        return self._mirror

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    def snapshot(self) -> Dict[str, Any]:
        """
        Full session snapshot for diagnostics.
        """
        return {
            "running": self._running,
            "ready": self.ready,
            "status": self.status.value,
            "task_count": self.task_count,
            "lifecycle": self._lifecycle.snapshot(),
            "state": self._mirror.snapshot(),
        }
