"""HTTP server exposing the Discord service routes (OAuth redirect target)."""

from __future__ import annotations

import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlparse

from shared.logging.logger import get_logger
from services.discord.runtime.supervisor import DiscordService

log = get_logger("discord.oauth_server", runtime="discord")


class DiscordOAuthCallbackServer:
    def __init__(self, service: DiscordService, host: str = "0.0.0.0", port: int = 3040) -> None:
        self._service = service
        self._host = host
        self._port = int(port)
        self._thread: Optional[threading.Thread] = None
        self._server: Optional[ThreadingHTTPServer] = None

    @property
    def server_address(self) -> Optional[tuple]:
        return self._server.server_address if self._server else None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        handler = self._build_handler()
        self._server = ThreadingHTTPServer((self._host, self._port), handler)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        log.info("Discord OAuth callback server running on %s:%s", *self._server.server_address[:2])

    def stop(self) -> None:
        if not self._server:
            return
        self._server.shutdown()
        self._server.server_close()
        self._server = None
        self._thread = None
        log.info("Discord OAuth callback server stopped")

    def _build_handler(self):
        routes = {(route.method, route.path): route.handler for route in self._service.routes}

        class Handler(BaseHTTPRequestHandler):
            def _send_text(self, status: int, text: str) -> None:
                body = text.encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _dispatch(self, method: str) -> None:
                parsed = urlparse(self.path)
                handler = routes.get((method, parsed.path.rstrip("/") or "/"))
                if handler is None:
                    self._send_text(HTTPStatus.NOT_FOUND, "not found")
                    return

                try:
                    status, text = handler(parse_qs(parsed.query))
                except Exception as e:
                    log.error(f"Route {method} {parsed.path} failed: {e}")
                    self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "error")
                    return

                self._send_text(status, text)

            def do_GET(self) -> None:  # noqa: N802 - stdlib signature
                self._dispatch("GET")

            def log_message(self, format: str, *args) -> None:  # noqa: A002
                log.debug("HTTP %s - %s", self.address_string(), format % args)

        return Handler
