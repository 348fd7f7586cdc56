"""
Discord relay entrypoint.

This module launches the Discord relay as an independent process.
It owns:

- event loop creation
- lifecycle wiring (HTTP callback server + Discord service)
- orderly startup and shutdown
- logging scope
"""

import asyncio
import signal
import sys

from shared.config.discord import load_service_settings
from shared.logging.logger import get_logger
from services.discord.oauth_server import DiscordOAuthCallbackServer
from services.discord.runtime.supervisor import DiscordService

log = get_logger("core.discord_app")


# ----------------------------------------------------------------------
# MAIN ASYNC ENTRYPOINT
# ----------------------------------------------------------------------

async def main(stop_event: asyncio.Event):
    log.info("Discord relay booting")

    settings = load_service_settings()
    service = DiscordService(settings)
    service.on("error", lambda error: log.error(f"Discord service error: {error}"))
    service.on("ready", lambda _: log.info("Discord service ready"))

    server = DiscordOAuthCallbackServer(
        service,
        host=settings.http_host,
        port=settings.http_port,
    )
    server.start()

    # --------------------------------------------------
    # START DISCORD SERVICE
    # --------------------------------------------------
    try:
        await service.start()
        log.info("Discord service started successfully")
    except Exception as e:
        log.error(f"Failed to start Discord service: {e}")
        server.stop()
        raise

    # --------------------------------------------------
    # BLOCK UNTIL SHUTDOWN SIGNAL
    # --------------------------------------------------
    await stop_event.wait()

    log.info("Discord shutdown initiated")

    # --------------------------------------------------
    # ORDERLY SHUTDOWN
    # --------------------------------------------------
    try:
        await service.stop()
    except Exception as e:
        log.warning(f"Discord service shutdown error ignored: {e}")

    server.stop()
    log.info("Discord relay stopped")


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Windows-safe Ctrl+C handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        loop.call_soon_threadsafe(stop_event.set)

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError) as e:
        log.warning(f"Signal handlers not installed: {e}")


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run():
    stop_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    _install_signal_handlers(loop, stop_event)

    exit_code = 0
    try:
        loop.run_until_complete(main(stop_event))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received; shutdown initiated")

    except Exception as e:
        log.error(f"Discord relay exited with error: {e}")
        exit_code = 1

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())

        asyncio.set_event_loop(None)
        loop.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(run())
