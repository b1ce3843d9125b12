"""
Process entry point: runs the app under uvicorn and owns its lifecycle.

- SIGTERM / SIGINT: stop accepting, let in-flight requests finish within
  SHUTDOWN_GRACE_SECONDS, close MongoDB, exit 0. A second signal forces exit.
- An asyncio "exception was never retrieved" report is fatal: same drain,
  exit 1.
- Startup failure (MongoDB unreachable, broken docs schema): exit 1 before
  the socket is bound.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI

from triddle.core.config import Settings, get_settings
from triddle.core.errors import StartupError
from triddle.core.lifecycle import Lifecycle, ServerState

logger = logging.getLogger(__name__)

FATAL_LOOP_MESSAGE = "exception was never retrieved"


class TriddleServer(uvicorn.Server):
    def __init__(self, config: uvicorn.Config, lifecycle: Lifecycle, settings: Settings):
        super().__init__(config)
        self.lifecycle = lifecycle
        self.settings = settings

    def handle_exit(self, sig: int, frame) -> None:
        # Not re-raised after serve() returns, so the exit code stays ours
        if self.should_exit:
            self.force_exit = True
            return
        self.lifecycle.begin_draining(signal.Signals(sig).name)
        self.should_exit = True

    def handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        message = context.get("message", "")
        if FATAL_LOOP_MESSAGE not in message:
            loop.default_exception_handler(context)
            return
        exc = context.get("exception")
        self.lifecycle.begin_draining(str(exc) if exc else message, exit_code=1)
        self.should_exit = True

    async def serve(self, sockets=None) -> None:
        asyncio.get_running_loop().set_exception_handler(self.handle_loop_exception)
        await super().serve(sockets=sockets)

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if not self.started:
            if self.lifecycle.state is ServerState.STARTING:
                self.lifecycle.abort_startup("Application startup failed")
            else:
                self.lifecycle.mark_stopped()
            return
        if self.lifecycle.state is not ServerState.STARTING:
            # Signalled while the lifespan was still starting; should_exit is set
            return
        docs_url = self.settings.docs_url if self.settings.docs_enabled else None
        self.lifecycle.mark_listening(self.settings.environment, self.config.port, docs_url)

    async def shutdown(self, sockets=None) -> None:
        if self.lifecycle.accepting:
            self.lifecycle.begin_draining("Shutdown")
        try:
            await super().shutdown(sockets=sockets)
        finally:
            self.lifecycle.mark_stopped()


def build_server(app: FastAPI, settings: Settings) -> TriddleServer:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        lifespan="on",
        server_header=False,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds or None,
    )
    return TriddleServer(config, app.state.lifecycle, settings)


def run(settings: Optional[Settings] = None) -> int:
    """Serve until shutdown; returns the process exit code."""
    if settings is None:
        from triddle.main import app
        settings = get_settings()
    else:
        from triddle.main import create_app
        app = create_app(settings, Lifecycle())

    server = build_server(app, settings)
    server.run()
    return server.lifecycle.exit_code


def main() -> None:
    try:
        exit_code = run()
    except StartupError as e:
        logger.error(f"Error: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
