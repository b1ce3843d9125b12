"""
Server lifecycle state machine.

    starting -> listening -> draining -> stopped
    starting -> stopped                 (startup aborted)

The server drives the transitions; the drain guard reads ``accepting``.
"""

import enum
import logging
from typing import Optional

from triddle.core.logging import log_event


class ServerState(str, enum.Enum):
    STARTING = "starting"
    LISTENING = "listening"
    DRAINING = "draining"
    STOPPED = "stopped"


TRANSITIONS = {
    ServerState.STARTING: {ServerState.LISTENING, ServerState.DRAINING, ServerState.STOPPED},
    ServerState.LISTENING: {ServerState.DRAINING},
    ServerState.DRAINING: {ServerState.STOPPED},
    ServerState.STOPPED: set(),
}


class InvalidTransition(RuntimeError):
    pass


class Lifecycle:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("triddle.server")
        self.state = ServerState.STARTING
        self.exit_code = 0
        self.shutdown_reason: Optional[str] = None

    @property
    def accepting(self) -> bool:
        return self.state in (ServerState.STARTING, ServerState.LISTENING)

    def _move(self, target: ServerState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"Cannot go from {self.state.value} to {target.value}")
        self.state = target

    def mark_listening(self, environment: str, port: int, docs_url: Optional[str] = None) -> None:
        self._move(ServerState.LISTENING)
        log_event(
            self.logger, logging.INFO, "server.listening",
            f"Server running in {environment} mode on port {port}",
            environment=environment, port=port,
        )
        if docs_url:
            log_event(
                self.logger, logging.INFO, "server.docs",
                f"API Documentation available at {docs_url}",
                docs_url=docs_url,
            )

    def begin_draining(self, reason: str, exit_code: int = 0) -> bool:
        """
        Enter ``draining``. Returns False when already draining or stopped,
        in which case only a worse exit code is recorded.
        """
        if self.state in (ServerState.DRAINING, ServerState.STOPPED):
            self.exit_code = max(self.exit_code, exit_code)
            return False

        self._move(ServerState.DRAINING)
        self.exit_code = exit_code
        self.shutdown_reason = reason
        if exit_code:
            log_event(self.logger, logging.ERROR, "server.fatal", f"Error: {reason}", exit_code=exit_code)
        else:
            log_event(
                self.logger, logging.INFO, "server.draining",
                f"{reason} received, shutting down gracefully", signal=reason,
            )
        return True

    def abort_startup(self, reason: str) -> None:
        """Startup failed before the socket was bound."""
        self.exit_code = 1
        self.shutdown_reason = reason
        log_event(self.logger, logging.ERROR, "server.startup_failed", f"Error: {reason}", exit_code=1)
        self.mark_stopped()

    def mark_stopped(self) -> None:
        if self.state is ServerState.STOPPED:
            return
        self._move(ServerState.STOPPED)
        log_event(self.logger, logging.INFO, "server.stopped", "Process terminated", exit_code=self.exit_code)
