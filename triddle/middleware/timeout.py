"""Bound the time a request may take before the client gets an answer."""

import asyncio
import logging
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from triddle.core.errors import error_response

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out"


def _consume_result(task: asyncio.Task) -> None:
    # Retrieve the abandoned task's outcome so asyncio never reports it
    if not task.cancelled():
        task.exception()


class RequestTimeoutMiddleware:
    """
    Answers 503 when the downstream app has not responded within
    ``timeout_seconds``. ``None`` or ``0`` disables the limit.

    The downstream task is cancelled and abandoned. A handler running in the
    threadpool keeps running until it returns, but anything it tries to send
    afterwards is dropped.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: Optional[float] = None):
        self.app = app
        self.timeout_seconds = timeout_seconds or None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.timeout_seconds is None:
            await self.app(scope, receive, send)
            return

        response_started = False
        timed_out = False

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if timed_out:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        task = asyncio.ensure_future(self.app(scope, receive, guarded_send))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            task.add_done_callback(_consume_result)
            raise
        if task in done:
            task.result()
            return

        timed_out = True
        task.cancel()
        task.add_done_callback(_consume_result)
        logger.warning(f"{scope['method']} {scope['path']} exceeded {self.timeout_seconds}s")

        if response_started:
            # Headers are out; the client sees a truncated body
            return
        response = error_response(503, TIMEOUT_MESSAGE)
        await response(scope, receive, send)
