"""Turn away new requests once the server has started shutting down."""

from starlette.types import ASGIApp, Receive, Scope, Send

from triddle.core.errors import error_response
from triddle.core.lifecycle import Lifecycle

DRAINING_MESSAGE = "Server is shutting down"


class DrainGuardMiddleware:
    def __init__(self, app: ASGIApp, lifecycle: Lifecycle):
        self.app = app
        self.lifecycle = lifecycle

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and not self.lifecycle.accepting:
            response = error_response(503, DRAINING_MESSAGE, headers={"Connection": "close"})
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)
