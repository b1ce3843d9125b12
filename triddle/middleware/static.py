"""
Serve files from the public directory, falling through to the routes.

GET /logo.png        -> public/logo.png
GET /uploads/a.pdf   -> public/uploads/a.pdf
GET /                -> public/index.html
anything else        -> next app
"""

from pathlib import Path

from starlette.exceptions import HTTPException
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

SERVED_METHODS = ("GET", "HEAD")


class StaticAssetsMiddleware:
    def __init__(self, app: ASGIApp, directory: Path):
        self.app = app
        self.directory = Path(directory)
        self.files = StaticFiles(directory=self.directory, html=True, check_dir=False)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in SERVED_METHODS or not self.directory.is_dir():
            await self.app(scope, receive, send)
            return

        try:
            response = await self.files.get_response(self.files.get_path(scope), scope)
        except HTTPException:
            await self.app(scope, receive, send)
            return

        if response.status_code == 404:
            # html mode answers misses with public/404.html; routes come first
            await self.app(scope, receive, send)
            return

        await response(scope, receive, send)
