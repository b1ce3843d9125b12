"""
HTTP parameter pollution guard.

``?status=draft&status=closed`` reaches handlers as ``?status=closed``:
the last value wins unless the name is whitelisted. The dropped lists are
kept in ``request.state.query_polluted``.
"""

from typing import Dict, FrozenSet, Iterable, List
from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Receive, Scope, Send


def _text(raw: str) -> str:
    # latin-1 str holding the client's bytes -> UTF-8 text
    return raw.encode("latin-1").decode("utf-8", errors="replace")


class ParameterPollutionMiddleware:
    def __init__(self, app: ASGIApp, whitelist: Iterable[str] = ()):
        self.app = app
        self.whitelist: FrozenSet[str] = frozenset(whitelist)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope.get("query_string"):
            await self.app(scope, receive, send)
            return

        # latin-1 both ways so the rewritten query keeps the original bytes
        pairs = parse_qsl(scope["query_string"].decode("latin-1"), keep_blank_values=True, encoding="latin-1")
        grouped: Dict[str, List[str]] = {}
        for name, value in pairs:
            grouped.setdefault(name, []).append(value)

        polluted = {
            name: values for name, values in grouped.items()
            if len(values) > 1 and _text(name) not in self.whitelist
        }
        if not polluted:
            await self.app(scope, receive, send)
            return

        kept = []
        for name, values in grouped.items():
            if name in polluted:
                kept.append((name, values[-1]))
            else:
                kept.extend((name, value) for value in values)

        scope = dict(scope)
        scope["query_string"] = urlencode(kept, encoding="latin-1").encode("ascii")
        state = scope.setdefault("state", {})
        state["query_polluted"] = {
            _text(name): [_text(value) for value in values] for name, values in polluted.items()
        }
        await self.app(scope, receive, send)
