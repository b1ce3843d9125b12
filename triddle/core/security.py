"""
Security policy - one declarative description of the response headers.

A strict content-security-policy covers the API. Route groups that serve
browser pages (the Swagger UI under /api-docs) get their own, relaxed,
source lists. The longest matching prefix wins.
"""

from dataclasses import dataclass
from typing import Dict, Tuple
from urllib.parse import urlsplit

from triddle.api.docs import SWAGGER_ASSET_ORIGIN, SWAGGER_FAVICON_URL, server_list
from triddle.core.config import Settings

SELF = "'self'"
NONE = "'none'"
UNSAFE_INLINE = "'unsafe-inline'"

# Hardening headers sent on every response
BASE_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("Cross-Origin-Opener-Policy", "same-origin"),
    ("Cross-Origin-Resource-Policy", "same-origin"),
    ("Origin-Agent-Cluster", "?1"),
    ("Referrer-Policy", "no-referrer"),
    ("Strict-Transport-Security", "max-age=15552000; includeSubDomains"),
    ("X-Content-Type-Options", "nosniff"),
    ("X-DNS-Prefetch-Control", "off"),
    ("X-Download-Options", "noopen"),
    ("X-Permitted-Cross-Domain-Policies", "none"),
    ("X-XSS-Protection", "0"),
)


@dataclass(frozen=True)
class RouteGroupPolicy:
    """CSP source lists for every path under ``prefix``."""

    prefix: str
    script_src: Tuple[str, ...] = (SELF,)
    style_src: Tuple[str, ...] = (SELF,)
    connect_src: Tuple[str, ...] = (SELF,)
    img_src: Tuple[str, ...] = (SELF, "data:")
    font_src: Tuple[str, ...] = (SELF, "data:")
    frame_options: str = "SAMEORIGIN"

    def directives(self) -> Dict[str, Tuple[str, ...]]:
        return {
            "default-src": (SELF,),
            "base-uri": (SELF,),
            "form-action": (SELF,),
            "frame-ancestors": (SELF,) if self.frame_options == "SAMEORIGIN" else (NONE,),
            "object-src": (NONE,),
            "script-src-attr": (NONE,),
            "script-src": self.script_src,
            "style-src": self.style_src,
            "connect-src": self.connect_src,
            "img-src": self.img_src,
            "font-src": self.font_src,
        }

    def header_value(self) -> str:
        return "; ".join(f"{name} {' '.join(sources)}" for name, sources in self.directives().items())

    def matches(self, path: str) -> bool:
        prefix = self.prefix.rstrip("/")
        return not prefix or path == prefix or path.startswith(prefix + "/")


@dataclass(frozen=True)
class SecurityPolicy:
    default: RouteGroupPolicy
    groups: Tuple[RouteGroupPolicy, ...] = ()
    headers: Tuple[Tuple[str, str], ...] = BASE_HEADERS

    def group_for(self, path: str) -> RouteGroupPolicy:
        matching = [group for group in self.groups if group.matches(path)]
        if not matching:
            return self.default
        return max(matching, key=lambda group: len(group.prefix))

    def headers_for(self, path: str) -> Tuple[Tuple[str, str], ...]:
        group = self.group_for(path)
        return self.headers + (
            ("Content-Security-Policy", group.header_value()),
            ("X-Frame-Options", group.frame_options),
        )


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}" if parts.scheme and parts.netloc else ""


def build_security_policy(settings: Settings) -> SecurityPolicy:
    """
    API routes: nothing but same-origin resources.
    Docs routes: Swagger UI bundle and stylesheet from the CDN, its inline
    bootstrap script and styles, its favicon, and "try it out" calls to the
    documented servers.
    """
    server_origins = tuple(sorted({
        origin for origin in (_origin(server["url"]) for server in server_list(settings)) if origin
    }))
    docs = RouteGroupPolicy(
        prefix=settings.docs_path,
        script_src=(SELF, UNSAFE_INLINE, SWAGGER_ASSET_ORIGIN),
        style_src=(SELF, UNSAFE_INLINE, SWAGGER_ASSET_ORIGIN),
        connect_src=(SELF,) + server_origins,
        img_src=(SELF, "data:", _origin(SWAGGER_FAVICON_URL)),
        frame_options="DENY",
    )
    return SecurityPolicy(default=RouteGroupPolicy(prefix="/"), groups=(docs,))
