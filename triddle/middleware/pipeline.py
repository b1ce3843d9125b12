"""
The request pipeline, in the order a request passes through it.

Starlette wraps each newly added middleware around the existing stack, so
the stages are added last-to-first and stage 0 ends up outermost.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Type

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from triddle.core.config import Settings
from triddle.core.lifecycle import Lifecycle
from triddle.core.security import build_security_policy
from triddle.middleware.drain import DrainGuardMiddleware
from triddle.middleware.parameter_pollution import ParameterPollutionMiddleware
from triddle.middleware.rate_limit import RateLimitMiddleware, SlidingWindowRateLimiter
from triddle.middleware.security_headers import SecurityHeadersMiddleware
from triddle.middleware.static import StaticAssetsMiddleware
from triddle.middleware.timeout import RequestTimeoutMiddleware

STAGE_ORDER = (
    "drain_guard",
    "security_headers",
    "rate_limit",
    "parameter_pollution",
    "cors",
    "request_timeout",
    "static_assets",
)


@dataclass(frozen=True)
class Stage:
    name: str
    middleware: Type
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MiddlewarePipeline:
    stages: List[Stage]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def get(self, name: str) -> Stage:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)

    def install(self, app: FastAPI) -> None:
        for stage in reversed(self.stages):
            app.add_middleware(stage.middleware, **stage.options)


def build_pipeline(settings: Settings, lifecycle: Lifecycle) -> MiddlewarePipeline:
    limiter = SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    return MiddlewarePipeline([
        Stage("drain_guard", DrainGuardMiddleware, {"lifecycle": lifecycle}),
        Stage("security_headers", SecurityHeadersMiddleware, {"policy": build_security_policy(settings)}),
        Stage("rate_limit", RateLimitMiddleware, {"limiter": limiter, "trust_proxy": settings.trust_proxy}),
        Stage("parameter_pollution", ParameterPollutionMiddleware, {"whitelist": settings.hpp_whitelist_set}),
        Stage("cors", CORSMiddleware, {
            "allow_origins": settings.cors_allow_list,
            "allow_credentials": True,
            "allow_methods": ["*"],
            "allow_headers": ["*"],
        }),
        Stage("request_timeout", RequestTimeoutMiddleware, {"timeout_seconds": settings.request_timeout_seconds}),
        Stage("static_assets", StaticAssetsMiddleware, {"directory": settings.public_dir}),
    ])
