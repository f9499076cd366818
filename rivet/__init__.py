"""
Rivet - file-routed full-stack framework

Rivet combines:
- File-based routing for pages and JSON API routes
- Server-side data loading for pages
- Hot module invalidation in development
- Starlette/uvicorn serving
"""

from .core.config import RivetConfig
from .core.errors import (
    ConfigError,
    HandlerContractViolation,
    HandlerExecutionError,
    InitHookError,
    InvalidRouteDefinition,
    RivetError,
    RouteModuleError,
)
from .core.routing import RouteKind, RouteRegistry, match_route
from .core.server import (
    LoaderResult,
    NotFoundResult,
    RedirectResult,
    RequestContext,
    ResponseResult,
    create_app,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "HandlerContractViolation",
    "HandlerExecutionError",
    "InitHookError",
    "InvalidRouteDefinition",
    "LoaderResult",
    "NotFoundResult",
    "RedirectResult",
    "RequestContext",
    "ResponseResult",
    "RivetConfig",
    "RivetError",
    "RouteKind",
    "RouteRegistry",
    "create_app",
    "match_route",
]
