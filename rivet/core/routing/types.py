"""Shared type definitions for the routing engine."""

from enum import Enum
from typing import Any, Awaitable, Callable, Union


class RouteKind(str, Enum):
    """Whether a route serves JSON handlers or a rendered page."""

    API = "api"
    PAGE = "page"


# Handler or loader: called with a RequestContext, sync or async
RouteCallable = Callable[..., Union[Any, Awaitable[Any]]]

# Middleware: called with (ctx, call_next)
Middleware = Callable[..., Union[Any, Awaitable[Any]]]
