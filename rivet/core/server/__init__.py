"""
Rivet Server

Per-request pipeline (context, invoker, initial data), the Starlette
application factory, and development tooling.
"""

from .app import RivetApp, create_app
from .context import (
    NotFoundResult,
    RedirectResult,
    RequestContext,
    ResponseResult,
    build_context,
)
from .data import InitialData, LoaderResult, build_initial_data
from .handler import RequestHandler
from .init_hook import run_init_if_exists
from .invoker import Failure, Invoker
from .renderer import DocumentRenderer, PageRenderer
from .watcher import DevWatcher

__all__ = [
    "DevWatcher",
    "DocumentRenderer",
    "Failure",
    "InitialData",
    "Invoker",
    "LoaderResult",
    "NotFoundResult",
    "PageRenderer",
    "RedirectResult",
    "RequestContext",
    "RequestHandler",
    "ResponseResult",
    "RivetApp",
    "build_context",
    "build_initial_data",
    "create_app",
    "run_init_if_exists",
]
