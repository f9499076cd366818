"""
Rivet ASGI application

Wires the route registry, request handler, init hook and dev watcher into
a Starlette application. Every path not claimed by an internal endpoint
goes to the request handler.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from ..config import RivetConfig
from ..constants import HOT_RELOAD_PATH, HTTP_METHODS
from ..routing.invalidator import ModuleInvalidator
from ..routing.modules import ModuleCache
from ..routing.registry import RouteRegistry
from ..routing.types import RouteKind
from .handler import RequestHandler
from .init_hook import run_init_if_exists
from .middleware import RivetMiddleware
from .renderer import DocumentRenderer, PageRenderer
from .watcher import DevWatcher

logger = logging.getLogger(__name__)


class RivetApp:
    """Owns the per-application components behind one Starlette app."""

    def __init__(self, config: RivetConfig, renderer: Optional[PageRenderer] = None):
        self.config = config
        # Route files import project helpers as `app.lib...`
        project_root = str(config.project_root)
        if project_root not in sys.path:
            sys.path.insert(0, project_root)

        self.module_cache = ModuleCache()
        self.registry = RouteRegistry(config.app_path, self.module_cache)
        self.invalidator = ModuleInvalidator.for_registry(self.registry)
        self.watcher: Optional[DevWatcher] = (
            DevWatcher(config.app_path, self.invalidator) if config.dev else None
        )
        self.renderer = renderer or DocumentRenderer(
            title=config.title,
            description=config.description,
            dev=config.dev,
        )
        self.handler = RequestHandler(self.registry, self.renderer)

    @asynccontextmanager
    async def lifespan(self, app: Starlette):
        """Run the init hook and start the watcher; stop it on shutdown."""
        self.handler.server_context = await run_init_if_exists(
            self.config.project_root,
            {"config": self.config},
            self.module_cache,
        )
        table = self.registry.rebuild()
        logger.info(
            f"Rivet app ready: {len(table)} routes, "
            f"{len(table.errors)} invalid, dev={'on' if self.config.dev else 'off'}"
        )

        if self.watcher is not None:
            await self.watcher.start()
        try:
            yield
        finally:
            if self.watcher is not None:
                await self.watcher.stop()

    def build(self) -> Starlette:
        """Create the Starlette application."""
        routes = [
            Route("/_rivet/health", self._health_check),
            Route("/_rivet/routes", self._routes_info),
        ]
        if self.watcher is not None:
            routes.append(Route(HOT_RELOAD_PATH, self._hot_reload))

        public_dir = self.config.public_path
        if public_dir.is_dir():
            routes.append(Mount("/static", StaticFiles(directory=public_dir), name="static"))

        # Catch-all LAST
        routes.append(Route(
            "/{path:path}",
            self.handler.handle,
            methods=[m.upper() for m in HTTP_METHODS],
        ))

        app = Starlette(debug=self.config.dev, routes=routes, lifespan=self.lifespan)
        app.add_middleware(RivetMiddleware, dev=self.config.dev)
        app.state.rivet = self
        return app

    async def _health_check(self, request: Request) -> Response:
        table = self.registry.table
        return JSONResponse({
            "status": "healthy",
            "app": "Rivet",
            "dev": self.config.dev,
            "routes": {
                "api": len(table.of_kind(RouteKind.API)),
                "pages": len(table.of_kind(RouteKind.PAGE)),
            },
        })

    async def _routes_info(self, request: Request) -> Response:
        table = self.registry.table
        return JSONResponse({
            "routes": table.get_route_info(),
            "errors": [{"file": str(e.source), "reason": e.reason} for e in table.errors],
            "total": len(table),
        })

    async def _hot_reload(self, request: Request) -> Response:
        return StreamingResponse(
            self.watcher.events(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )


def create_app(config: Optional[RivetConfig] = None, renderer: Optional[PageRenderer] = None) -> Starlette:
    """
    Create the ASGI application for a Rivet project.

    Args:
        config: Application config (defaults to ``RivetConfig.from_env()``)
        renderer: Page renderer (defaults to DocumentRenderer)

    Returns:
        Configured Starlette application
    """
    config = config or RivetConfig.from_env()
    return RivetApp(config, renderer).build()
