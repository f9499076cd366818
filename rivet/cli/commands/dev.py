"""
Rivet Dev and Start Commands

Build the ASGI application for a project and serve it with uvicorn. In
dev mode the app also watches app/ and invalidates changed route modules.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import uvicorn

from rivet.core.config import RivetConfig
from rivet.core.constants import LOG_FORMAT
from rivet.core.server.app import create_app

logger = logging.getLogger(__name__)


class RivetServer:
    """Creates the application for a config and serves it with uvicorn."""

    def __init__(self, config: RivetConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self._setup_logging()

    def _setup_logging(self) -> None:
        """Configure logging levels based on verbose mode."""
        logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)
        if self.verbose:
            logging.getLogger("rivet").setLevel(logging.DEBUG)
        else:
            # Reduce noise
            logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
            logging.getLogger("watchfiles").setLevel(logging.WARNING)

    def build_uvicorn_config(self) -> uvicorn.Config:
        app = create_app(self.config)
        return uvicorn.Config(
            app,
            host=self.config.host,
            port=self.config.port,
            log_level="info" if self.verbose else "warning",
            access_log=self.verbose,
        )

    async def serve(self) -> None:
        """Serve until interrupted."""
        mode = "development" if self.config.dev else "production"
        logger.info(f"Rivet {mode} server starting on http://{self.config.host}:{self.config.port}")
        logger.info(f"Hot reload: {'enabled' if self.config.dev else 'disabled'}")

        server = uvicorn.Server(self.build_uvicorn_config())
        try:
            await server.serve()
        except Exception as e:
            logger.error(f"Server error: {e}")
            raise


def check_project(project_root: Path, app_dir: str) -> bool:
    """
    Check that the project has an app directory.

    Returns:
        True if the project looks like a Rivet project
    """
    if not (Path(project_root) / app_dir).is_dir():
        logger.error(f"No {app_dir}/ directory found in {project_root} - not a Rivet project?")
        return False
    return True


def run_server(
    root: str = ".",
    host: Optional[str] = None,
    port: Optional[int] = None,
    dev: bool = True,
    verbose: bool = False,
) -> None:
    """
    Serve a Rivet project.

    Args:
        root: Project root directory
        host: Host to bind to (overrides RIVET_HOST)
        port: Port to bind to (overrides RIVET_PORT)
        dev: Development mode with file watching and module invalidation
        verbose: Enable verbose logging
    """
    config = RivetConfig.from_env(Path(root), host=host, port=port, dev=dev)
    server = RivetServer(config, verbose)

    try:
        asyncio.run(server.serve())
    except KeyboardInterrupt:
        logger.info("Server stopped")
