"""
Rivet Middleware

Request logging and response timing for the Rivet application.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RivetMiddleware(BaseHTTPMiddleware):
    """
    Logs every request and adds timing headers:

    - ``X-Response-Time`` with the handling time in milliseconds
    - ``X-Rivet-Dev`` when development mode is on
    """

    def __init__(self, app: ASGIApp, dev: bool = False):
        super().__init__(app)
        self.dev = dev
        self.logger = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        self.logger.debug(f"Request started: {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(f"Error processing request {request.url.path}: {e}")
            raise

        elapsed = f"{(time.time() - start_time) * 1000:.2f}ms"
        response.headers["X-Response-Time"] = elapsed
        if self.dev:
            response.headers["X-Rivet-Dev"] = "1"

        self.logger.debug(
            f"Request completed: {request.method} {request.url.path} "
            f"Status: {response.status_code} Time: {elapsed}"
        )
        return response
