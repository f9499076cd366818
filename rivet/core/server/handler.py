"""
Rivet Request Handler

Runs one request through matching, context building, invocation and
initial-data assembly, then translates the outcome into a Starlette
response.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from ..constants import API_DIR_NAME, DATA_REQUEST_HEADER, DATA_REQUEST_QUERY_PARAM
from ..errors import HandlerContractViolation
from ..routing.matcher import MatchResult, split_path
from ..routing.registry import RouteRegistry
from ..routing.types import RouteKind
from .context import NotFoundResult, RedirectResult, ResponseResult, build_context
from .data import LoaderResult, build_initial_data
from .invoker import Failure, Invoker, Outcome
from .renderer import DocumentRenderer, PageRenderer

_PAGE_METHODS = ("GET", "HEAD")
_TRUTHY = {"1", "true"}

_NOT_FOUND_HTML = """<!DOCTYPE html>
<html lang="en">
  <head><meta charset="UTF-8"><title>404 - Page Not Found</title></head>
  <body><h1>404</h1><p>Page Not Found</p></body>
</html>"""

_ERROR_HTML = """<!DOCTYPE html>
<html lang="en">
  <head><meta charset="UTF-8"><title>500 - Internal Server Error</title></head>
  <body><h1>500</h1><p>Internal Server Error</p></body>
</html>"""


def normalize_pathname(path: str) -> str:
    """Collapse empty segments and drop the trailing slash (``/a//b/`` -> ``/a/b``)."""
    return "/" + "/".join(split_path(path))


def is_api_path(pathname: str) -> bool:
    prefix = f"/{API_DIR_NAME}"
    return pathname == prefix or pathname.startswith(prefix + "/")


def is_data_request(request: Request) -> bool:
    """Page data requests ask for the loader's JSON instead of the document."""
    query_value = request.query_params.get(DATA_REQUEST_QUERY_PARAM)
    header_value = request.headers.get(DATA_REQUEST_HEADER)
    return any(v is not None and v.lower() in _TRUTHY for v in (query_value, header_value))


class RequestHandler:
    """
    Transport adapter between Starlette and the routing engine.

    Paths under ``/api`` only match API routes; every other path only
    matches page routes.
    """

    def __init__(
        self,
        registry: RouteRegistry,
        renderer: Optional[PageRenderer] = None,
        invoker: Optional[Invoker] = None,
        server_context: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            registry: Route registry for the application
            renderer: Page renderer (defaults to DocumentRenderer)
            invoker: Handler invoker (defaults to one sharing this logger)
            server_context: Values published by the init hook
            logger: Logger for request failures
        """
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)
        self.renderer = renderer or DocumentRenderer()
        self.invoker = invoker or Invoker(self.logger)
        self.server_context: Dict[str, Any] = dict(server_context or {})

    async def handle(self, request: Request) -> Response:
        """Handle one request and return the response."""
        pathname = normalize_pathname(request.url.path)
        kind = RouteKind.API if is_api_path(pathname) else RouteKind.PAGE
        data_request = kind is RouteKind.PAGE and is_data_request(request)

        match = self.registry.match(pathname, kind)
        if match is None:
            self.logger.debug(f"No {kind.value} route for {pathname}")
            if kind is RouteKind.API:
                return _api_not_found()
            return await self._page_not_found(pathname, data_request)

        if kind is RouteKind.PAGE and request.method not in _PAGE_METHODS:
            return JSONResponse(
                {"error": f"Method {request.method} not allowed"},
                status_code=405,
                headers={"Allow": ", ".join(_PAGE_METHODS)},
            )

        ctx = build_context(match, request, pathname, self.server_context)
        outcome = await self.invoker.invoke(match.route, ctx)

        if isinstance(outcome, Failure):
            return await self._failure_response(request, match, pathname, outcome, data_request)

        try:
            if kind is RouteKind.API:
                return _api_response(outcome)
            return await self._page_response(match, pathname, outcome, data_request)
        except (TypeError, ValueError) as e:
            error = HandlerContractViolation(match.route, outcome, "a JSON-serializable body")
            error.__cause__ = e
            return await self._failure_response(request, match, pathname, Failure(error), data_request)

    async def _failure_response(
        self,
        request: Request,
        match: MatchResult,
        pathname: str,
        failure: Failure,
        data_request: bool,
    ) -> Response:
        self.logger.error(
            f"{request.method} {pathname} failed: {failure.error}",
            exc_info=failure.cause or failure.error,
        )
        if match.route.kind is RouteKind.API or data_request:
            return JSONResponse({"error": "Internal Server Error"}, status_code=failure.status_code)
        if self.registry.table.error_page is None:
            return HTMLResponse(_ERROR_HTML, status_code=failure.status_code)

        initial_data = build_initial_data(pathname, match.params, None, error=True)
        return await self._render(None, initial_data, status_code=failure.status_code)

    async def _page_response(
        self,
        match: MatchResult,
        pathname: str,
        outcome: Outcome,
        data_request: bool,
    ) -> Response:
        if isinstance(outcome, RedirectResult):
            if data_request:
                return JSONResponse({"redirect": outcome.to_dict()})
            return RedirectResponse(outcome.location, status_code=outcome.status_code)

        if isinstance(outcome, NotFoundResult):
            return await self._page_not_found(pathname, data_request)

        if not isinstance(outcome, LoaderResult):
            # Invoker only returns LoaderResult, redirects and not-found for pages
            raise TypeError(f"Unexpected page outcome {type(outcome).__name__}")

        initial_data = build_initial_data(pathname, match.params, outcome)
        if data_request:
            return JSONResponse({
                "props": initial_data.props,
                "metadata": initial_data.metadata,
                "className": initial_data.class_name,
            })
        return await self._render(match.route, initial_data, status_code=200)

    async def _page_not_found(self, pathname: str, data_request: bool) -> Response:
        if data_request:
            return JSONResponse({"notFound": True}, status_code=404)

        if self.registry.table.not_found_page is None:
            return HTMLResponse(_NOT_FOUND_HTML, status_code=404)

        initial_data = build_initial_data(pathname, {}, None, not_found=True)
        return await self._render(None, initial_data, status_code=404)

    async def _render(self, route, initial_data, status_code: int) -> Response:
        try:
            document = await self.renderer.render(route, initial_data)
        except Exception as e:
            self.logger.error(f"Render error for '{initial_data.pathname}': {e}", exc_info=e)
            return HTMLResponse(_ERROR_HTML, status_code=500)
        return HTMLResponse(document, status_code=status_code)


def _api_not_found(body: Any = None) -> JSONResponse:
    return JSONResponse(body if body is not None else {"error": "Not Found"}, status_code=404)


def _api_response(outcome: Outcome) -> Response:
    if isinstance(outcome, Response):
        return outcome
    if isinstance(outcome, ResponseResult):
        return JSONResponse(outcome.body, status_code=outcome.status_code, headers=dict(outcome.headers))
    if isinstance(outcome, RedirectResult):
        return RedirectResponse(outcome.location, status_code=outcome.status_code)
    if isinstance(outcome, NotFoundResult):
        return _api_not_found(outcome.body)
    raise TypeError(f"Unexpected API outcome {type(outcome).__name__}")
