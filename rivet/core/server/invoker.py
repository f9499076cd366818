"""
Handler and loader invocation

Runs a matched route's middlewares and handler (API routes) or loader
(page routes) and checks the returned value against the route's contract.
Exceptions never escape: they come back as a Failure holding a
HandlerExecutionError or HandlerContractViolation.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Union

from starlette.responses import Response

from ..errors import HandlerContractViolation, HandlerExecutionError, RouteModuleError
from ..routing.modules import RouteExports
from ..routing.table import RouteDefinition
from ..routing.types import Middleware, RouteCallable, RouteKind
from .context import NotFoundResult, RedirectResult, RequestContext, ResponseResult
from .data import LoaderResult, merge_loader_results

_API_CONTRACT = "ResponseResult, RedirectResult, NotFoundResult or a Starlette Response"
_PAGE_CONTRACT = "LoaderResult, a mapping, RedirectResult, NotFoundResult or None"


@dataclass(frozen=True)
class Failure:
    """A handler or loader that raised or broke its return contract."""
    error: Union[HandlerExecutionError, HandlerContractViolation]
    status_code: int = 500

    @property
    def cause(self) -> Optional[BaseException]:
        return self.error.__cause__


Outcome = Union[ResponseResult, RedirectResult, NotFoundResult, LoaderResult, Response, Failure]


async def resolve(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def run_chain(
    middlewares: Sequence[Middleware],
    endpoint: Callable[[RequestContext], Union[Any, Awaitable[Any]]],
    ctx: RequestContext,
) -> Any:
    """
    Run ``middlewares`` then ``endpoint``.

    Each middleware is called as ``middleware(ctx, call_next)``. Returning a
    value other than None ends the chain with that value; returning None
    continues with the rest of the chain (or keeps what ``call_next()``
    already produced).
    """

    async def dispatch(index: int) -> Any:
        if index == len(middlewares):
            return await resolve(endpoint(ctx))

        downstream = []

        async def call_next() -> Any:
            if not downstream:
                downstream.append(await dispatch(index + 1))
            return downstream[0]

        result = await resolve(middlewares[index](ctx, call_next))
        if result is not None:
            return result
        return await call_next()

    return await dispatch(0)


class Invoker:
    """Invokes route handlers and loaders for matched requests."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    async def invoke(self, route: RouteDefinition, ctx: RequestContext) -> Outcome:
        """
        Run the route's code for one request.

        Args:
            route: Matched route definition
            ctx: Request context built for the match

        Returns:
            The terminal result, a LoaderResult for pages, or a Failure
        """
        try:
            exports = route.exports.resolve()
        except RouteModuleError as e:
            return self._execution_failure(route, e, f"Failed to load module for {route.pathname}")

        if route.kind is RouteKind.API:
            return await self._invoke_api(route, exports, ctx)
        return await self._invoke_page(route, exports, ctx)

    async def _invoke_api(
        self, route: RouteDefinition, exports: RouteExports, ctx: RequestContext
    ) -> Outcome:
        handler = exports.handler_for(ctx.method)
        if handler is None:
            allowed = exports.allowed_methods
            self.logger.debug(f"Method {ctx.method} not allowed for {route.pathname}")
            return ResponseResult(
                body={"error": f"Method {ctx.method} not allowed", "allowed_methods": allowed},
                status_code=405,
                headers={"Allow": ", ".join(allowed)},
            )

        try:
            value = await run_chain(exports.middlewares_for(ctx.method), handler, ctx)
        except Exception as e:
            return self._execution_failure(route, e)

        if isinstance(value, (ResponseResult, RedirectResult, NotFoundResult, Response)):
            return value
        return self._contract_failure(route, value, _API_CONTRACT)

    async def _invoke_page(
        self, route: RouteDefinition, exports: RouteExports, ctx: RequestContext
    ) -> Outcome:
        loader: RouteCallable = exports.loader or _empty_loader

        async def load(ctx: RequestContext) -> Any:
            layered = await self._run_layout_loaders(route, ctx)
            if not isinstance(layered, list):
                return layered
            value = self._normalize_page_value(route, await resolve(loader(ctx)))
            if layered and isinstance(value, LoaderResult):
                return merge_loader_results([*layered, value])
            return value

        try:
            value = await run_chain(exports.middlewares, load, ctx)
        except Exception as e:
            return self._execution_failure(route, e)

        if isinstance(value, Failure):
            return value
        return self._normalize_page_value(route, value)

    async def _run_layout_loaders(
        self, route: RouteDefinition, ctx: RequestContext
    ) -> Union[List[LoaderResult], Outcome]:
        """
        Run layout loaders outermost first.

        A failing layout loader is logged and skipped. A redirect, not-found
        or contract violation from a layout ends the page load.
        """
        results: List[LoaderResult] = []
        for ref in route.layouts:
            try:
                layout_loader = ref.resolve().loader
                if layout_loader is None:
                    continue
                value = await resolve(layout_loader(ctx))
            except Exception as e:
                self.logger.warning(
                    f"Layout loader {ref.module_path} failed for {route.pathname}: {e}",
                    exc_info=e,
                )
                continue

            outcome = self._normalize_page_value(route, value)
            if not isinstance(outcome, LoaderResult):
                return outcome
            results.append(outcome)
        return results

    def _normalize_page_value(self, route: RouteDefinition, value: Any) -> Outcome:
        if value is None:
            return LoaderResult()
        if isinstance(value, (RedirectResult, NotFoundResult)):
            return value
        if isinstance(value, Mapping):
            if value.get("notFound"):
                return NotFoundResult()
            try:
                value = LoaderResult.from_mapping(value)
            except ValueError as e:
                return self._contract_failure(route, value, f"{_PAGE_CONTRACT} ({e})")
        if isinstance(value, LoaderResult):
            return value.redirect if value.redirect is not None else value
        return self._contract_failure(route, value, _PAGE_CONTRACT)

    def _execution_failure(
        self, route: RouteDefinition, cause: Exception, message: Optional[str] = None
    ) -> Failure:
        error = HandlerExecutionError(route, message)
        error.__cause__ = cause
        return Failure(error)

    def _contract_failure(self, route: RouteDefinition, value: Any, expected: str) -> Failure:
        return Failure(HandlerContractViolation(route, value, expected))


def _empty_loader(ctx: RequestContext) -> None:
    return None
