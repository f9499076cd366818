"""
Request context and terminal results

A RequestContext is built once per matched request and handed to route
middlewares, API handlers and page loaders. Its helpers produce terminal
results the request handler turns into HTTP responses.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from starlette.datastructures import Headers, QueryParams
from starlette.requests import Request

from ..routing.matcher import MatchResult


@dataclass(frozen=True)
class ResponseResult:
    """A JSON response produced by a handler via ``ctx.response()``."""
    body: Any = None
    status_code: int = 200
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RedirectResult:
    """A redirect; ``permanent`` selects 301 over 302."""
    location: str
    permanent: bool = False

    @property
    def status_code(self) -> int:
        return 301 if self.permanent else 302

    def to_dict(self) -> Dict[str, Any]:
        return {"location": self.location, "permanent": self.permanent}


@dataclass(frozen=True)
class NotFoundResult:
    """Signals a 404 from inside a handler, loader or middleware."""
    body: Any = None


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request context passed to handlers and loaders.

    Attributes:
        request: The underlying Starlette request (body, cookies, client...)
        params: Path parameters in declaration order (read-only)
        pathname: Normalized request path without query string
        locals: Scratch mapping shared by route middlewares and the handler
        server_context: Values published by the application's ``init`` hook
    """

    request: Request
    params: Mapping[str, str]
    pathname: str
    locals: Dict[str, Any] = field(default_factory=dict)
    server_context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def url(self) -> str:
        """Full original URL, query string included."""
        return str(self.request.url)

    @property
    def headers(self) -> Headers:
        return self.request.headers

    @property
    def query(self) -> QueryParams:
        return self.request.query_params

    async def body(self) -> bytes:
        return await self.request.body()

    async def json(self) -> Any:
        return await self.request.json()

    def response(
        self,
        body: Any = None,
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ResponseResult:
        return ResponseResult(body=body, status_code=status_code, headers=dict(headers or {}))

    def redirect(self, location: str, permanent: bool = False) -> RedirectResult:
        return RedirectResult(location=location, permanent=permanent)

    def not_found(self, body: Any = None) -> NotFoundResult:
        return NotFoundResult(body=body)


def build_context(
    match: MatchResult,
    request: Request,
    pathname: Optional[str] = None,
    server_context: Optional[Mapping[str, Any]] = None,
) -> RequestContext:
    """
    Build the context for a matched request.

    Args:
        match: Result of path matching
        request: Incoming Starlette request
        pathname: Normalized path (defaults to the request's URL path)
        server_context: Values from the init hook, exposed read-only

    Returns:
        A fresh RequestContext with an empty ``locals`` mapping
    """
    return RequestContext(
        request=request,
        params=MappingProxyType(dict(match.params)),
        pathname=pathname if pathname is not None else request.url.path,
        locals={},
        server_context=MappingProxyType(dict(server_context or {})),
    )
