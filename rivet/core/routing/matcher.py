"""
Path matching

Matches a request path against a route table positionally:

- a static segment requires exact equality
- a dynamic segment consumes one path segment and binds it
- a catch-all consumes the remaining path segments (at least one) and
  binds them joined with ``/``

Routes are tried in table order, which is the precedence order, so the
first hit is the most specific route.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .segments import SegmentKind
from .table import RouteDefinition
from .types import RouteKind


@dataclass(frozen=True)
class MatchResult:
    """A matched route with parameters in declaration order."""
    route: RouteDefinition
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


def split_path(path: str) -> List[str]:
    """Split a request path on ``/``, dropping empty segments."""
    return [segment for segment in path.split("/") if segment]


def match_pattern(route: RouteDefinition, segments: Sequence[str]) -> Optional[Dict[str, str]]:
    """
    Match path segments against a single route's pattern.

    Returns:
        Extracted parameters, or None if the route does not match
    """
    params: Dict[str, str] = {}
    pattern = route.pattern

    for index, descriptor in enumerate(pattern):
        if descriptor.kind is SegmentKind.CATCH_ALL:
            remainder = segments[index:]
            if not remainder:
                return None
            params[descriptor.value] = "/".join(remainder)
            return params

        if index >= len(segments):
            return None

        segment = segments[index]
        if descriptor.kind is SegmentKind.STATIC:
            if segment != descriptor.value:
                return None
        else:
            params[descriptor.value] = segment

    if len(segments) != len(pattern):
        return None
    return params


def match_route(
    routes: Iterable[RouteDefinition],
    path: Union[str, Sequence[str]],
    kind: Optional[RouteKind] = None,
) -> Optional[MatchResult]:
    """
    Find the first route whose pattern matches *path*.

    Args:
        routes: Routes in precedence order (a RouteTable iterates this way)
        path: Request path, or its already-split segments
        kind: Restrict matching to API or page routes

    Returns:
        MatchResult, or None when no route matches
    """
    segments = split_path(path) if isinstance(path, str) else list(path)

    for route in routes:
        if kind is not None and route.kind is not kind:
            continue
        params = match_pattern(route, segments)
        if params is not None:
            return MatchResult(route=route, params=MappingProxyType(params))
    return None
