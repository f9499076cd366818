"""
Rivet Routing Engine

File-based route discovery, path matching, and development-time module
invalidation for Rivet applications.
"""

from .invalidator import ModuleInvalidator
from .matcher import MatchResult, match_route, split_path
from .modules import ExportsRef, ModuleCache, RouteExports
from .registry import RouteRegistry
from .segments import Pattern, SegmentDescriptor, SegmentKind, format_pattern, parse_pattern
from .table import RouteDefinition, RouteTable, RouteTableBuilder, build_route_table
from .types import RouteKind

__all__ = [
    "ExportsRef",
    "MatchResult",
    "ModuleCache",
    "ModuleInvalidator",
    "Pattern",
    "RouteDefinition",
    "RouteExports",
    "RouteKind",
    "RouteRegistry",
    "RouteTable",
    "RouteTableBuilder",
    "SegmentDescriptor",
    "SegmentKind",
    "build_route_table",
    "format_pattern",
    "match_route",
    "parse_pattern",
    "split_path",
]
