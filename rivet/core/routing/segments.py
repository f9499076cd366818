"""
Route pattern segments

Parses directory names into segment descriptors and defines the
precedence order used to sort the route table.

    about          -> static("about")
    [slug]         -> dynamic("slug")
    [...path]      -> catch_all("path")
    (marketing)    -> route group, contributes no segment
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from ..constants import (
    CATCH_ALL_SEGMENT_PATTERN,
    DYNAMIC_SEGMENT_PATTERN,
    ROUTE_GROUP_PATTERN,
)

_DYNAMIC_RE = re.compile(DYNAMIC_SEGMENT_PATTERN)
_CATCH_ALL_RE = re.compile(CATCH_ALL_SEGMENT_PATTERN)
_GROUP_RE = re.compile(ROUTE_GROUP_PATTERN)


class SegmentKind(Enum):
    """Kinds of pattern segments, in precedence order."""

    STATIC = 0
    DYNAMIC = 1
    CATCH_ALL = 2


@dataclass(frozen=True)
class SegmentDescriptor:
    """One component of a route pattern."""

    kind: SegmentKind
    value: str  # literal for static segments, parameter name otherwise

    @classmethod
    def static(cls, literal: str) -> "SegmentDescriptor":
        return cls(SegmentKind.STATIC, literal)

    @classmethod
    def dynamic(cls, name: str) -> "SegmentDescriptor":
        return cls(SegmentKind.DYNAMIC, name)

    @classmethod
    def catch_all(cls, name: str) -> "SegmentDescriptor":
        return cls(SegmentKind.CATCH_ALL, name)

    @property
    def is_param(self) -> bool:
        return self.kind is not SegmentKind.STATIC

    def __str__(self) -> str:
        if self.kind is SegmentKind.DYNAMIC:
            return f"[{self.value}]"
        if self.kind is SegmentKind.CATCH_ALL:
            return f"[...{self.value}]"
        return self.value


Pattern = Tuple[SegmentDescriptor, ...]


class SegmentSyntaxError(ValueError):
    """A directory name uses bracket syntax incorrectly."""


def is_route_group(name: str) -> bool:
    """Return True for ``(group)`` directories, which add no URL segment."""
    return bool(_GROUP_RE.match(name))


def parse_segment(name: str) -> Optional[SegmentDescriptor]:
    """
    Parse a single directory name into a segment descriptor.

    Args:
        name: Directory name (e.g. ``blog``, ``[slug]``, ``[...path]``)

    Returns:
        The descriptor, or None for route group directories

    Raises:
        SegmentSyntaxError: If the name is bracketed but not a valid parameter
    """
    if is_route_group(name):
        return None

    match = _CATCH_ALL_RE.match(name)
    if match:
        return SegmentDescriptor.catch_all(match.group(1))

    match = _DYNAMIC_RE.match(name)
    if match:
        return SegmentDescriptor.dynamic(match.group(1))

    if "[" in name or "]" in name:
        raise SegmentSyntaxError(f"Malformed parameter segment {name!r}")

    return SegmentDescriptor.static(name)


def parse_pattern(parts: Sequence[str]) -> Pattern:
    """
    Parse relative directory parts into a validated pattern.

    Raises:
        SegmentSyntaxError: On malformed brackets, a misplaced or repeated
            catch-all, or a parameter name used twice
    """
    pattern = tuple(seg for seg in (parse_segment(p) for p in parts) if seg is not None)
    validate_pattern(pattern)
    return pattern


def validate_pattern(pattern: Pattern) -> None:
    """Check the catch-all and parameter-name invariants of a pattern."""
    catch_alls = [i for i, seg in enumerate(pattern) if seg.kind is SegmentKind.CATCH_ALL]
    if len(catch_alls) > 1:
        raise SegmentSyntaxError(
            f"Pattern {format_pattern(pattern)} has {len(catch_alls)} catch-all segments"
        )
    if catch_alls and catch_alls[0] != len(pattern) - 1:
        raise SegmentSyntaxError(
            f"Catch-all segment {pattern[catch_alls[0]]} in "
            f"{format_pattern(pattern)} must be the last segment"
        )

    names = [seg.value for seg in pattern if seg.is_param]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise SegmentSyntaxError(
            f"Parameter name(s) {', '.join(duplicates)} repeated in {format_pattern(pattern)}"
        )


def format_pattern(pattern: Pattern) -> str:
    """Render a pattern in its bracket form, e.g. ``/api/posts/[id]``."""
    return "/" + "/".join(str(seg) for seg in pattern)


def precedence_key(pattern: Pattern) -> Tuple:
    """
    Sort key placing the most specific pattern first.

    Segments compare left to right with static < dynamic < catch-all. When
    one rank sequence is a prefix of the other the shorter pattern sorts
    first; the bracket form breaks any remaining tie.
    """
    ranks = tuple(seg.kind.value for seg in pattern)
    return ranks, format_pattern(pattern)
