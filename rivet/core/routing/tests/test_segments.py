"""
Tests for segment parsing, pattern validation and precedence order
"""

import pytest

from rivet.core.routing.segments import (
    SegmentDescriptor,
    SegmentKind,
    SegmentSyntaxError,
    format_pattern,
    is_route_group,
    parse_pattern,
    parse_segment,
    precedence_key,
)


class TestParseSegment:

    def test_static_segment(self):
        seg = parse_segment("about")
        assert seg == SegmentDescriptor.static("about")
        assert not seg.is_param

    def test_dynamic_segment(self):
        seg = parse_segment("[slug]")
        assert seg.kind is SegmentKind.DYNAMIC
        assert seg.value == "slug"
        assert seg.is_param

    def test_catch_all_segment(self):
        seg = parse_segment("[...path]")
        assert seg == SegmentDescriptor.catch_all("path")
        assert str(seg) == "[...path]"

    def test_route_group_contributes_nothing(self):
        assert is_route_group("(marketing)")
        assert parse_segment("(marketing)") is None

    @pytest.mark.parametrize("name,kind,value", [
        ("[post-id]", SegmentKind.DYNAMIC, "post-id"),
        ("[1st]", SegmentKind.DYNAMIC, "1st"),
        ("[...doc-path]", SegmentKind.CATCH_ALL, "doc-path"),
    ])
    def test_non_identifier_names(self, name, kind, value):
        seg = parse_segment(name)
        assert seg.kind is kind
        assert seg.value == value
        assert str(seg) == name

    @pytest.mark.parametrize("name", ["[]", "[...]", "[..x]", "[[...slug]]", "[a/b]", "post[id]"])
    def test_malformed_brackets(self, name):
        with pytest.raises(SegmentSyntaxError):
            parse_segment(name)


class TestParsePattern:

    def test_groups_are_dropped(self):
        pattern = parse_pattern(["(shop)", "products", "[id]"])
        assert format_pattern(pattern) == "/products/[id]"

    def test_root_pattern(self):
        assert parse_pattern([]) == ()
        assert format_pattern(()) == "/"

    def test_catch_all_must_be_last(self):
        with pytest.raises(SegmentSyntaxError, match="must be the last segment"):
            parse_pattern(["docs", "[...rest]", "edit"])

    def test_single_catch_all(self):
        with pytest.raises(SegmentSyntaxError, match="catch-all"):
            parse_pattern(["[...a]", "[...b]"])

    def test_duplicate_parameter_names(self):
        with pytest.raises(SegmentSyntaxError, match="repeated"):
            parse_pattern(["[id]", "items", "[id]"])

    def test_catch_all_after_dynamic_is_valid(self):
        pattern = parse_pattern(["api", "files", "[id]", "[...path]"])
        assert [s.kind for s in pattern] == [
            SegmentKind.STATIC,
            SegmentKind.STATIC,
            SegmentKind.DYNAMIC,
            SegmentKind.CATCH_ALL,
        ]


class TestPrecedence:

    def _sorted(self, *paths):
        patterns = [parse_pattern([p for p in path.split("/") if p]) for path in paths]
        return [format_pattern(p) for p in sorted(patterns, key=precedence_key)]

    def test_static_before_dynamic_before_catch_all(self):
        assert self._sorted("/blog/[...rest]", "/blog/[slug]", "/blog/latest") == [
            "/blog/latest",
            "/blog/[slug]",
            "/blog/[...rest]",
        ]

    def test_leftmost_segment_decides(self):
        assert self._sorted("/[lang]/about", "/docs/[page]") == ["/docs/[page]", "/[lang]/about"]

    def test_specific_api_route_before_catch_all(self):
        assert self._sorted("/api/[...any]", "/api/posts/[id]") == ["/api/posts/[id]", "/api/[...any]"]

    def test_order_is_total_and_stable(self):
        paths = ["/b", "/a", "/[x]", "/a/[y]", "/"]
        assert self._sorted(*paths) == self._sorted(*reversed(paths))
