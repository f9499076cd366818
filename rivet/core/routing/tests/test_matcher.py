"""
Tests for path matching
"""

import shutil
import tempfile
from pathlib import Path

import pytest

from rivet.core.routing.matcher import match_route, split_path
from rivet.core.routing.table import RouteTableBuilder
from rivet.core.routing.types import RouteKind

PAGE = "export default function Page() { return null; }"
ROUTE = "async def get(ctx):\n    return ctx.response({})\n"


class TestSplitPath:

    def test_empty_segments_removed(self):
        assert split_path("/api//posts/42/") == ["api", "posts", "42"]

    def test_root(self):
        assert split_path("/") == []
        assert split_path("") == []


class TestMatchRoute:

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.app_dir = self.temp_dir / "app"
        self.app_dir.mkdir()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def create_route(self, relative_dir: str):
        directory = self.app_dir / relative_dir
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "route.py").write_text(ROUTE)

    def create_page(self, relative_dir: str):
        directory = self.app_dir / relative_dir
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "page.tsx").write_text(PAGE)

    def table(self):
        return RouteTableBuilder(self.app_dir).build()

    def test_dynamic_beats_catch_all(self):
        self.create_route("api/posts/[id]")
        self.create_route("api/posts/[...path]")

        result = match_route(self.table(), "/api/posts/42")

        assert result.route.pathname == "/api/posts/[id]"
        assert dict(result.params) == {"id": "42"}

    def test_catch_all_takes_remaining_segments(self):
        self.create_route("api/posts/[id]")
        self.create_route("api/posts/[...path]")

        result = match_route(self.table(), "/api/posts/42/comments/7")

        assert result.route.pathname == "/api/posts/[...path]"
        assert dict(result.params) == {"path": "42/comments/7"}

    def test_dynamic_and_catch_all_params(self):
        self.create_route("api/files/[id]/[...path]")

        result = match_route(self.table(), "/api/files/7/a/b/c")

        assert dict(result.params) == {"id": "7", "path": "a/b/c"}
        assert list(result.params) == ["id", "path"]

    def test_hyphenated_parameter_names(self):
        self.create_page("blog/[post-id]")
        self.create_route("api/docs/[...doc-path]")
        table = self.table()

        page = match_route(table, "/blog/hello-world", RouteKind.PAGE)
        api = match_route(table, "/api/docs/guide/intro", RouteKind.API)

        assert dict(page.params) == {"post-id": "hello-world"}
        assert dict(api.params) == {"doc-path": "guide/intro"}

    def test_catch_all_needs_one_segment(self):
        self.create_route("api/files/[id]/[...path]")
        assert match_route(self.table(), "/api/files/7") is None

    def test_static_beats_dynamic(self):
        self.create_page("blog/[slug]")
        self.create_page("blog/latest")

        table = self.table()

        assert match_route(table, "/blog/latest").route.pathname == "/blog/latest"
        assert match_route(table, "/blog/hello").route.pathname == "/blog/[slug]"

    def test_exact_length_required(self):
        self.create_page("blog/[slug]")
        table = self.table()
        assert match_route(table, "/blog") is None
        assert match_route(table, "/blog/a/b") is None

    def test_root_and_trailing_slash(self):
        self.create_page("")
        self.create_page("about")
        table = self.table()
        assert match_route(table, "/").route.pathname == "/"
        assert match_route(table, "/about/").route.pathname == "/about"

    def test_pre_split_segments(self):
        self.create_route("api/posts/[id]")
        result = match_route(self.table(), ["api", "posts", "9"])
        assert dict(result.params) == {"id": "9"}

    def test_kind_restriction(self):
        self.create_route("api/ping")
        self.create_page("[...slug]")

        table = self.table()

        assert match_route(table, "/api/ping", RouteKind.PAGE).route.pathname == "/[...slug]"
        assert match_route(table, "/api/ping", RouteKind.API).route.kind is RouteKind.API
        assert match_route(table, "/api/other", RouteKind.API) is None

    def test_deterministic(self):
        self.create_route("api/[...any]")
        self.create_route("api/posts/[id]")
        table = self.table()

        first = match_route(table, "/api/posts/1")
        second = match_route(table, "/api/posts/1")

        assert first == second
        assert first.route.pathname == "/api/posts/[id]"

    def test_params_are_read_only(self):
        self.create_route("api/posts/[id]")
        result = match_route(self.table(), "/api/posts/1")
        with pytest.raises(TypeError):
            result.params["id"] = "2"
        assert result.params["id"] == "1"
