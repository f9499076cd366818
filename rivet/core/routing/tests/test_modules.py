"""
Tests for the module cache and export extraction
"""

import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from rivet.core.errors import RouteModuleError
from rivet.core.routing.modules import ExportsRef, ModuleCache, is_nested
from rivet.core.routing.types import RouteKind

API_MODULE = """
def log_request(ctx, call_next):
    return call_next()

def only_posts(ctx, call_next):
    return call_next()

before_api = [log_request, "not callable"]
before_post = [only_posts]

async def get(ctx):
    return ctx.response({"method": "get"})

def post(ctx):
    return ctx.response({"method": "post"}, 201)
"""

LOADER_MODULE = """
def auth(ctx, call_next):
    return call_next()

before_server_data = [auth]

async def get_server_side_props(ctx):
    return {"props": {"value": VALUE}}

VALUE = 1
"""


class TestModuleCache:

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.cache = ModuleCache()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def create_file(self, name: str, content: str) -> Path:
        file_path = self.temp_dir / name
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path

    def test_load_is_cached(self):
        path = self.create_file("route.py", "VALUE = 1\n")

        first = self.cache.load(path)
        second = self.cache.load(path)

        assert first is second
        assert first.version == 0
        assert first.module.VALUE == 1
        assert self.cache.is_cached(path)

    def test_module_registered_under_versioned_name(self):
        path = self.create_file("route.py", "VALUE = 1\n")
        module = self.cache.load(path).module
        assert sys.modules[module.__name__] is module
        assert module.__name__.endswith("_v0")

    def test_invalidate_bumps_version_and_reloads(self):
        path = self.create_file("api/route.py", "VALUE = 1\n")
        self.cache.load(path)

        path.write_text("VALUE = 2\n")
        invalidated = self.cache.invalidate_under(self.temp_dir)

        assert invalidated == [path]
        assert self.cache.version(path) == 1
        assert not self.cache.is_cached(path)
        entry = self.cache.load(path)
        assert entry.version == 1
        assert entry.module.VALUE == 2

    def test_invalidate_outside_root_is_noop(self):
        inside = self.create_file("app/route.py", "VALUE = 1\n")
        outside = self.create_file("other/route.py", "VALUE = 1\n")
        self.cache.load(inside)
        self.cache.load(outside)

        self.cache.invalidate_under(self.temp_dir / "app")

        assert self.cache.version(outside) == 0
        assert self.cache.is_cached(outside)
        assert not self.cache.is_cached(inside)

    def test_invalidate_is_idempotent(self):
        path = self.create_file("app/route.py", "VALUE = 1\n")
        self.cache.load(path)

        assert self.cache.invalidate_under(self.temp_dir) == [path]
        assert self.cache.invalidate_under(self.temp_dir) == []
        assert self.cache.version(path) == 1

    def test_import_error_raises_route_module_error(self):
        path = self.create_file("route.py", "import does_not_exist_anywhere\n")

        with pytest.raises(RouteModuleError) as exc_info:
            self.cache.load(path)

        assert isinstance(exc_info.value.__cause__, ImportError)
        assert exc_info.value.module_path == path
        assert not any(
            getattr(module, "__file__", None) == str(path) for module in list(sys.modules.values())
        )

    def test_syntax_error_raises_route_module_error(self):
        path = self.create_file("route.py", "def broken(:\n")
        with pytest.raises(RouteModuleError):
            self.cache.load(path)


class TestExportsRef:

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.cache = ModuleCache()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def create_file(self, name: str, content: str) -> Path:
        file_path = self.temp_dir / name
        file_path.write_text(content)
        return file_path

    def test_api_exports(self, caplog):
        path = self.create_file("route.py", API_MODULE)

        exports = ExportsRef(self.cache, path, RouteKind.API).resolve()

        assert set(exports.handlers) == {"GET", "POST"}
        assert exports.handler_for("get") is exports.handlers["GET"]
        assert exports.handler_for("DELETE") is None
        assert exports.allowed_methods == ["GET", "POST"]
        assert [m.__name__ for m in exports.middlewares_for("GET")] == ["log_request"]
        assert [m.__name__ for m in exports.middlewares_for("POST")] == ["log_request", "only_posts"]
        assert "not callable" in caplog.text

    def test_handler_fallback_serves_every_method(self):
        path = self.create_file("route.py", "def handler(ctx):\n    return ctx.response({})\n")

        exports = ExportsRef(self.cache, path, RouteKind.API).resolve()

        assert exports.handler_for("PATCH") is exports.fallback
        assert "DELETE" in exports.allowed_methods

    def test_page_exports(self):
        path = self.create_file("loader.py", LOADER_MODULE)

        exports = ExportsRef(self.cache, path, RouteKind.PAGE).resolve()

        assert exports.loader.__name__ == "get_server_side_props"
        assert [m.__name__ for m in exports.middlewares] == ["auth"]
        assert exports.handlers == {}

    def test_missing_loader_module(self):
        exports = ExportsRef(self.cache, None, RouteKind.PAGE).resolve()
        assert exports.loader is None
        assert exports.version == 0

    def test_resolve_follows_version_stamp(self):
        path = self.create_file("loader.py", LOADER_MODULE)
        ref = ExportsRef(self.cache, path, RouteKind.PAGE)
        first = ref.resolve()
        assert ref.resolve() is first

        path.write_text(LOADER_MODULE.replace("VALUE = 1", "VALUE = 2"))
        self.cache.invalidate_under(self.temp_dir)

        second = ref.resolve()
        assert second is not first
        assert second.version == 1
        assert ref.version == 1

    def test_cached_resolve_skips_path_resolution(self):
        path = self.create_file("loader.py", LOADER_MODULE)
        ref = ExportsRef(self.cache, path, RouteKind.PAGE)
        first = ref.resolve()

        with patch.object(Path, "resolve", side_effect=AssertionError("resolve called")):
            assert ref.version == 0
            assert ref.resolve() is first

    def test_non_list_middlewares_ignored(self, caplog):
        path = self.create_file("route.py", "before_api = 'nope'\ndef get(ctx):\n    return None\n")
        exports = ExportsRef(self.cache, path, RouteKind.API).resolve()
        assert exports.middlewares == ()
        assert "must be a list" in caplog.text


class TestIsNested:

    def test_nested_and_equal_paths(self):
        root = Path("/srv/site/app")
        assert is_nested(root / "blog" / "loader.py", root)
        assert is_nested(root, root)

    def test_sibling_with_common_prefix(self):
        assert not is_nested(Path("/srv/site/app2/route.py"), Path("/srv/site/app"))
