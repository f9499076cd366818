"""
Route module loading

Route and loader files are executed on demand and cached per file with a
version stamp. Invalidation bumps the stamp; the next access executes the
file again from disk. Routes hold an ``ExportsRef`` rather than the module
itself, so a reload never mutates a published route.
"""

import hashlib
import importlib.util
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType, ModuleType
from typing import Dict, List, Mapping, Optional, Tuple

from ..constants import (
    API_MIDDLEWARES_EXPORT,
    HANDLER_EXPORT,
    HTTP_METHODS,
    LOADER_EXPORT,
    METHOD_MIDDLEWARES_PREFIX,
    PAGE_MIDDLEWARES_EXPORT,
)
from ..errors import RouteModuleError
from .types import Middleware, RouteCallable, RouteKind

logger = logging.getLogger(__name__)

_MODULE_PREFIX = "rivet_app"


@dataclass(frozen=True)
class CachedModule:
    """A module executed from disk at a given version."""
    version: int
    module: ModuleType


@dataclass(frozen=True)
class RouteExports:
    """
    Callables a route module provides, resolved at load time.

    Attributes:
        version: Module version these exports were extracted from
        handlers: HTTP method (upper case) -> handler, for API routes
        fallback: Module-level ``handler`` serving methods without their own function
        loader: ``get_server_side_props`` for page routes
        middlewares: Middlewares run before every handler / the loader
        method_middlewares: HTTP method -> middlewares run after ``middlewares``
    """

    version: int = 0
    handlers: Mapping[str, RouteCallable] = field(default_factory=dict)
    fallback: Optional[RouteCallable] = None
    loader: Optional[RouteCallable] = None
    middlewares: Tuple[Middleware, ...] = ()
    method_middlewares: Mapping[str, Tuple[Middleware, ...]] = field(default_factory=dict)

    def handler_for(self, method: str) -> Optional[RouteCallable]:
        """Return the handler for *method*, falling back to ``handler``."""
        return self.handlers.get(method.upper(), self.fallback)

    def middlewares_for(self, method: str) -> Tuple[Middleware, ...]:
        return self.middlewares + tuple(self.method_middlewares.get(method.upper(), ()))

    @property
    def allowed_methods(self) -> List[str]:
        if self.fallback is not None:
            return [m.upper() for m in HTTP_METHODS]
        return list(self.handlers.keys())


class ModuleCache:
    """
    Loads route modules from disk and tracks a version stamp per file.

    Entries are replaced, never mutated: each write installs a new mapping,
    so readers always see either the old or the new entry.
    """

    def __init__(self):
        self._entries: Dict[Path, CachedModule] = {}
        self._versions: Dict[Path, int] = {}

    def version(self, path: Path) -> int:
        """Current version stamp of *path* (0 if never invalidated)."""
        return self.version_of_resolved(Path(path).resolve())

    def version_of_resolved(self, path: Path) -> int:
        """Like ``version`` for a path that is already absolute and resolved."""
        return self._versions.get(path, 0)

    def is_cached(self, path: Path) -> bool:
        path = Path(path).resolve()
        entry = self._entries.get(path)
        return entry is not None and entry.version == self.version_of_resolved(path)

    def cached_paths(self) -> List[Path]:
        return list(self._entries.keys())

    def load(self, path: Path) -> CachedModule:
        """
        Return the module for *path*, executing the file if the cached copy
        is missing or stale.

        Raises:
            RouteModuleError: If the file cannot be imported
        """
        path = Path(path).resolve()
        version = self.version_of_resolved(path)
        entry = self._entries.get(path)
        if entry is not None and entry.version == version:
            return entry

        module = self._execute(path, version)
        entry = CachedModule(version=version, module=module)
        self._entries = {**self._entries, path: entry}
        logger.debug(f"Loaded route module {path} (v{version})")
        return entry

    def invalidate_under(self, root: Path) -> List[Path]:
        """
        Bump the version of every cached module nested under *root* and drop
        its entry.

        Returns:
            The invalidated module paths
        """
        root = Path(root).resolve()
        stale = [p for p in self._entries if is_nested(p, root)]
        if not stale:
            return []

        versions = dict(self._versions)
        for path in stale:
            versions[path] = versions.get(path, 0) + 1
        self._versions = versions
        self._entries = {p: e for p, e in self._entries.items() if p not in stale}
        return stale

    def _execute(self, path: Path, version: int) -> ModuleType:
        """Import a Python file as a module without touching ``sys.path``."""
        module_name = _module_name(path, version)
        spec = importlib.util.spec_from_file_location(module_name, str(path))
        if spec is None or spec.loader is None:
            raise RouteModuleError(path, "not an importable Python file")

        module = importlib.util.module_from_spec(spec)
        # Registered so dataclasses and pickling inside route files work
        sys.modules[module_name] = module
        try:
            # Compiled from source: a __pycache__ entry with the same mtime
            # second would otherwise mask a quick edit
            code = compile(path.read_bytes(), str(path), "exec")
            exec(code, module.__dict__)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise RouteModuleError(path, str(e)) from e
        return module


class ExportsRef:
    """Version-stamped reference from a route definition to its exports."""

    def __init__(self, cache: ModuleCache, module_path: Optional[Path], kind: RouteKind):
        self._cache = cache
        self._path = Path(module_path).resolve() if module_path else None
        self._kind = kind
        self._resolved: Optional[RouteExports] = None

    @property
    def module_path(self) -> Optional[Path]:
        return self._path

    @property
    def version(self) -> int:
        return self._cache.version_of_resolved(self._path) if self._path else 0

    def resolve(self) -> RouteExports:
        """
        Return current exports, reloading the module when its stamp moved.

        Raises:
            RouteModuleError: If the module fails to import
        """
        if self._path is None:
            return RouteExports()

        current = self._resolved
        if current is not None and current.version == self.version:
            return current

        entry = self._cache.load(self._path)
        exports = extract_exports(entry.module, self._kind, entry.version, self._path)
        self._resolved = exports
        return exports

    def __repr__(self) -> str:
        return f"ExportsRef({self._path}, v{self.version})"


def extract_exports(
    module: ModuleType,
    kind: RouteKind,
    version: int,
    source: Path,
) -> RouteExports:
    """
    Build the method map / loader for a loaded module.

    API modules export ``get``, ``post``, ... and optionally ``handler``,
    ``before_api`` and ``before_<method>``. Loader modules export
    ``get_server_side_props`` and optionally ``before_server_data``.
    """
    if kind is RouteKind.PAGE:
        loader = getattr(module, LOADER_EXPORT, None)
        if loader is not None and not callable(loader):
            logger.warning(f"{LOADER_EXPORT} in {source} is not callable, ignoring")
            loader = None
        return RouteExports(
            version=version,
            loader=loader,
            middlewares=_middleware_list(module, PAGE_MIDDLEWARES_EXPORT, source),
        )

    handlers: Dict[str, RouteCallable] = {}
    method_middlewares: Dict[str, Tuple[Middleware, ...]] = {}
    for method in HTTP_METHODS:
        fn = getattr(module, method, None)
        if callable(fn):
            handlers[method.upper()] = fn
        mws = _middleware_list(module, f"{METHOD_MIDDLEWARES_PREFIX}{method}", source)
        if mws:
            method_middlewares[method.upper()] = mws

    fallback = getattr(module, HANDLER_EXPORT, None)
    if not callable(fallback):
        fallback = None

    if not handlers and fallback is None:
        logger.warning(f"No handler or method functions found in {source}")

    return RouteExports(
        version=version,
        handlers=MappingProxyType(handlers),
        fallback=fallback,
        middlewares=_middleware_list(module, API_MIDDLEWARES_EXPORT, source),
        method_middlewares=MappingProxyType(method_middlewares),
    )


def _middleware_list(module: ModuleType, name: str, source: Path) -> Tuple[Middleware, ...]:
    raw = getattr(module, name, None)
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        logger.warning(f"{name} must be a list in {source}, ignoring invalid value")
        return ()

    middlewares = []
    for i, mw in enumerate(raw):
        if not callable(mw):
            logger.warning(f"Middleware at index {i} in {name} is not callable in {source}, skipping")
            continue
        middlewares.append(mw)
    return tuple(middlewares)


def _module_name(path: Path, version: int) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"{_MODULE_PREFIX}_{path.stem}_{digest}_v{version}"


def is_nested(path: Path, root: Path) -> bool:
    """Return True if *path* is *root* or lies beneath it."""
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False
