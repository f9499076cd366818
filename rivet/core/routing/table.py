"""
Rivet File-Based Route Table

Discovers routes from the app/ directory and builds an ordered, immutable
route table. Page routes come from directories holding a page component;
API routes come from ``route.py`` files under ``app/api/``.

    app/page.tsx                         -> page /
    app/blog/[slug]/page.tsx             -> page /blog/[slug]
    app/blog/[slug]/loader.py            -> loader for /blog/[slug]
    app/blog/layout_loader.py            -> layout loader for every page under /blog
    app/(marketing)/about/page.tsx       -> page /about
    app/api/posts/[id]/route.py          -> api  /api/posts/[id]
    app/api/files/[id]/[...path]/route.py -> api  /api/files/[id]/[...path]

Modules are not imported here; their exports load lazily through the
route's ``ExportsRef``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from ..constants import (
    API_DIR_NAME,
    ERROR_FILES,
    LAYOUT_LOADER_FILE,
    LOADER_FILE,
    NOT_FOUND_FILES,
    PAGE_FILES,
    ROUTE_FILE,
    SKIPPED_DIRS,
)
from ..errors import InvalidRouteDefinition
from .modules import ExportsRef, ModuleCache
from .segments import (
    Pattern,
    SegmentSyntaxError,
    format_pattern,
    parse_pattern,
    precedence_key,
)
from .types import RouteKind


@dataclass(frozen=True)
class RouteDefinition:
    """
    A single discovered route.

    Attributes:
        pattern: Ordered segment descriptors
        kind: ``api`` or ``page``
        module_path: The file that defines the route (``route.py`` or the page component)
        exports: Version-stamped reference to the handlers / loader
        loader_path: Server loader module for page routes, if any
        layout_loader_paths: Layout loader modules wrapping a page, outermost first
        layouts: Version-stamped references to those layout loaders
    """

    pattern: Pattern
    kind: RouteKind
    module_path: Path
    exports: ExportsRef = field(compare=False, repr=False)
    loader_path: Optional[Path] = None
    layout_loader_paths: Tuple[Path, ...] = ()
    layouts: Tuple[ExportsRef, ...] = field(default=(), compare=False, repr=False)

    @property
    def pathname(self) -> str:
        return format_pattern(self.pattern)

    @property
    def param_names(self) -> List[str]:
        return [seg.value for seg in self.pattern if seg.is_param]

    @property
    def is_dynamic(self) -> bool:
        return bool(self.param_names)


@dataclass(frozen=True)
class RouteTable:
    """Routes in precedence order plus the definitions rejected while building."""

    app_dir: Path
    routes: Tuple[RouteDefinition, ...] = ()
    errors: Tuple[InvalidRouteDefinition, ...] = ()
    not_found_page: Optional[Path] = None
    error_page: Optional[Path] = None

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    def of_kind(self, kind: RouteKind) -> Tuple[RouteDefinition, ...]:
        return tuple(r for r in self.routes if r.kind is kind)

    def raise_for_errors(self) -> None:
        """Raise the first InvalidRouteDefinition collected during the build."""
        if self.errors:
            raise self.errors[0]

    def get_route_info(self) -> List[Dict[str, object]]:
        """
        Get information about all routes.

        Returns:
            List of dictionaries containing route details
        """
        return [
            {
                "path": route.pathname,
                "type": route.kind.value,
                "file": str(route.module_path),
                "loader": str(route.loader_path) if route.loader_path else None,
                "layouts": [str(p) for p in route.layout_loader_paths],
            }
            for route in self.routes
        ]


class RouteTableBuilder:
    """
    Builds a RouteTable from an application directory.

    Rebuilding from an unchanged directory yields the same patterns in the
    same order.
    """

    def __init__(
        self,
        app_dir: Path,
        module_cache: Optional[ModuleCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            app_dir: Directory containing route definitions
            module_cache: Cache the built routes load their exports from
            logger: Logger for discovery events (defaults to the module logger)
        """
        self.app_dir = Path(app_dir).resolve()
        self.module_cache = module_cache if module_cache is not None else ModuleCache()
        self.logger = logger or logging.getLogger(__name__)

    def build(self) -> RouteTable:
        """
        Scan the app directory and return a new route table.

        Invalid routes never abort the build; they are collected in
        ``RouteTable.errors``.
        """
        if not self.app_dir.is_dir():
            self.logger.warning(f"App directory not found: {self.app_dir}")
            return RouteTable(app_dir=self.app_dir)

        routes: List[RouteDefinition] = []
        errors: List[InvalidRouteDefinition] = []
        self._walk(self.app_dir, [], (), routes, errors)

        seen: Dict[Tuple[RouteKind, str], RouteDefinition] = {}
        unique: List[RouteDefinition] = []
        for route in routes:
            key = (route.kind, route.pathname)
            if key in seen:
                errors.append(InvalidRouteDefinition(
                    route.module_path,
                    f"duplicate {route.kind.value} route {route.pathname}, "
                    f"already defined by {seen[key].module_path}",
                ))
                continue
            seen[key] = route
            unique.append(route)

        unique.sort(key=lambda r: (precedence_key(r.pattern), r.kind.value))

        for error in errors:
            self.logger.error(str(error))
        self.logger.info(f"Discovered {len(unique)} routes in {self.app_dir}")

        return RouteTable(
            app_dir=self.app_dir,
            routes=tuple(unique),
            errors=tuple(errors),
            not_found_page=_first_existing(self.app_dir, NOT_FOUND_FILES),
            error_page=_first_existing(self.app_dir, ERROR_FILES),
        )

    def _walk(
        self,
        directory: Path,
        parts: List[str],
        layouts: Tuple[Path, ...],
        routes: List[RouteDefinition],
        errors: List[InvalidRouteDefinition],
    ) -> None:
        in_api = bool(parts) and parts[0] == API_DIR_NAME

        if in_api:
            route_file = directory / ROUTE_FILE
            if route_file.is_file():
                self._add(route_file, RouteKind.API, parts, None, (), routes, errors)
        else:
            layout_file = directory / LAYOUT_LOADER_FILE
            if layout_file.is_file():
                layouts = (*layouts, layout_file)
            page_file = _first_existing(directory, PAGE_FILES)
            if page_file is not None:
                loader_file = directory / LOADER_FILE
                loader_path = loader_file if loader_file.is_file() else None
                self._add(page_file, RouteKind.PAGE, parts, loader_path, layouts, routes, errors)

        for child in sorted(directory.iterdir()):
            if not child.is_dir():
                continue
            if child.name.startswith((".", "_")) or child.name in SKIPPED_DIRS:
                continue
            self._walk(child, [*parts, child.name], layouts, routes, errors)

    def _add(
        self,
        source: Path,
        kind: RouteKind,
        parts: List[str],
        loader_path: Optional[Path],
        layouts: Tuple[Path, ...],
        routes: List[RouteDefinition],
        errors: List[InvalidRouteDefinition],
    ) -> None:
        try:
            pattern = parse_pattern(parts)
        except SegmentSyntaxError as e:
            errors.append(InvalidRouteDefinition(source, str(e)))
            return

        exports_path = source if kind is RouteKind.API else loader_path
        route = RouteDefinition(
            pattern=pattern,
            kind=kind,
            module_path=source,
            exports=ExportsRef(self.module_cache, exports_path, kind),
            loader_path=loader_path,
            layout_loader_paths=layouts,
            layouts=tuple(ExportsRef(self.module_cache, p, RouteKind.PAGE) for p in layouts),
        )
        routes.append(route)
        self.logger.debug(f"Registered {kind.value} route: {route.pathname}")


def build_route_table(app_dir: Path, module_cache: Optional[ModuleCache] = None) -> RouteTable:
    """Convenience wrapper around ``RouteTableBuilder(app_dir).build()``."""
    return RouteTableBuilder(app_dir, module_cache).build()


def _first_existing(directory: Path, names: Tuple[str, ...]) -> Optional[Path]:
    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None
