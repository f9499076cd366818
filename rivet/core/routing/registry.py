"""
Route registry

Owns the route table for one application. The table is built once and
replaced wholesale after invalidation, so readers holding the previous
table never observe a partial update.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from .matcher import MatchResult, match_route
from .modules import ModuleCache
from .table import RouteTable, RouteTableBuilder
from .types import RouteKind


class RouteRegistry:
    """
    Explicitly owned route table, injected into the request pipeline.

    Several registries can live in one process, each with its own module
    cache.
    """

    def __init__(
        self,
        app_dir: Path,
        module_cache: Optional[ModuleCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_dir = Path(app_dir).resolve()
        self.module_cache = module_cache if module_cache is not None else ModuleCache()
        self.logger = logger or logging.getLogger(__name__)
        self._builder = RouteTableBuilder(self.app_dir, self.module_cache, self.logger)
        self._table: Optional[RouteTable] = None
        self._stale = True

    @property
    def table(self) -> RouteTable:
        """Current route table, rebuilt first if it was marked stale."""
        if self._stale or self._table is None:
            self.rebuild()
        return self._table  # type: ignore[return-value]

    @property
    def is_stale(self) -> bool:
        return self._stale

    def rebuild(self) -> RouteTable:
        """Rescan the app directory and swap in the new table."""
        table = self._builder.build()
        self._table = table
        self._stale = False
        return table

    def mark_stale(self) -> None:
        """Rebuild lazily on the next lookup (files may have been added or removed)."""
        self._stale = True

    def match(
        self,
        path: Union[str, Sequence[str]],
        kind: Optional[RouteKind] = None,
    ) -> Optional[MatchResult]:
        """Match *path* against the current table."""
        return match_route(self.table, path, kind)
