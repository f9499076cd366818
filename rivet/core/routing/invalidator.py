"""
Development module invalidation

Discards cached route modules under an application directory so the next
request re-executes edited source files. Nothing is reloaded here; reloads
happen lazily on next access:

    clean -> (file change) -> invalidated -> (next access reloads) -> clean
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from .modules import ModuleCache, is_nested
from .registry import RouteRegistry


class ModuleInvalidator:
    """
    Invalidates route modules and helper modules nested under a root.

    Modules outside the root (other applications, the framework itself,
    installed packages) are never touched.
    """

    def __init__(
        self,
        module_cache: ModuleCache,
        registry: Optional[RouteRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.module_cache = module_cache
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def for_registry(cls, registry: RouteRegistry) -> "ModuleInvalidator":
        return cls(registry.module_cache, registry, registry.logger)

    def invalidate(self, root: Path) -> List[str]:
        """
        Invalidate every cached module whose file lives under *root*.

        Args:
            root: Application directory

        Returns:
            Names/paths of the invalidated modules (empty if already clean)
        """
        root = Path(root).resolve()
        invalidated = [str(p) for p in self.module_cache.invalidate_under(root)]
        invalidated.extend(self._purge_sys_modules(root))

        if self.registry is not None and is_nested(self.registry.app_dir, root):
            self.registry.mark_stale()

        if invalidated:
            self.logger.info(f"Invalidated {len(invalidated)} modules under {root}")
        else:
            self.logger.debug(f"No cached modules under {root}")
        return invalidated

    def _purge_sys_modules(self, root: Path) -> List[str]:
        """Drop imported helper modules (e.g. ``app/lib/utils.py``) under *root*."""
        purged = []
        for name, module in list(sys.modules.items()):
            module_file = getattr(module, "__file__", None)
            if not module_file:
                continue
            try:
                resolved = Path(module_file).resolve()
            except OSError:
                continue
            if is_nested(resolved, root):
                sys.modules.pop(name, None)
                purged.append(name)
        return purged