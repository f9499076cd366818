"""
Application init hook

``init.py`` at the project root may export ``init(server_context=...)``,
sync or async. It runs once at startup; a returned mapping is merged into
the server context handed to every request.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..constants import INIT_EXPORT, INIT_FILE
from ..errors import InitHookError, RouteModuleError
from ..routing.modules import ModuleCache
from .invoker import resolve

logger = logging.getLogger(__name__)


async def run_init_if_exists(
    project_root: Path,
    server_context: Optional[Mapping[str, Any]] = None,
    module_cache: Optional[ModuleCache] = None,
) -> Dict[str, Any]:
    """
    Run the project's init hook if it exists.

    Args:
        project_root: Directory that may contain ``init.py``
        server_context: Initial server context
        module_cache: Cache used to load ``init.py``

    Returns:
        The server context, enriched with whatever ``init`` returned

    Raises:
        InitHookError: If ``init.py`` fails to import or ``init`` raises
    """
    context: Dict[str, Any] = dict(server_context or {})
    init_file = Path(project_root) / INIT_FILE
    if not init_file.is_file():
        logger.debug(f"No {INIT_FILE} found in {project_root}")
        return context

    cache = module_cache if module_cache is not None else ModuleCache()
    try:
        module = cache.load(init_file).module
    except RouteModuleError as e:
        raise InitHookError(str(e)) from e

    init_fn = getattr(module, INIT_EXPORT, None)
    if not callable(init_fn):
        logger.warning(f"{INIT_FILE} does not export an {INIT_EXPORT}() function, skipping")
        return context

    try:
        result = await resolve(init_fn(server_context=context))
    except Exception as e:
        raise InitHookError(f"{INIT_EXPORT}() in {init_file} failed: {e}") from e

    if isinstance(result, Mapping):
        context.update(result)
    logger.info(f"Ran init hook from {init_file}")
    return context
