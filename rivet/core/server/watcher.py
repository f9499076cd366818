"""
Development file watcher

Watches the app directory with watchfiles. Each batch of relevant changes
invalidates cached route modules under the app root and notifies browsers
subscribed to the hot-reload event stream.
"""

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Iterable, List, Optional, Set, Tuple

from watchfiles import Change, awatch

from ..constants import PAGE_FILES
from ..routing.invalidator import ModuleInvalidator

logger = logging.getLogger(__name__)

_WATCHED_SUFFIXES = {".py"} | {Path(name).suffix for name in PAGE_FILES} | {".css"}
_IGNORED_PARTS = {"__pycache__", "node_modules", ".git"}


def is_relevant_change(path: Path) -> bool:
    """Return True for source files that affect routes or pages."""
    if any(part in _IGNORED_PARTS for part in path.parts):
        return False
    return path.suffix in _WATCHED_SUFFIXES


def _watch_filter(change: Change, path: str) -> bool:
    return is_relevant_change(Path(path))


class DevWatcher:
    """
    Triggers module invalidation on file changes in development mode.

    Started and stopped by the application lifespan.
    """

    def __init__(
        self,
        app_dir: Path,
        invalidator: ModuleInvalidator,
        debounce: int = 300,
    ):
        self.app_dir = Path(app_dir).resolve()
        self.invalidator = invalidator
        self.debounce = debounce
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start watching in a background task."""
        if self.is_running:
            return
        if not self.app_dir.is_dir():
            logger.warning(f"Not watching missing app directory {self.app_dir}")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop())
        logger.info(f"Watching {self.app_dir} for changes")

    async def stop(self) -> None:
        """Stop watching and wait for the background task to finish."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        for queue in list(self._subscribers):
            queue.put_nowait(None)

    async def _watch_loop(self) -> None:
        async for changes in awatch(
            self.app_dir,
            watch_filter=_watch_filter,
            stop_event=self._stop_event,
            debounce=self.debounce,
        ):
            self.handle_changes(changes)

    def handle_changes(self, changes: Iterable[Tuple[Change, str]]) -> List[Path]:
        """
        Invalidate the app root for a batch of changes.

        Returns:
            The relevant changed paths (empty when nothing was invalidated)
        """
        paths = sorted({Path(p) for _, p in changes if is_relevant_change(Path(p))})
        if not paths:
            return []

        for path in paths:
            logger.info(f"File changed: {path}")
        self.invalidator.invalidate(self.app_dir)
        self.notify(paths)
        return paths

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def notify(self, paths: List[Path]) -> None:
        """Queue a reload message for every connected browser."""
        message = f"reload:{paths[0]}" if paths else "reload:"
        for queue in list(self._subscribers):
            queue.put_nowait(message)

    async def events(self) -> AsyncIterator[str]:
        """
        Server-sent event stream for the hot-reload endpoint.

        Yields a ``ping`` event on connect, then one ``reload:<path>``
        message per change batch until the watcher stops.
        """
        queue = self.subscribe()
        try:
            yield "event: ping\ndata: connected\n\n"
            while True:
                message = await queue.get()
                if message is None:
                    break
                yield f"data: {message}\n\n"
        finally:
            self.unsubscribe(queue)
