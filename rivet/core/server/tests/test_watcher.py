"""
Tests for the development file watcher
"""

import asyncio
import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from watchfiles import Change

from rivet.core.server.watcher import DevWatcher, is_relevant_change


class TestIsRelevantChange:

    @pytest.mark.parametrize("path,expected", [
        ("app/api/route.py", True),
        ("app/blog/page.tsx", True),
        ("app/styles.css", True),
        ("app/api/__pycache__/route.cpython-312.pyc", False),
        ("app/notes.md", False),
        ("app/node_modules/react/index.js", False),
    ])
    def test_filter(self, path, expected):
        assert is_relevant_change(Path(path)) is expected


class TestDevWatcher:

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.app_dir = self.temp_dir / "app"
        self.app_dir.mkdir()
        self.invalidator = MagicMock()
        self.watcher = DevWatcher(self.app_dir, self.invalidator)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def test_change_invalidates_app_root(self):
        changed = str(self.app_dir / "api" / "route.py")

        paths = self.watcher.handle_changes({(Change.modified, changed)})

        assert paths == [Path(changed)]
        self.invalidator.invalidate.assert_called_once_with(self.app_dir)

    def test_irrelevant_changes_ignored(self):
        paths = self.watcher.handle_changes({(Change.added, str(self.app_dir / "README.md"))})

        assert paths == []
        self.invalidator.invalidate.assert_not_called()

    @pytest.mark.asyncio
    async def test_subscribers_receive_reload(self):
        events = self.watcher.events()
        assert (await events.__anext__()).startswith("event: ping")

        next_event = asyncio.ensure_future(events.__anext__())
        await asyncio.sleep(0)
        self.watcher.handle_changes({(Change.modified, str(self.app_dir / "page.tsx"))})

        message = await asyncio.wait_for(next_event, timeout=1)
        assert message == f"data: reload:{self.app_dir / 'page.tsx'}\n\n"
        await events.aclose()
        assert not self.watcher._subscribers

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        await self.watcher.start()
        assert self.watcher.is_running

        await asyncio.wait_for(self.watcher.stop(), timeout=5)
        assert not self.watcher.is_running
