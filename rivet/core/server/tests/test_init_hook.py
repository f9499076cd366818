"""
Tests for the application init hook
"""

import shutil
import tempfile
from pathlib import Path

import pytest

from rivet.core.errors import InitHookError
from rivet.core.server.init_hook import run_init_if_exists


class TestInitHook:

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def write_init(self, content: str):
        (self.temp_dir / "init.py").write_text(content)

    @pytest.mark.asyncio
    async def test_missing_file_returns_context(self):
        context = await run_init_if_exists(self.temp_dir, {"a": 1})
        assert context == {"a": 1}

    @pytest.mark.asyncio
    async def test_sync_init_receives_context(self):
        self.write_init(
            "seen = {}\n"
            "def init(server_context):\n"
            "    seen.update(server_context)\n"
            "    return {'ready': True}\n"
        )

        context = await run_init_if_exists(self.temp_dir, {"config": "cfg"})

        assert context == {"config": "cfg", "ready": True}

    @pytest.mark.asyncio
    async def test_async_init_may_mutate_context(self):
        self.write_init(
            "async def init(server_context):\n"
            "    server_context['pool'] = 'connected'\n"
        )

        context = await run_init_if_exists(self.temp_dir)

        assert context == {"pool": "connected"}

    @pytest.mark.asyncio
    async def test_missing_init_function(self, caplog):
        self.write_init("VALUE = 1\n")

        context = await run_init_if_exists(self.temp_dir, {"a": 1})

        assert context == {"a": 1}
        assert "does not export an init() function" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_init_raises(self):
        self.write_init("def init(server_context):\n    raise RuntimeError('no database')\n")

        with pytest.raises(InitHookError) as exc_info:
            await run_init_if_exists(self.temp_dir)

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_import_error_raises(self):
        self.write_init("import does_not_exist_anywhere\n")

        with pytest.raises(InitHookError):
            await run_init_if_exists(self.temp_dir)
