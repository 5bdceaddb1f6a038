from __future__ import annotations

import pytest

from awsworkers.logging import LogConfig, setup_logging, teardown_logging

pytestmark = [pytest.mark.xdist_group("unit")]


class TestLogging:
    @pytest.mark.asyncio
    async def test_file_handler_receives_compiler_logs(self, tmp_path, compiler, make_pool):
        log_file = tmp_path / "awsworkers.log"
        handler_ids = setup_logging(LogConfig(level="DEBUG", file=str(log_file), console=False))
        try:
            await compiler.compile([make_pool()])
        finally:
            teardown_logging(handler_ids)

        content = log_file.read_text()
        assert "Compiled 1 pool(s) into 2 machine deployment(s)" in content
        assert "Pool cpu: hash=" in content

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, tmp_path, compiler, make_pool):
        from loguru import logger

        log_file = tmp_path / "silent.log"
        hid = logger.add(str(log_file), level="DEBUG")
        try:
            await compiler.compile([make_pool()])
        finally:
            logger.remove(hid)

        assert "Compiled" not in log_file.read_text()

    def test_console_handler_only(self):
        handler_ids = setup_logging(LogConfig())
        try:
            assert len(handler_ids) == 1
        finally:
            teardown_logging(handler_ids)
