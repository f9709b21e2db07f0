"""Tests for subprocess plumbing shared by the tool adapters."""

from __future__ import annotations

import sys
from unittest.mock import AsyncMock, patch

import pytest

from regolab.engines.process import (
    ExecutableNotFoundError,
    ProcessResult,
    find_executable,
    run_process,
    tool_version,
)


class TestFindExecutable:
    def test_override_wins(self) -> None:
        with patch("regolab.engines.process.os.access", return_value=True):
            assert find_executable("regal", "/opt/tools/regal") == "/opt/tools/regal"

    def test_falls_back_to_path(self) -> None:
        with (
            patch("regolab.engines.process.os.access", return_value=False),
            patch("regolab.engines.process.shutil.which", return_value="/usr/bin/opa") as which,
        ):
            assert find_executable("opa") == "/usr/bin/opa"
        which.assert_called_once_with("opa")

    def test_not_found(self) -> None:
        with (
            patch("regolab.engines.process.os.access", return_value=False),
            patch("regolab.engines.process.shutil.which", return_value=None),
        ):
            with pytest.raises(ExecutableNotFoundError) as excinfo:
                find_executable("regal", "/opt/tools/regal")

        assert excinfo.value.candidates == ["/opt/tools/regal", "/usr/local/bin/regal", "regal"]
        assert "REGAL_PATH" in str(excinfo.value)


class TestRunProcess:
    @pytest.mark.asyncio
    async def test_collects_output_and_exit_code(self) -> None:
        script = "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"
        result = await run_process([sys.executable, "-c", script], timeout=10)
        assert result == ProcessResult(returncode=3, stdout="out\n", stderr="err\n")

    @pytest.mark.asyncio
    async def test_timeout_kills_the_process(self) -> None:
        with pytest.raises(TimeoutError):
            await run_process([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.2)


class TestToolVersion:
    @pytest.mark.asyncio
    async def test_extracts_version(self) -> None:
        result = ProcessResult(0, "Version: 0.68.0\nBuild Commit: abc\n", "")
        with patch("regolab.engines.process.run_process", AsyncMock(return_value=result)):
            assert await tool_version("/usr/bin/opa", r"Version:\s*(\S+)") == "0.68.0"

    @pytest.mark.asyncio
    async def test_unknown_when_no_match(self) -> None:
        with patch("regolab.engines.process.run_process", AsyncMock(return_value=ProcessResult(0, "", ""))):
            assert await tool_version("/usr/bin/opa", r"Version:\s*(\S+)") == "unknown"
