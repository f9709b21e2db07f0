"""Lint policies by running ``regal lint --format json`` on a temporary file."""

from __future__ import annotations

import json
import logging
import re
import tempfile
from pathlib import Path

from pydantic import ValidationError

from regolab.config import Settings
from regolab.engines.process import (
    LinterError,
    find_executable,
    run_process,
    tool_version,
)
from regolab.models import LintReport

logger = logging.getLogger(__name__)

# regal exits with 3 when it reports violations; the JSON is still on stdout.
_VIOLATIONS_EXIT_CODE = 3
_PARSE_ERROR_LOCATION = re.compile(r"(\d+:\d+):\s*(.+)")


def parse_lint_output(stdout: str, stderr: str = "") -> LintReport:
    """Turn regal's output into a ``LintReport``.

    An unparseable policy makes regal print only to stderr; that yields an
    empty report with ``parse_error`` set rather than an exception.
    """
    if not stdout.strip():
        if stderr.strip():
            match = _PARSE_ERROR_LOCATION.search(stderr)
            return LintReport(parse_error=match.group(2) if match else "Parse error")
        return LintReport()
    try:
        payload = json.loads(stdout)
        return LintReport.model_validate(
            {
                "violations": payload.get("violations") or [],
                "summary": payload.get("summary") or {},
                "aggregates": payload.get("aggregates") or [],
            }
        )
    except (ValueError, AttributeError, ValidationError):
        logger.warning("Unreadable regal output: %.200s", stdout)
        return LintReport(parse_error="Invalid policy syntax")


class RegalLinter:
    """Implements the ``Linter`` protocol on top of the regal CLI."""

    def __init__(self, executable: str | None = None, timeout: float = 15.0) -> None:
        self._override = executable
        self._executable: str | None = None
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> RegalLinter:
        return cls(settings.regal_path, settings.lint_timeout)

    @property
    def executable(self) -> str:
        if self._executable is None:
            self._executable = find_executable("regal", self._override)
        return self._executable

    async def lint(self, policy: str) -> LintReport:
        executable = self.executable
        with tempfile.TemporaryDirectory(prefix="regal-") as temp_dir:
            policy_path = Path(temp_dir) / "policy.rego"
            policy_path.write_text(policy, encoding="utf-8")
            try:
                result = await run_process(
                    [executable, "lint", str(policy_path), "--format", "json"],
                    self._timeout,
                )
            except (TimeoutError, OSError) as exc:
                raise LinterError(str(exc)) from exc

        if result.returncode not in (0, _VIOLATIONS_EXIT_CODE) and not result.stdout and not result.stderr:
            raise LinterError(f"regal exited with code {result.returncode}")
        return parse_lint_output(result.stdout, result.stderr)

    async def version(self) -> str:
        return await tool_version(self.executable, r"v?(\d+\.\d+\.\d+)")
