"""Evaluate and format policies with the ``opa`` CLI."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any

from regolab.config import Settings
from regolab.core.schema import strip_comments
from regolab.engines.process import (
    EvaluationError,
    ProcessResult,
    find_executable,
    run_process,
    tool_version,
)

logger = logging.getLogger(__name__)

FORMAT_TIMEOUT = 10.0


def unwrap_eval_output(stdout: str) -> Any:
    """Pull the value out of ``{"result": [{"expressions": [{"value": ...}]}]}``.

    Output of any other shape is returned as decoded.
    """
    try:
        payload = json.loads(stdout or "{}")
    except ValueError as exc:
        raise EvaluationError(f"Failed to parse evaluation results: {exc}") from exc
    if isinstance(payload, dict):
        results = payload.get("result")
        if results and isinstance(results[0], dict) and results[0].get("expressions"):
            return results[0]["expressions"][0].get("value")
    return payload


class OpaEvaluator:
    """Implements the ``PolicyEvaluator`` protocol on top of the opa CLI."""

    def __init__(self, executable: str | None = None, timeout: float = 30.0) -> None:
        self._override = executable
        self._executable: str | None = None
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> OpaEvaluator:
        return cls(settings.opa_path, settings.eval_timeout)

    @property
    def executable(self) -> str:
        if self._executable is None:
            self._executable = find_executable("opa", self._override)
        return self._executable

    async def _run(self, args: list[str], timeout: float) -> ProcessResult:
        try:
            return await run_process([self.executable, *args], timeout)
        except (TimeoutError, OSError) as exc:
            raise EvaluationError(str(exc)) from exc

    async def evaluate(self, policy: str, input_text: str, data_text: str) -> Any:
        """Evaluate the whole ``data`` document for *policy* against the given documents.

        The input and data texts may contain comments; they are stripped first.
        """
        with tempfile.TemporaryDirectory(prefix="opa-eval-") as temp_dir:
            root = Path(temp_dir)
            policy_path = root / "policy.rego"
            input_path = root / "input.json"
            data_path = root / "data.json"
            policy_path.write_text(policy, encoding="utf-8")
            input_path.write_text(strip_comments(input_text).strip() or "{}", encoding="utf-8")
            data_path.write_text(strip_comments(data_text).strip() or "{}", encoding="utf-8")
            result = await self._run(
                ["eval", "-d", str(policy_path), "-d", str(data_path), "-i", str(input_path), "--format", "json", "data"],
                self._timeout,
            )

        if result.returncode != 0:
            raise EvaluationError(result.stderr.strip() or f"opa eval exited with code {result.returncode}")
        return unwrap_eval_output(result.stdout)

    async def format(self, policy: str) -> str:
        with tempfile.TemporaryDirectory(prefix="opa-fmt-") as temp_dir:
            policy_path = Path(temp_dir) / "policy.rego"
            policy_path.write_text(policy, encoding="utf-8")
            result = await self._run(["fmt", str(policy_path)], FORMAT_TIMEOUT)
        if result.returncode != 0:
            raise EvaluationError(result.stderr.strip() or f"opa fmt exited with code {result.returncode}")
        return result.stdout

    async def version(self) -> str:
        return await tool_version(self.executable, r"Version:\s*(\S+)")
