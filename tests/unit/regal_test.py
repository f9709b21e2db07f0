"""Tests for the regal linter adapter."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from regolab.engines.process import LinterError, ProcessResult
from regolab.engines.regal import RegalLinter, parse_lint_output

REGAL_OUTPUT = json.dumps(
    {
        "violations": [
            {
                "title": "prefer-snake-case",
                "description": "Prefer snake_case for names",
                "category": "style",
                "level": "error",
                "location": {"col": 1, "row": 3, "file": "policy.rego", "text": "myRule := 1"},
                "related_resources": [
                    {"description": "documentation", "ref": "https://docs.styra.com/regal/rules/style/prefer-snake-case"}
                ],
            }
        ],
        "summary": {"files_scanned": 1, "num_violations": 1},
    }
)


class TestParseLintOutput:
    def test_violations(self) -> None:
        report = parse_lint_output(REGAL_OUTPUT)
        assert report.parse_error is None
        [violation] = report.violations
        assert violation.rule == "prefer-snake-case"
        assert violation.location.row == 3
        assert violation.documentation_url == "https://docs.styra.com/regal/rules/style/prefer-snake-case"
        assert report.summary["num_violations"] == 1

    def test_parse_error_on_stderr(self) -> None:
        stderr = "1 error occurred: policy.rego:3:5: rego_parse_error: unexpected eof token"
        report = parse_lint_output("", stderr)
        assert report.violations == []
        assert report.parse_error == "rego_parse_error: unexpected eof token"

    def test_stderr_without_location(self) -> None:
        assert parse_lint_output("", "something broke").parse_error == "Parse error"

    def test_no_output(self) -> None:
        report = parse_lint_output("", "")
        assert report.violations == []
        assert report.parse_error is None

    @pytest.mark.parametrize("stdout", ["not json", "[1, 2]"])
    def test_unreadable_output(self, stdout: str) -> None:
        assert parse_lint_output(stdout).parse_error == "Invalid policy syntax"

    def test_missing_violations_key(self) -> None:
        assert parse_lint_output('{"summary": {}}').violations == []


class TestRegalLinter:
    @pytest.mark.asyncio
    async def test_lint_runs_regal_on_a_temporary_file(self) -> None:
        seen: dict[str, str] = {}

        async def fake_run(args: list[str], timeout: float) -> ProcessResult:
            seen["policy"] = Path(args[2]).read_text(encoding="utf-8")
            seen["name"] = Path(args[2]).name
            return ProcessResult(3, REGAL_OUTPUT, "")

        linter = RegalLinter("/opt/regal", timeout=2.0)
        with (
            patch("regolab.engines.regal.find_executable", return_value="/opt/regal"),
            patch("regolab.engines.regal.run_process", AsyncMock(side_effect=fake_run)) as run,
        ):
            report = await linter.lint("package a\n")

        args, timeout = run.call_args[0]
        assert args[:2] == ["/opt/regal", "lint"]
        assert args[-2:] == ["--format", "json"]
        assert timeout == 2.0
        assert seen == {"policy": "package a\n", "name": "policy.rego"}
        assert [v.rule for v in report.violations] == ["prefer-snake-case"]
        assert not Path(args[2]).exists()

    @pytest.mark.asyncio
    async def test_timeout_becomes_linter_error(self) -> None:
        linter = RegalLinter()
        with (
            patch("regolab.engines.regal.find_executable", return_value="/opt/regal"),
            patch("regolab.engines.regal.run_process", AsyncMock(side_effect=TimeoutError("too slow"))),
        ):
            with pytest.raises(LinterError, match="too slow"):
                await linter.lint("package a\n")

    @pytest.mark.asyncio
    async def test_silent_failure_becomes_linter_error(self) -> None:
        linter = RegalLinter()
        with (
            patch("regolab.engines.regal.find_executable", return_value="/opt/regal"),
            patch("regolab.engines.regal.run_process", AsyncMock(return_value=ProcessResult(1, "", ""))),
        ):
            with pytest.raises(LinterError, match="code 1"):
                await linter.lint("package a\n")

    @pytest.mark.asyncio
    async def test_executable_is_resolved_once(self) -> None:
        linter = RegalLinter("/opt/regal")
        with (
            patch("regolab.engines.regal.find_executable", return_value="/opt/regal") as find,
            patch("regolab.engines.regal.run_process", AsyncMock(return_value=ProcessResult(0, "", ""))),
        ):
            await linter.lint("package a\n")
            await linter.lint("package b\n")
        find.assert_called_once_with("regal", "/opt/regal")

    @pytest.mark.asyncio
    async def test_version(self) -> None:
        linter = RegalLinter()
        with (
            patch("regolab.engines.regal.find_executable", return_value="/opt/regal"),
            patch(
                "regolab.engines.process.run_process",
                AsyncMock(return_value=ProcessResult(0, "Version: v0.29.2\nGo Version: go1.22\n", "")),
            ),
        ):
            assert await linter.version() == "0.29.2"
