"""Tests for the per-editor session."""

from __future__ import annotations

import pytest

from regolab.config import Settings
from regolab.core.session import EditorSession
from regolab.core.syntax import NodeKind
from regolab.models import Diagnostic, LintLocation, LintReport, LintViolation
from tests.conftest import StaticLinter

FAST = Settings(lint_debounce_ms=10)


class TestEditorSession:
    def test_tree_is_cached_until_edit(self, sample_policy: str) -> None:
        session = EditorSession(sample_policy)
        tree = session.tree
        assert tree.kind is NodeKind.SCRIPT
        assert session.tree is tree

        session.update_policy("package b\n")
        assert session.tree is not tree
        assert session.policy == "package b\n"
        assert session.policy_version == 1

    def test_highlight(self) -> None:
        session = EditorSession("package a\n")
        assert [(s.start, s.end, s.tag) for s in session.highlight()] == [
            (0, 7, "keyword"),
            (8, 9, "namespace"),
        ]

    def test_completion_and_hover_use_documents(self, sample_input: str, sample_data: str) -> None:
        policy = "allow if {\n    input.user."
        session = EditorSession(policy, input_text=sample_input, data_text=sample_data)

        result = session.complete(len(policy))
        assert result is not None
        assert [item.label for item in result.items] == ["name", "role", "tags"]

        hover = session.hover(policy.index("user") + 1)
        assert hover is not None
        assert hover.path == "input.user"
        assert hover.type == "object"

    def test_updating_one_document_keeps_the_other(self, sample_input: str, sample_data: str) -> None:
        session = EditorSession(input_text=sample_input, data_text=sample_data)
        data = session.context.data
        assert data is not None

        session.update_input('{"other": 1}')
        assert session.context.data is data
        assert session.context.input is not None
        assert session.context.input.children is not None
        assert list(session.context.input.children) == ["other"]

        session.update_data(None)
        assert session.context.data is None

    def test_malformed_document_clears_its_schema(self, sample_input: str) -> None:
        session = EditorSession(input_text=sample_input)
        session.update_input("{broken")
        assert session.context.input is None

    def test_no_scheduler_without_linter(self) -> None:
        session = EditorSession("package a\n")
        assert session.scheduler is None

    @pytest.mark.asyncio
    async def test_policy_edits_publish_diagnostics(self, sample_policy: str) -> None:
        report = LintReport(
            violations=[
                LintViolation(rule="opa-fmt", category="style", location=LintLocation(row=1, col=1, text="package"))
            ]
        )
        linter = StaticLinter(report)
        received: list[list[Diagnostic]] = []
        session = EditorSession(linter=linter, settings=FAST, on_diagnostics=received.append)

        session.update_policy(sample_policy)
        assert session.scheduler is not None
        await session.scheduler.wait_idle()

        assert linter.calls == [sample_policy]
        assert [d.rule for d in session.diagnostics] == ["opa-fmt"]
        assert session.diagnostics[0].to_offset == len("package")
        assert received == [session.diagnostics]
        await session.aclose()
