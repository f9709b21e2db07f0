"""Per-editor state: the three buffers, their derived trees and live diagnostics."""

from __future__ import annotations

import logging
from collections.abc import Callable

from regolab.config import Settings
from regolab.core.completion import CompletionResult, complete_at, hover_at
from regolab.core.parser import parse
from regolab.core.ports.linter import Linter
from regolab.core.scheduler import LintScheduler
from regolab.core.schema import parse_json_schema
from regolab.core.styles import highlight
from regolab.core.syntax import SyntaxNode
from regolab.models import DataContext, Diagnostic, HoverInfo, StyledSpan

logger = logging.getLogger(__name__)


class EditorSession:
    """Owns one policy buffer plus its ``input`` and ``data`` documents.

    The syntax tree is rebuilt lazily on the first read after an edit. Schema
    trees are rebuilt only for the document that changed. When a linter is
    given, every policy edit is forwarded to a ``LintScheduler`` and the
    published diagnostics are kept in ``diagnostics``.
    """

    def __init__(
        self,
        policy: str = "",
        *,
        input_text: str | None = None,
        data_text: str | None = None,
        linter: Linter | None = None,
        settings: Settings | None = None,
        on_diagnostics: Callable[[list[Diagnostic]], None] | None = None,
    ) -> None:
        settings = settings or Settings()
        self._policy = policy
        self._policy_version = 0
        self._tree: SyntaxNode | None = None
        self._context = DataContext(
            input=parse_json_schema(input_text, "Input") if input_text is not None else None,
            data=parse_json_schema(data_text, "Data") if data_text is not None else None,
        )
        self._on_diagnostics = on_diagnostics
        self.diagnostics: list[Diagnostic] = []
        self._scheduler: LintScheduler | None = None
        if linter is not None:
            self._scheduler = LintScheduler(
                linter,
                self._publish,
                debounce=settings.lint_debounce,
                min_length=settings.lint_min_length,
                suppressed_rules=settings.suppressed_rules,
            )

    @property
    def policy(self) -> str:
        return self._policy

    @property
    def policy_version(self) -> int:
        return self._policy_version

    @property
    def context(self) -> DataContext:
        return self._context

    @property
    def scheduler(self) -> LintScheduler | None:
        return self._scheduler

    @property
    def tree(self) -> SyntaxNode:
        if self._tree is None:
            self._tree = parse(self._policy)
        return self._tree

    def _publish(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        if self._on_diagnostics is not None:
            self._on_diagnostics(diagnostics)

    def update_policy(self, text: str) -> None:
        """Replace the policy text; requires a running loop when linting is enabled."""
        self._policy = text
        self._policy_version += 1
        self._tree = None
        if self._scheduler is not None:
            self._scheduler.notify_edit(text)

    def update_input(self, text: str | None) -> None:
        schema = parse_json_schema(text, "Input") if text is not None else None
        self._context = self._context.model_copy(update={"input": schema})

    def update_data(self, text: str | None) -> None:
        schema = parse_json_schema(text, "Data") if text is not None else None
        self._context = self._context.model_copy(update={"data": schema})

    def highlight(self) -> list[StyledSpan]:
        return highlight(self.tree)

    def complete(self, offset: int) -> CompletionResult | None:
        return complete_at(self.tree, self._policy, offset, self._context)

    def hover(self, offset: int) -> HoverInfo | None:
        return hover_at(self._policy, offset, self._context)

    async def aclose(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.aclose()
            logger.debug("Session closed at policy version %d", self._policy_version)
