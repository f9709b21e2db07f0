"""FastMCP server exposing regolab tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from regolab.config import Settings
from regolab.core.completion import complete_at, hover_at
from regolab.core.diagnostics import map_diagnostics
from regolab.core.parser import parse
from regolab.core.ports.evaluator import PolicyEvaluator
from regolab.core.ports.linter import Linter
from regolab.core.schema import build_data_context, parse_json_schema
from regolab.core.styles import highlight as highlight_tree
from regolab.engines.process import EngineError


def create_mcp_server(linter: Linter, evaluator: PolicyEvaluator, settings: Settings | None = None) -> FastMCP:
    """Create a FastMCP server wired to the given linter and evaluator."""

    settings = settings or Settings()
    mcp = FastMCP("regolab", instructions="Analyse, lint, and evaluate Rego policies.")

    @mcp.tool()
    async def highlight(policy: str) -> list[dict[str, Any]]:
        """Style spans (start, end, tag) covering the policy text."""
        return [span.model_dump() for span in highlight_tree(parse(policy))]

    @mcp.tool()
    async def complete(policy: str, offset: int, input: str | None = None, data: str | None = None) -> dict[str, Any]:
        """Completion candidates at a character offset of the policy."""
        result = complete_at(parse(policy), policy, offset, build_data_context(input, data))
        if result is None:
            return {"start": None, "items": []}
        return {"start": result.start, "items": [item.model_dump() for item in result.items]}

    @mcp.tool()
    async def hover(policy: str, offset: int, input: str | None = None, data: str | None = None) -> dict[str, Any] | None:
        """Type, example and source of the input/data path under the offset."""
        info = hover_at(policy, offset, build_data_context(input, data))
        return info.model_dump() if info is not None else None

    @mcp.tool()
    async def schema(text: str, source: str | None = None) -> dict[str, Any] | None:
        """Inferred schema of a JSON-with-comments document, or null if it does not parse."""
        node = parse_json_schema(text, source)
        return node.model_dump(exclude_none=True) if node is not None else None

    @mcp.tool()
    async def lint(policy: str) -> dict[str, Any]:
        """Run regal on the policy and return diagnostics mapped to offsets."""
        if len(policy.strip()) < settings.lint_min_length:
            return {"diagnostics": [], "parse_error": None}
        try:
            report = await linter.lint(policy)
        except EngineError as exc:
            return {"diagnostics": [], "parse_error": None, "error": str(exc)}
        diagnostics = map_diagnostics(report.violations, policy, settings.suppressed_rules)
        return {"diagnostics": [d.model_dump() for d in diagnostics], "parse_error": report.parse_error}

    @mcp.tool()
    async def evaluate(policy: str, input: str = "{}", data: str = "{}") -> Any:
        """Evaluate the policy with opa and return the resulting data document."""
        return await evaluator.evaluate(policy, input, data)

    return mcp
