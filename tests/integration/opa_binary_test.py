"""Integration tests for evaluation and formatting with a real opa executable."""

import pytest

from regolab.engines.opa import OpaEvaluator
from regolab.engines.process import EvaluationError
from tests.conftest import SAMPLE_DATA, SAMPLE_INPUT, SAMPLE_POLICY


@pytest.mark.asyncio
async def test_version(opa: OpaEvaluator) -> None:
    assert await opa.version() != "unknown"


@pytest.mark.asyncio
async def test_evaluate_with_commented_documents(opa: OpaEvaluator) -> None:
    result = await opa.evaluate(SAMPLE_POLICY, SAMPLE_INPUT, SAMPLE_DATA)
    assert result["authz"]["allow"] is True
    assert result["authz"]["deny"] == ["too expensive: car"]
    assert result["roles"] == {"admin": ["read", "write"]}


@pytest.mark.asyncio
async def test_evaluate_syntax_error(opa: OpaEvaluator) -> None:
    with pytest.raises(EvaluationError):
        await opa.evaluate("package authz\n\nallow if {\n", "{}", "{}")


@pytest.mark.asyncio
async def test_format(opa: OpaEvaluator) -> None:
    formatted = await opa.format("package authz\nimport rego.v1\nallow if {input.x==1}\n")
    assert formatted.startswith("package authz\n\nimport rego.v1\n")
    assert "input.x == 1" in formatted
