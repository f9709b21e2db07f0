"""Shared fixtures and helpers for tests."""

import shutil
from pathlib import Path

import pytest

from regolab.models import LintReport

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Stand-ins for the external tools
# ---------------------------------------------------------------------------


class StaticLinter:
    """Linter double that returns a fixed report and records what it was asked."""

    def __init__(self, report: LintReport | None = None) -> None:
        self.report = report or LintReport()
        self.calls: list[str] = []

    async def lint(self, policy: str) -> LintReport:
        self.calls.append(policy)
        return self.report

    async def version(self) -> str:
        return "0.0.0-test"


class StaticEvaluator:
    def __init__(self, result: object = None) -> None:
        self.result = result
        self.calls: list[tuple[str, str, str]] = []

    async def evaluate(self, policy: str, input_text: str, data_text: str) -> object:
        self.calls.append((policy, input_text, data_text))
        return self.result

    async def format(self, policy: str) -> str:
        return policy.strip() + "\n"

    async def version(self) -> str:
        return "0.0.0-test"


def require_executable(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        pytest.skip(f"{name} is not installed")
    return path


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------

SAMPLE_POLICY = """package authz

import rego.v1

default allow := false

allow if {
    input.user.role == "admin"
}

deny contains msg if {
    some item in input.items
    item.price > 100
    msg := sprintf("too expensive: %v", [item.name])
}
"""

SAMPLE_INPUT = """{
  // the caller
  "user": {"name": "alice", "role": "admin", "tags": ["a", "b"]},
  "items": [{"name": "book", "price": 12}, {"name": "car", "price": 20000}]
}
"""

SAMPLE_DATA = """{
  // ---- roles ----
  "roles": {
    "admin": ["read", "write"]
  },
  // ----------
  "limits": {"max": 3}
}
"""


@pytest.fixture
def sample_policy() -> str:
    return SAMPLE_POLICY


@pytest.fixture
def sample_input() -> str:
    return SAMPLE_INPUT


@pytest.fixture
def sample_data() -> str:
    return SAMPLE_DATA


@pytest.fixture
def static_linter() -> StaticLinter:
    return StaticLinter()


@pytest.fixture
def static_evaluator() -> StaticEvaluator:
    return StaticEvaluator(result={"authz": {"allow": True}})
