"""Session-scoped fixtures for tests that run the real regal and opa executables."""

import pytest

from regolab.engines.opa import OpaEvaluator
from regolab.engines.regal import RegalLinter
from tests.conftest import require_executable


@pytest.fixture(scope="session")
def regal_path() -> str:
    """Path of the regal executable; skips the test when it is not installed."""
    return require_executable("regal")


@pytest.fixture(scope="session")
def opa_path() -> str:
    return require_executable("opa")


@pytest.fixture
def regal(regal_path: str) -> RegalLinter:
    return RegalLinter(regal_path)


@pytest.fixture
def opa(opa_path: str) -> OpaEvaluator:
    return OpaEvaluator(opa_path)
