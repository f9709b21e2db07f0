from __future__ import annotations

from collections.abc import AsyncIterator

from regolab.config import Settings, get_settings
from regolab.core.ports.evaluator import PolicyEvaluator
from regolab.core.ports.linter import Linter
from regolab.engines.opa import OpaEvaluator
from regolab.engines.regal import RegalLinter

_settings: Settings | None = None
_linter: RegalLinter | None = None
_evaluator: OpaEvaluator | None = None


def get_app_settings() -> Settings:
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = get_settings()
    return _settings


async def get_linter() -> AsyncIterator[Linter]:
    """Yield a ``Linter``, creating the regal adapter lazily on first call."""
    global _linter  # noqa: PLW0603
    if _linter is None:
        _linter = RegalLinter.from_settings(get_app_settings())
    yield _linter


async def get_evaluator() -> AsyncIterator[PolicyEvaluator]:
    """Yield a ``PolicyEvaluator``, creating the opa adapter lazily on first call."""
    global _evaluator  # noqa: PLW0603
    if _evaluator is None:
        _evaluator = OpaEvaluator.from_settings(get_app_settings())
    yield _evaluator


def reset_engines() -> None:
    global _settings, _linter, _evaluator  # noqa: PLW0603
    _settings = None
    _linter = None
    _evaluator = None
