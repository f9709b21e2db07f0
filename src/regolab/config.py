import os

from pydantic import BaseModel, Field

from regolab.core.diagnostics import DEFAULT_SUPPRESSED_RULES


class Settings(BaseModel):
    regal_path: str | None = None
    opa_path: str | None = None
    lint_debounce_ms: int = Field(default=750, ge=0)
    lint_min_length: int = Field(default=10, ge=0)
    lint_timeout: float = Field(default=15.0, gt=0)
    eval_timeout: float = Field(default=30.0, gt=0)
    suppressed_rules: frozenset[str] = DEFAULT_SUPPRESSED_RULES

    @property
    def lint_debounce(self) -> float:
        return self.lint_debounce_ms / 1000


def _split_rules(value: str | None) -> frozenset[str]:
    if value is None:
        return DEFAULT_SUPPRESSED_RULES
    return frozenset(rule.strip() for rule in value.split(",") if rule.strip())


def get_settings() -> Settings:
    """Read settings from the environment; unset variables keep their defaults."""
    values: dict[str, object] = {
        "regal_path": os.getenv("REGAL_PATH"),
        "opa_path": os.getenv("OPA_PATH"),
        "suppressed_rules": _split_rules(os.getenv("REGOLAB_SUPPRESSED_RULES")),
    }
    for field, env in (
        ("lint_debounce_ms", "REGOLAB_LINT_DEBOUNCE_MS"),
        ("lint_min_length", "REGOLAB_LINT_MIN_LENGTH"),
        ("lint_timeout", "REGOLAB_LINT_TIMEOUT"),
        ("eval_timeout", "REGOLAB_EVAL_TIMEOUT"),
    ):
        raw = os.getenv(env)
        if raw:
            values[field] = raw
    return Settings.model_validate(values)
