from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from regolab.models import CompletionItem, Diagnostic, HoverInfo, SchemaNode, StyledSpan


class HealthResponse(BaseModel):
    status: str = "ok"


class EngineStatus(BaseModel):
    available: bool
    version: str | None = None
    error: str | None = None


class ReadinessResponse(BaseModel):
    status: str = "ok"
    regal: EngineStatus
    opa: EngineStatus


class PolicyRequest(BaseModel):
    policy: str


class LintResponse(BaseModel):
    diagnostics: list[Diagnostic]
    parse_error: str | None = None


class EvaluateRequest(BaseModel):
    policy: str
    input: str = "{}"
    data: str = "{}"


class EvaluateResponse(BaseModel):
    result: Any = None


class FormatResponse(BaseModel):
    policy: str


class HighlightResponse(BaseModel):
    spans: list[StyledSpan]


class CursorRequest(BaseModel):
    """A policy buffer, a cursor offset and optional ``input`` / ``data`` documents."""

    policy: str
    offset: int = Field(ge=0)
    input: str | None = None
    data: str | None = None


class CompleteResponse(BaseModel):
    start: int | None = None
    items: list[CompletionItem] = Field(default_factory=list)


class HoverResponse(BaseModel):
    hover: HoverInfo | None = None


class SchemaRequest(BaseModel):
    text: str
    source: str | None = None


class SchemaResponse(BaseModel):
    node: SchemaNode | None = None
    type: str | None = None
