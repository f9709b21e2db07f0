from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

SchemaType = Literal["object", "array", "string", "number", "boolean", "null"]
Severity = Literal["error", "warning"]


class SchemaNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: SchemaType
    children: dict[str, "SchemaNode"] | None = None
    array_item_type: "SchemaNode | None" = None
    example: Any = None
    source: str | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "SchemaNode":
        if (self.children is not None) != (self.type == "object"):
            raise ValueError("children must be present exactly when type is 'object'")
        if self.array_item_type is not None and self.type != "array":
            raise ValueError("array_item_type is only allowed when type is 'array'")
        return self

    def describe(self) -> str:
        """Human-readable type, e.g. ``array<string>`` or ``array<array<number>>``."""
        if self.type == "array" and self.array_item_type is not None:
            return f"array<{self.array_item_type.describe()}>"
        return self.type


SchemaNode.model_rebuild()  # necessary for recursive types


class DataContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: SchemaNode | None = None
    data: SchemaNode | None = None

    def root(self, name: str) -> SchemaNode | None:
        if name == "input":
            return self.input
        if name == "data":
            return self.data
        return None


class CompletionItem(BaseModel):
    label: str
    type: str = "property"
    detail: str | None = None
    info: str | None = None
    in_array: bool = False


class HoverInfo(BaseModel):
    path: str
    type: str
    example: str | None = None
    source: str | None = None
    start: int | None = None
    end: int | None = None


class LintLocation(BaseModel):
    row: int = 1
    col: int = 1
    text: str | None = None
    file: str | None = None


class RelatedResource(BaseModel):
    description: str | None = None
    ref: str | None = None


class LintViolation(BaseModel):
    """One finding as reported by the external linter (1-based positions)."""

    model_config = ConfigDict(populate_by_name=True)

    rule: str | None = Field(default=None, validation_alias=AliasChoices("rule", "title"))
    category: str | None = None
    level: str | None = None
    description: str | None = None
    location: LintLocation = Field(default_factory=LintLocation)
    related_resources: list[RelatedResource] = Field(default_factory=list)

    @property
    def documentation_url(self) -> str | None:
        for resource in self.related_resources:
            if resource.description == "documentation" and resource.ref:
                return resource.ref
        return None


class LintReport(BaseModel):
    violations: list[LintViolation] = Field(default_factory=list)
    summary: dict[str, Any] = Field(default_factory=dict)
    aggregates: list[Any] = Field(default_factory=list)
    parse_error: str | None = None


class Diagnostic(BaseModel):
    """A linter finding mapped onto offsets of a specific document snapshot."""

    from_offset: int
    to_offset: int
    line: int
    column: int
    severity: Severity
    message: str
    source: str
    rule: str | None = None
    category: str | None = None
    documentation_url: str | None = None


class StyledSpan(BaseModel):
    start: int
    end: int
    tag: str
