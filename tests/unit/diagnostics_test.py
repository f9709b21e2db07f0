"""Tests for mapping linter findings onto document offsets."""

from __future__ import annotations

from regolab.core.diagnostics import LineIndex, map_diagnostics
from regolab.models import LintLocation, LintViolation

TEXT = "package a\nallow := true"


def _violation(row: int, col: int, rule: str | None = "rule", **kwargs: object) -> LintViolation:
    return LintViolation(rule=rule, location=LintLocation(row=row, col=col, text=kwargs.pop("text", None)), **kwargs)


class TestLineIndex:
    def test_offsets(self) -> None:
        index = LineIndex(TEXT)
        assert index.line_count == 2
        assert index.offset(1, 1) == 0
        assert index.offset(2, 1) == 10
        assert index.offset(2, 7) == 16

    def test_column_clamped_to_line_end(self) -> None:
        index = LineIndex(TEXT)
        assert index.offset(1, 99) == 9
        assert index.offset(2, 99) == len(TEXT)

    def test_position(self) -> None:
        index = LineIndex(TEXT)
        assert index.position(0) == (1, 1)
        assert index.position(10) == (2, 1)
        assert index.position(len(TEXT)) == (2, 14)


class TestMapDiagnostics:
    def test_basic_mapping(self) -> None:
        violation = LintViolation.model_validate(
            {
                "title": "use-assignment-operator",
                "category": "style",
                "level": "error",
                "description": "Prefer := over =",
                "location": {"row": 2, "col": 7, "text": ":="},
                "related_resources": [
                    {"description": "documentation", "ref": "https://docs.styra.com/regal/rules/style/x"}
                ],
            }
        )
        [diagnostic] = map_diagnostics([violation], TEXT)
        assert diagnostic.from_offset == 16
        assert diagnostic.to_offset == 18
        assert (diagnostic.line, diagnostic.column) == (2, 7)
        assert diagnostic.severity == "error"
        assert diagnostic.message == "Prefer := over ="
        assert diagnostic.source == "regal/style/use-assignment-operator"
        assert diagnostic.documentation_url == "https://docs.styra.com/regal/rules/style/x"

    def test_row_beyond_document_is_clamped(self) -> None:
        [diagnostic] = map_diagnostics([_violation(3, 1)], TEXT)
        assert diagnostic.line == 2
        assert diagnostic.from_offset == 10
        assert diagnostic.to_offset == 11

    def test_range_never_extends_past_document(self) -> None:
        [diagnostic] = map_diagnostics([_violation(2, 99, text="something long")], TEXT)
        assert diagnostic.from_offset == len(TEXT)
        assert diagnostic.to_offset == len(TEXT)

    def test_non_error_levels_become_warnings(self) -> None:
        [diagnostic] = map_diagnostics([_violation(1, 1, level="warning")], TEXT)
        assert diagnostic.severity == "warning"

    def test_suppressed_rules_are_dropped(self) -> None:
        violations = [_violation(1, 1, rule="directory-package-mismatch"), _violation(1, 1, rule="kept")]
        assert [d.rule for d in map_diagnostics(violations, TEXT)] == ["kept"]
        assert len(map_diagnostics(violations, TEXT, suppressed_rules=())) == 2

    def test_sorted_by_offset(self) -> None:
        diagnostics = map_diagnostics([_violation(2, 1), _violation(1, 5), _violation(1, 1)], TEXT)
        assert [d.from_offset for d in diagnostics] == [0, 4, 10]

    def test_fallbacks(self) -> None:
        [named] = map_diagnostics([_violation(1, 1, rule="only-rule")], TEXT)
        assert named.message == "only-rule"
        assert named.source == "regal/unknown/only-rule"
        [anonymous] = map_diagnostics([_violation(1, 1, rule=None)], TEXT)
        assert anonymous.message == "Unknown violation"
        assert anonymous.source == "regal/unknown/unknown"
        assert anonymous.documentation_url is None

    def test_empty_document(self) -> None:
        [diagnostic] = map_diagnostics([_violation(4, 4)], "")
        assert (diagnostic.from_offset, diagnostic.to_offset) == (0, 0)
        assert diagnostic.line == 1
