"""Map external linter findings onto offsets of the current document."""

from __future__ import annotations

import bisect
from collections.abc import Iterable

from regolab.models import Diagnostic, LintViolation

# Documents are stored flat, so the package path never mirrors a directory.
DEFAULT_SUPPRESSED_RULES: frozenset[str] = frozenset({"directory-package-mismatch"})


class LineIndex:
    """Offsets of line starts in a text, for converting 1-based line/column pairs."""

    def __init__(self, text: str) -> None:
        self.length = len(text)
        self.starts = [0]
        for index, ch in enumerate(text):
            if ch == "\n":
                self.starts.append(index + 1)

    @property
    def line_count(self) -> int:
        return len(self.starts)

    def line_end(self, line: int) -> int:
        """Offset just past the last character of 1-based *line*, excluding its newline."""
        if line < self.line_count:
            return self.starts[line] - 1
        return self.length

    def offset(self, line: int, column: int) -> int:
        line = min(max(line, 1), self.line_count)
        start = self.starts[line - 1]
        return min(start + max(column - 1, 0), self.line_end(line))

    def position(self, offset: int) -> tuple[int, int]:
        """1-based ``(line, column)`` of *offset*."""
        offset = min(max(offset, 0), self.length)
        line = bisect.bisect_right(self.starts, offset)
        return line, offset - self.starts[line - 1] + 1


def map_violation(violation: LintViolation, index: LineIndex) -> Diagnostic:
    location = violation.location
    line = min(max(location.row, 1), index.line_count)
    start = index.offset(line, location.col)
    end = min(start + max(1, len(location.text or "")), index.length)
    rule = violation.rule or "unknown"
    return Diagnostic(
        from_offset=start,
        to_offset=max(end, start),
        line=line,
        column=start - index.starts[line - 1] + 1,
        severity="error" if violation.level == "error" else "warning",
        message=violation.description or violation.rule or "Unknown violation",
        source=f"regal/{violation.category or 'unknown'}/{rule}",
        rule=violation.rule,
        category=violation.category,
        documentation_url=violation.documentation_url,
    )


def map_diagnostics(
    violations: Iterable[LintViolation],
    text: str,
    suppressed_rules: Iterable[str] = DEFAULT_SUPPRESSED_RULES,
) -> list[Diagnostic]:
    """Convert linter findings to diagnostics valid against *text*.

    Positions from a stale snapshot are clamped into the document rather than
    dropped. The result is ordered by offset, not by input order.
    """
    suppressed = frozenset(suppressed_rules)
    index = LineIndex(text)
    diagnostics = [map_violation(v, index) for v in violations if v.rule not in suppressed]
    diagnostics.sort(key=lambda d: (d.from_offset, d.to_offset))
    return diagnostics
