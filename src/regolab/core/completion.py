"""Cursor-level completion and hover over a policy buffer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from regolab.core.paths import complete_path, complete_root, hover_path
from regolab.core.syntax import NodeKind, SyntaxNode
from regolab.models import CompletionItem, DataContext, HoverInfo

KEYWORD_COMPLETIONS: tuple[CompletionItem, ...] = (
    CompletionItem(label="package", type="keyword", info="Package declaration"),
    CompletionItem(label="import", type="keyword", info="Import statement"),
    CompletionItem(label="default", type="keyword", info="Default rule value"),
    CompletionItem(label="some", type="keyword", info="Existential quantifier"),
    CompletionItem(label="every", type="keyword", info="Universal quantifier"),
    CompletionItem(label="if", type="keyword", info="Conditional clause"),
    CompletionItem(label="else", type="keyword", info="Else clause"),
    CompletionItem(label="contains", type="keyword", info="Partial set rule"),
    CompletionItem(label="with", type="keyword", info="Mock/replace value"),
    CompletionItem(label="in", type="keyword", info="Set membership"),
    CompletionItem(label="not", type="keyword", info="Negation"),
    CompletionItem(label="as", type="keyword", info="Alias"),
    CompletionItem(label="true", type="constant", info="Boolean true"),
    CompletionItem(label="false", type="constant", info="Boolean false"),
    CompletionItem(label="null", type="constant", info="Null value"),
    CompletionItem(label="set", type="function", info="Empty set constructor"),
)

_PATH_PART = r"(?:\.[A-Za-z_][A-Za-z0-9_]*|\[\s*(?:_|\d+|\"[^\"]*\")\s*\])"
_PATH_BEFORE_CURSOR = re.compile(rf"(?<![\w.])(?:input|data){_PATH_PART}*(?:\.[A-Za-z_0-9]*)?$")
_PATH_ANYWHERE = re.compile(rf"(?<![\w.])(?:input|data){_PATH_PART}*")
_ROOT_BEFORE_CURSOR = re.compile(r"(?<![\w.])(inp|inpu|input|dat|data)$")
_WORD_BEFORE_CURSOR = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")
_AFTER_DECLARATION = re.compile(r"\b(?:package|import)\s+[\w.]*$")

_OPAQUE_LEAVES = frozenset({NodeKind.STRING, NodeKind.RAW_STRING, NodeKind.COMMENT, NodeKind.INVALID})


@dataclass(frozen=True)
class CompletionResult:
    """Candidates plus the offset where the text they replace begins."""

    start: int
    items: list[CompletionItem] = field(default_factory=list)


def _inside_opaque_leaf(tree: SyntaxNode, offset: int) -> bool:
    found = tree.leaf_at(offset)
    if found is None:
        return False
    leaf, _ = found
    if leaf.kind not in _OPAQUE_LEAVES or leaf.start >= offset:
        return False
    if leaf.kind is NodeKind.INVALID and not leaf.text.startswith(('"', "`")):
        return False
    closed = leaf.kind in (NodeKind.STRING, NodeKind.RAW_STRING)
    return offset < leaf.end if closed else offset <= leaf.end


def _line_bounds(text: str, offset: int) -> tuple[int, int]:
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    return start, len(text) if end == -1 else end


def complete_at(tree: SyntaxNode, text: str, offset: int, context: DataContext) -> CompletionResult | None:
    """Completion at *offset*; ``None`` where completion makes no sense (strings, comments, package paths)."""
    offset = max(0, min(offset, len(text)))
    if _inside_opaque_leaf(tree, offset):
        return None

    line_start, _ = _line_bounds(text, offset)
    before = text[line_start:offset]

    path = _PATH_BEFORE_CURSOR.search(before)
    if path is not None:
        items = complete_path(context, path.group())
        if items:
            typed = path.group()
            partial = "" if typed.endswith(".") else typed.rpartition(".")[2]
            return CompletionResult(start=offset - len(partial), items=items)

    root = _ROOT_BEFORE_CURSOR.search(before)
    if root is not None:
        items = complete_root(context, root.group(1))
        if items:
            return CompletionResult(start=offset - len(root.group(1)), items=items)

    if before.endswith((".", "]")) or _AFTER_DECLARATION.search(before):
        return None

    word_match = _WORD_BEFORE_CURSOR.search(before)
    word = word_match.group() if word_match else ""
    items = [item for item in KEYWORD_COMPLETIONS if item.label.startswith(word)]
    return CompletionResult(start=offset - len(word), items=items)


def hover_at(text: str, offset: int, context: DataContext) -> HoverInfo | None:
    """Hover payload for the ``input`` / ``data`` path under *offset*, if any."""
    line_start, line_end = _line_bounds(text, offset)
    line = text[line_start:line_end]
    column = offset - line_start
    for match in _PATH_ANYWHERE.finditer(line):
        if match.start() <= column <= match.end():
            info = hover_path(context, match.group())
            if info is None:
                return None
            return info.model_copy(update={"start": line_start + match.start(), "end": line_start + match.end()})
    return None
