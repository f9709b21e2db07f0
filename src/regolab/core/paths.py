"""Resolve ``input`` / ``data`` reference paths against inferred schema trees."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from regolab.models import CompletionItem, DataContext, HoverInfo, SchemaNode

ROOTS = ("input", "data")
ARRAY_MARKER = "[_]."
MIN_ROOT_PREFIX = 3
_MAX_EXAMPLE_WIDTH = 80

_ROOT = re.compile(r"\s*(input|data)\b")
_SEGMENT = re.compile(
    r"""\.(?P<name>[A-Za-z_][A-Za-z0-9_]*)
      | \.(?P<dotted_index>\d+)
      | \[\s*(?P<index>_|\d+)\s*\]
      | \[\s*"(?P<key>(?:[^"\\]|\\.)*)"\s*\]""",
    re.VERBOSE,
)

_ROOT_DETAILS = {
    "input": ("Input document", "The input document for policy evaluation"),
    "data": ("Data document", "The data document for policy evaluation"),
}


@dataclass(frozen=True)
class Segment:
    value: str
    is_index: bool = False


def parse_path(text: str) -> tuple[str, list[Segment]] | None:
    """Split ``input.a[0].b`` into its root and segments; ``None`` if it is not a data path."""
    match = _ROOT.match(text)
    if match is None:
        return None
    root = match.group(1)
    segments: list[Segment] = []
    pos = match.end()
    end = len(text.rstrip())
    while pos < end:
        seg = _SEGMENT.match(text, pos)
        if seg is None:
            return None
        if seg.group("name") is not None:
            segments.append(Segment(seg.group("name")))
        elif seg.group("key") is not None:
            segments.append(Segment(json.loads(f'"{seg.group("key")}"')))
        else:
            segments.append(Segment(seg.group("dotted_index") or seg.group("index"), is_index=True))
        pos = seg.end()
    return root, segments


def _step(node: SchemaNode, segment: Segment) -> SchemaNode | None:
    if node.type == "array":
        if segment.is_index:
            return node.array_item_type
        # Name segments on an array address fields of its elements.
        if node.array_item_type is None:
            return None
        node = node.array_item_type
    if node.type == "object" and node.children is not None and not segment.is_index:
        return node.children.get(segment.value)
    return None


def resolve(context: DataContext, path: str) -> SchemaNode | None:
    parsed = parse_path(path)
    if parsed is None:
        return None
    root, segments = parsed
    node = context.root(root)
    for segment in segments:
        if node is None:
            return None
        node = _step(node, segment)
    return node


def format_example(node: SchemaNode) -> str | None:
    if node.type == "object":
        keys = node.example or []
        more = ", ..." if node.children is not None and len(node.children) > len(keys) else ""
        text = "{" + ", ".join(keys) + more + "}"
    elif node.example is None and node.type != "null":
        return None
    else:
        text = json.dumps(node.example, ensure_ascii=False)
    if len(text) > _MAX_EXAMPLE_WIDTH:
        text = text[: _MAX_EXAMPLE_WIDTH - 3] + "..."
    return text


def _candidates(children: dict[str, SchemaNode], prefix: str, in_array: bool) -> list[CompletionItem]:
    marker = ARRAY_MARKER if in_array else ""
    return [
        CompletionItem(
            label=f"{marker}{key}",
            type="property",
            detail=child.describe(),
            info=format_example(child),
            in_array=in_array,
        )
        for key, child in children.items()
        if key.startswith(prefix)
    ]


def complete_root(context: DataContext, word: str) -> list[CompletionItem]:
    """Root suggestions for a partially typed ``input`` / ``data``."""
    if len(word) < MIN_ROOT_PREFIX or not any(root.startswith(word) for root in ROOTS):
        return []
    items = []
    for root in ROOTS:
        if context.root(root) is not None:
            detail, info = _ROOT_DETAILS[root]
            items.append(CompletionItem(label=root, type="variable", detail=detail, info=info))
    return items


def complete_path(context: DataContext, prefix: str) -> list[CompletionItem]:
    """Completion candidates for the path typed up to the cursor.

    ``input.identity.`` lists the children of ``input.identity``;
    ``input.identity.ro`` lists those starting with ``ro``. When the parent is
    an array of objects the element fields are offered with a ``[_].`` marker.
    """
    text = prefix.strip()
    if "." not in text and "[" not in text:
        return complete_root(context, text)

    if text.endswith("."):
        parent_path, partial = text[:-1], ""
    else:
        head, _, tail = text.rpartition(".")
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", tail):
            return []
        parent_path, partial = head, tail

    node = resolve(context, parent_path)
    if node is None:
        return []
    if node.type == "object" and node.children is not None:
        return _candidates(node.children, partial, in_array=False)
    item = node.array_item_type
    if node.type == "array" and item is not None and item.children is not None:
        return _candidates(item.children, partial, in_array=True)
    return []


def hover_path(context: DataContext, path: str) -> HoverInfo | None:
    node = resolve(context, path)
    if node is None:
        return None
    return HoverInfo(path=path.strip(), type=node.describe(), example=format_example(node), source=node.source)
