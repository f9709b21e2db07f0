"""Schema inference over JSON-with-comments documents.

The ``input`` and ``data`` buffers are parsed into ``SchemaNode`` trees that
drive path completion and hover. A buffer that does not parse yields ``None``;
that is the normal state while the user is halfway through an edit.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from regolab.models import DataContext, SchemaNode

logger = logging.getLogger(__name__)

OBJECT_EXAMPLE_KEYS = 5
ARRAY_EXAMPLE_ITEMS = 3

_START_MARKER = re.compile(r"^(\s*)//\s*-{4} (.+) -{4}\s*$")
_END_MARKER = re.compile(r"^(\s*)//\s*-{10,}\s*$")


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments, leaving string literals untouched.

    Comment characters are replaced by nothing except newlines inside block
    comments, which are kept so line numbers of the remaining JSON stay stable.
    """
    out: list[str] = []
    pos = 0
    length = len(text)
    in_string = False

    while pos < length:
        ch = text[pos]
        if in_string:
            out.append(ch)
            if ch == "\\" and pos + 1 < length:
                out.append(text[pos + 1])
                pos += 2
                continue
            if ch == '"':
                in_string = False
            pos += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            pos += 1
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            pos = length if newline == -1 else newline
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            end = length if close == -1 else close + 2
            out.append("\n" * text.count("\n", pos, end))
            pos = end
        else:
            out.append(ch)
            pos += 1

    return "".join(out)


@dataclass(frozen=True)
class DataSourceBlock:
    """A ``// ---- name ----`` ... ``// ----------`` section of a data buffer (1-based lines)."""

    name: str
    start_line: int
    end_line: int


def find_data_source_blocks(text: str) -> list[DataSourceBlock]:
    blocks: list[DataSourceBlock] = []
    current: tuple[str, int] | None = None
    for number, line in enumerate(text.splitlines(), start=1):
        if current is None:
            match = _START_MARKER.match(line)
            if match:
                current = (match.group(2).strip(), number)
        elif _END_MARKER.match(line):
            blocks.append(DataSourceBlock(name=current[0], start_line=current[1], end_line=number))
            current = None
    return blocks


def _top_level_keys(stripped: str) -> list[tuple[int, str]]:
    """``(line, key)`` for every key of the outermost object in comment-free JSON text."""
    keys: list[tuple[int, str]] = []
    depth = 0
    line = 1
    pos = 0
    length = len(stripped)
    while pos < length:
        ch = stripped[pos]
        if ch == '"':
            end = pos + 1
            while end < length and stripped[end] != '"':
                end += 2 if stripped[end] == "\\" else 1
            after = end + 1
            while after < length and stripped[after] in " \t\r\n":
                after += 1
            if depth == 1 and after < length and stripped[after] == ":":
                keys.append((line, json.loads(stripped[pos : end + 1])))
            pos = end + 1
            continue
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
        elif ch == "\n":
            line += 1
        pos += 1
    return keys


def _block_key_sources(text: str, blocks: list[DataSourceBlock]) -> dict[str, str]:
    """Map each key of the outermost object declared inside a marker block to the block's name."""
    sources: dict[str, str] = {}
    for line, key in _top_level_keys(strip_comments(text)):
        for block in blocks:
            if block.start_line < line < block.end_line:
                sources[key] = block.name
                break
    return sources


def build_schema(value: Any, source: str | None = None) -> SchemaNode:
    """Recursively convert a decoded JSON value into a ``SchemaNode``."""
    if value is None:
        return SchemaNode(type="null", example=None, source=source)
    if isinstance(value, bool):
        return SchemaNode(type="boolean", example=value, source=source)
    if isinstance(value, (int, float)):
        return SchemaNode(type="number", example=value, source=source)
    if isinstance(value, str):
        return SchemaNode(type="string", example=value, source=source)
    if isinstance(value, list):
        return SchemaNode(
            type="array",
            example=value[:ARRAY_EXAMPLE_ITEMS],
            array_item_type=build_schema(value[0], source) if value else None,
            source=source,
        )
    if isinstance(value, dict):
        return SchemaNode(
            type="object",
            children={str(key): build_schema(child, source) for key, child in value.items()},
            example=list(value)[:OBJECT_EXAMPLE_KEYS],
            source=source,
        )
    return SchemaNode(type="null", source=source)


def parse_json_schema(text: str, source: str | None = None) -> SchemaNode | None:
    """Build a schema tree from JSON-with-comments text, or ``None`` if it does not parse.

    Top-level keys declared inside data-source marker blocks carry the block
    name as their source instead of *source*.
    """
    try:
        value = json.loads(strip_comments(text))
    except (ValueError, RecursionError) as exc:
        logger.debug("No schema for %s: %s", source or "document", exc)
        return None

    schema = build_schema(value, source)
    blocks = find_data_source_blocks(text)
    if not blocks or not isinstance(value, dict):
        return schema

    key_sources = _block_key_sources(text, blocks)
    children = {
        key: build_schema(value[key], key_sources[key]) if key in key_sources else child
        for key, child in (schema.children or {}).items()
    }
    return schema.model_copy(update={"children": children})


def build_data_context(input_text: str | None, data_text: str | None) -> DataContext:
    return DataContext(
        input=parse_json_schema(input_text, "Input") if input_text is not None else None,
        data=parse_json_schema(data_text, "Data") if data_text is not None else None,
    )
