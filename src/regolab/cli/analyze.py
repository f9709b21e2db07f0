"""Offline analysis commands: no external tools involved."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from regolab.core.completion import complete_at, hover_at
from regolab.core.parser import parse
from regolab.core.schema import build_data_context, parse_json_schema
from regolab.core.styles import highlight as highlight_tree
from regolab.core.syntax import dump
from regolab.models import DataContext, SchemaNode

console = Console()

PolicyFile = Annotated[Path, typer.Argument(help="Rego policy file.", exists=True, dir_okay=False)]
InputOption = Annotated[Path | None, typer.Option("--input", "-i", help="Input JSON(C) document.", exists=True)]
DataOption = Annotated[Path | None, typer.Option("--data", "-d", help="Data JSON(C) document.", exists=True)]
OffsetOption = Annotated[int, typer.Option("--offset", help="Character offset of the cursor.")]


def _read(path: Path | None) -> str | None:
    return path.read_text(encoding="utf-8") if path is not None else None


def _context(input_file: Path | None, data_file: Path | None) -> DataContext:
    return build_data_context(_read(input_file), _read(data_file))


def _schema_tree(node: SchemaNode, label: str) -> Tree:
    branch = Tree(f"[bold]{label}[/bold]: {node.describe()}" + (f" [dim]({node.source})[/dim]" if node.source else ""))
    for key, child in (node.children or {}).items():
        branch.add(_schema_tree(child, key))
    item = node.array_item_type
    if item is not None and item.children:
        for key, child in item.children.items():
            branch.add(_schema_tree(child, f"[_].{key}"))
    return branch


def tree(
    path: PolicyFile,
    trivia: Annotated[bool, typer.Option(help="Include whitespace and comments.")] = False,
) -> None:
    """Print the syntax tree of a policy."""
    source = path.read_text(encoding="utf-8")
    console.print(dump(parse(source), source, include_trivia=trivia), markup=False, highlight=False)


def highlight(path: PolicyFile) -> None:
    """List the style spans of a policy."""
    source = path.read_text(encoding="utf-8")
    table = Table(show_lines=False)
    for header in ("start", "end", "tag", "text"):
        table.add_column(header)
    spans = highlight_tree(parse(source))
    for span in spans:
        table.add_row(str(span.start), str(span.end), span.tag, source[span.start : span.end])
    console.print(table)
    console.print(f"({len(spans)} spans)")


def schema(
    path: Annotated[Path, typer.Argument(help="JSON(C) document.", exists=True, dir_okay=False)],
    source: Annotated[str | None, typer.Option(help="Source label attached to every node.")] = None,
) -> None:
    """Print the inferred schema of a JSON-with-comments document."""
    node = parse_json_schema(path.read_text(encoding="utf-8"), source)
    if node is None:
        console.print(f"[red]{path} is not valid JSON.[/red]", soft_wrap=True)
        raise typer.Exit(1)
    console.print(_schema_tree(node, path.name))


def complete(
    path: PolicyFile,
    offset: OffsetOption,
    input_file: InputOption = None,
    data_file: DataOption = None,
) -> None:
    """List completions at a cursor offset."""
    source = path.read_text(encoding="utf-8")
    result = complete_at(parse(source), source, offset, _context(input_file, data_file))
    if result is None or not result.items:
        console.print("No completions.")
        return
    table = Table(show_lines=False)
    for header in ("label", "type", "detail", "info"):
        table.add_column(header)
    for item in result.items:
        table.add_row(item.label, item.type, item.detail or "", item.info or "")
    console.print(table)
    console.print(f"({len(result.items)} items, replacing from offset {result.start})")


def hover(
    path: PolicyFile,
    offset: OffsetOption,
    input_file: InputOption = None,
    data_file: DataOption = None,
) -> None:
    """Show type information for the input/data path under the cursor."""
    source = path.read_text(encoding="utf-8")
    info = hover_at(source, offset, _context(input_file, data_file))
    if info is None:
        console.print("Nothing to show.")
        return
    console.print(f"[bold]{info.path}[/bold]: {info.type}")
    if info.example is not None:
        console.print(f"Example: {info.example}", markup=False)
    if info.source is not None:
        console.print(f"Source: {info.source}", markup=False)
