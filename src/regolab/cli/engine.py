"""Commands backed by the opa executable."""

import asyncio
import json
from typing import Annotated

import typer
from rich.console import Console

from regolab.cli.analyze import DataOption, InputOption, PolicyFile
from regolab.config import get_settings
from regolab.core.ports.evaluator import PolicyEvaluator
from regolab.engines.process import EngineError

console = Console()


def _get_evaluator() -> PolicyEvaluator:
    from regolab.engines.opa import OpaEvaluator

    return OpaEvaluator.from_settings(get_settings())


def evaluate(
    path: PolicyFile,
    input_file: InputOption = None,
    data_file: DataOption = None,
) -> None:
    """Evaluate a policy and print the resulting data document."""
    policy = path.read_text(encoding="utf-8")
    input_text = input_file.read_text(encoding="utf-8") if input_file else "{}"
    data_text = data_file.read_text(encoding="utf-8") if data_file else "{}"
    evaluator = _get_evaluator()

    try:
        result = asyncio.run(evaluator.evaluate(policy, input_text, data_text))
    except EngineError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    console.print_json(json.dumps(result))


def fmt(
    path: PolicyFile,
    write: Annotated[bool, typer.Option("--write", "-w", help="Rewrite the file in place.")] = False,
) -> None:
    """Format a policy with opa fmt."""
    evaluator = _get_evaluator()
    try:
        formatted = asyncio.run(evaluator.format(path.read_text(encoding="utf-8")))
    except EngineError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    if write:
        path.write_text(formatted, encoding="utf-8")
        console.print(f"[green]Formatted[/green] {path}")
    else:
        typer.echo(formatted, nl=False)
