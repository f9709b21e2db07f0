from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from regolab.cli.analyze import DataOption, InputOption, PolicyFile
from regolab.config import get_settings
from regolab.core.diagnostics import map_diagnostics
from regolab.core.ports.linter import Linter
from regolab.core.session import EditorSession
from regolab.engines.process import EngineError
from regolab.models import Diagnostic

logger = logging.getLogger(__name__)
console = Console()


def _get_linter() -> Linter:
    from regolab.engines.regal import RegalLinter

    return RegalLinter.from_settings(get_settings())


def _render_diagnostics(diagnostics: list[Diagnostic], title: str | None = None) -> None:
    if not diagnostics:
        console.print("[green]No problems found.[/green]")
        return
    table = Table(title=title, show_lines=False)
    for header in ("line", "col", "severity", "rule", "message"):
        table.add_column(header)
    for d in diagnostics:
        colour = "red" if d.severity == "error" else "yellow"
        table.add_row(str(d.line), str(d.column), f"[{colour}]{d.severity}[/{colour}]", d.source, d.message)
    console.print(table)
    console.print(f"({len(diagnostics)} problems)")


def lint(path: PolicyFile) -> None:
    """Lint a policy with regal. Exits with 1 when problems are found."""
    source = path.read_text(encoding="utf-8")
    settings = get_settings()
    linter = _get_linter()

    async def _run() -> list[Diagnostic]:
        report = await linter.lint(source)
        if report.parse_error:
            console.print(f"[red]Parse error:[/red] {report.parse_error}")
        return map_diagnostics(report.violations, source, settings.suppressed_rules)

    try:
        diagnostics = asyncio.run(_run())
    except EngineError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    _render_diagnostics(diagnostics, title=str(path))
    if diagnostics:
        raise typer.Exit(1)


def watch(
    path: PolicyFile,
    input_file: InputOption = None,
    data_file: DataOption = None,
) -> None:
    """Re-lint a policy whenever it (or its input/data documents) changes."""
    from regolab.watcher.watchfiles_adapter import WatchfilesWatcher

    settings = get_settings()
    linter = _get_linter()
    watched = [p for p in (path, input_file, data_file) if p is not None]

    async def _run() -> None:
        session = EditorSession(
            linter=linter,
            settings=settings,
            on_diagnostics=lambda diagnostics: _render_diagnostics(diagnostics, title=str(path)),
        )

        def _load(changed: Path) -> None:
            text = changed.read_text(encoding="utf-8")
            if changed == path.resolve():
                session.update_policy(text)
            elif input_file is not None and changed == input_file.resolve():
                session.update_input(text)
            elif data_file is not None and changed == data_file.resolve():
                session.update_data(text)

        async def _on_change(paths: set[Path]) -> None:
            for changed in paths:
                _load(changed.resolve())

        for p in watched:
            _load(p.resolve())

        watcher = WatchfilesWatcher(*watched, on_change=_on_change)
        await watcher.start()
        console.print(f"[green]Watching {', '.join(str(p) for p in watched)}[/green] (Ctrl-C to stop)")
        try:
            await watcher.wait()
        finally:
            await watcher.stop()
            await session.aclose()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
    except EngineError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
