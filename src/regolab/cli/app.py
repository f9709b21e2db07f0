import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from regolab.cli.analyze import complete, highlight, hover, schema, tree
from regolab.cli.engine import evaluate, fmt
from regolab.cli.lint import lint, watch
from regolab.cli.serve import serve_app

app = typer.Typer(
    name="regolab",
    help="regolab CLI: analyse, lint, and evaluate Rego policies.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


app.command("tree")(tree)
app.command("highlight")(highlight)
app.command("schema")(schema)
app.command("complete")(complete)
app.command("hover")(hover)
app.command("lint")(lint)
app.command("watch")(watch)
app.command("eval")(evaluate)
app.command("fmt")(fmt)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
