"""graphbench CLI - entry-point for generation and benchmark runs.

Usage:
    python cli/main.py --help

Sub-command groups:
    graph  → build and inspect a persistent benchmark graph
    bench  → run the traversal benchmarks
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from graphbench.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging

import typer

from graphbench.config import settings
from cli.commands.bench import bench_app
from cli.commands.graph import graph_app

app = typer.Typer(
    name="graphbench",
    help="Bulk-load a Person/Item LIKES graph and benchmark traversals over it.",
    no_args_is_help=True,
)
app.add_typer(graph_app, name="graph")
app.add_typer(bench_app, name="bench")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging for every sub-command."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        typer.echo(
            f"❌ Invalid GRAPHBENCH_LOG_LEVEL {settings.log_level!r}. "
            "Use DEBUG, INFO, WARNING, ERROR or CRITICAL."
        )
        raise typer.Exit(code=1)
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
