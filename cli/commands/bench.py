"""Commands for running the traversal benchmarks."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from graphbench.config import GraphConfig, settings
from graphbench.errors import GraphBenchError
from graphbench.harness import BENCHMARKS, REPEATED, run_benchmark
from graphbench.lifecycle import close_graph, open_graph

bench_app = typer.Typer(help="Run the traversal benchmarks.", no_args_is_help=True)


@bench_app.command("list")
def bench_list() -> None:
    """List the available benchmarks."""
    for name, fn in BENCHMARKS.items():
        summary = (fn.__doc__ or "").strip().splitlines()[0] if fn.__doc__ else ""
        typer.echo(f"  {name:<24} {summary}")


@bench_app.command("run")
def bench_run(
    names: Optional[List[str]] = typer.Argument(None, help="Benchmarks to run (default: all)."),
    warmup: Optional[int] = typer.Option(None, help="Untimed calls per benchmark."),
    iterations: Optional[int] = typer.Option(None, help="Timed calls per benchmark."),
    repeat: Optional[int] = typer.Option(
        None, help="Random picks per call for 'ordered' / 'unordered'."
    ),
    persons: Optional[int] = typer.Option(None, help="Person vertices (default: settings)."),
    items: Optional[int] = typer.Option(None, help="Item vertices (default: settings)."),
    likes: Optional[int] = typer.Option(None, help="LIKES edges per person (default: settings)."),
    seed: Optional[int] = typer.Option(None, help="Random seed for graph and picks."),
    threshold: Optional[float] = typer.Option(
        None, help="Weight filter for 'recommendation-weighted'."
    ),
    db: Optional[Path] = typer.Option(
        None, "--db", help="Reuse a graph built with 'graph generate' (default: fresh in-memory)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON lines."),
) -> None:
    """Generate a graph (or reuse --db) and time the selected benchmarks."""
    selected = names or list(BENCHMARKS)
    unknown = [n for n in selected if n not in BENCHMARKS]
    if unknown:
        typer.echo(f"❌ Unknown benchmark(s): {', '.join(unknown)}. Use: {', '.join(BENCHMARKS)}")
        raise typer.Exit(code=1)

    if db is not None and not db.exists():
        typer.echo(f"❌ No graph at {db}. Run 'graph generate' first.")
        raise typer.Exit(code=1)

    try:
        config = GraphConfig.from_settings(
            person_count=persons,
            item_count=items,
            likes_count=likes,
            seed=seed,
            threshold=threshold,
        )
    except ValueError as e:
        typer.echo(f"❌ Invalid configuration: {e}")
        raise typer.Exit(code=1)

    warmup = settings.warmup_iterations if warmup is None else warmup
    iterations = settings.measurement_iterations if iterations is None else iterations

    try:
        graph = open_graph(config, db_path=db, reuse=db is not None)
    except GraphBenchError as e:
        typer.echo(f"❌ Graph setup failed: {e}")
        raise typer.Exit(code=1)

    try:
        for name in selected:
            kwargs = {"repeat": repeat} if repeat is not None and name in REPEATED else {}
            result = run_benchmark(name, graph, warmup=warmup, iterations=iterations, **kwargs)
            if as_json:
                typer.echo(json.dumps(result.as_dict()))
            else:
                typer.echo(
                    f"[bench] {name:<24} {result.mean_ms:10.3f} ms/op "
                    f"(min {result.min_ms:.3f}, max {result.max_ms:.3f}, n={result.iterations}) "
                    f"steps={result.counts[-1] if result.counts else 0}"
                )
    except GraphBenchError as e:
        typer.echo(f"❌ Benchmark failed: {e}")
        raise typer.Exit(code=1)
    finally:
        close_graph(graph)
