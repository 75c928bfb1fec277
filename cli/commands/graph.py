"""Commands for building and inspecting a persistent benchmark graph."""

from pathlib import Path
from typing import Optional

import typer
from graphbench.config import GraphConfig, settings
from graphbench.db import get_connection, init_db
from graphbench.db.edges import degree, graph_stats
from graphbench.db.models import LIKES, Direction
from graphbench.db.vertices import get_vertex
from graphbench.errors import GraphBenchError
from graphbench.lifecycle import close_graph, open_graph

graph_app = typer.Typer(help="Build and inspect a persistent benchmark graph.", no_args_is_help=True)


@graph_app.command("generate")
def graph_generate(
    persons: Optional[int] = typer.Option(None, help="Person vertices (default: settings)."),
    items: Optional[int] = typer.Option(None, help="Item vertices (default: settings)."),
    likes: Optional[int] = typer.Option(None, help="LIKES edges per person (default: settings)."),
    seed: Optional[int] = typer.Option(None, help="Random seed for a reproducible graph."),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", help="Commit at least every N persons / items."
    ),
    commit_probability: Optional[float] = typer.Option(
        None, "--commit-probability", help="Chance of committing after each person."
    ),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite file (default: workspace)."),
    force: bool = typer.Option(False, "--force", help="Delete an existing database first."),
) -> None:
    """Generate a graph into a SQLite file."""
    path = db or settings.db_path
    if path.exists():
        if not force:
            typer.echo(f"❌ {path} already exists. Use --force to replace it.")
            raise typer.Exit(code=1)
        for suffix in ("", "-wal", "-shm"):
            Path(f"{path}{suffix}").unlink(missing_ok=True)

    try:
        config = GraphConfig.from_settings(
            person_count=persons,
            item_count=items,
            likes_count=likes,
            seed=seed,
            max_batch_size=batch_size,
            commit_probability=commit_probability,
        )
    except ValueError as e:
        typer.echo(f"❌ Invalid configuration: {e}")
        raise typer.Exit(code=1)

    typer.echo(
        f"[graph generate] {config.person_count} persons x {config.likes_count} likes "
        f"over {config.item_count} items → {path}"
    )
    try:
        graph = open_graph(config, db_path=path)
    except GraphBenchError as e:
        typer.echo(f"❌ Generation failed: {e}")
        raise typer.Exit(code=1)
    close_graph(graph)
    typer.echo(f"✅ Created {len(graph.people)} persons and {len(graph.items)} items.")


@graph_app.command("stats")
def graph_stats_cmd(
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite file (default: workspace)."),
) -> None:
    """Show vertex / edge totals of a generated graph."""
    path = db or settings.db_path
    if not path.exists():
        typer.echo(f"❌ No graph at {path}. Run 'graph generate' first.")
        raise typer.Exit(code=1)

    conn = get_connection(path)
    init_db(conn)
    try:
        stats = graph_stats(conn)
    finally:
        conn.close()

    typer.echo(f"Graph at {path}:")
    typer.echo(f"  Person vertices : {stats.persons}")
    typer.echo(f"  Item vertices   : {stats.items}")
    typer.echo(f"  LIKES edges     : {stats.likes}")
    for label, prop in stats.constraints:
        typer.echo(f"  UNIQUE {label}.{prop}")


@graph_app.command("show")
def graph_show(
    vertex_id: int = typer.Argument(..., help="Vertex id to inspect."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite file (default: workspace)."),
) -> None:
    """Show one vertex with its properties and LIKES degrees."""
    path = db or settings.db_path
    if not path.exists():
        typer.echo(f"❌ No graph at {path}. Run 'graph generate' first.")
        raise typer.Exit(code=1)

    conn = get_connection(path)
    init_db(conn)
    try:
        vertex = get_vertex(conn, vertex_id)
        if vertex is None:
            typer.echo(f"❌ Vertex not found: {vertex_id}")
            raise typer.Exit(code=1)
        degrees = {d: degree(conn, vertex_id, d, LIKES) for d in Direction}
    finally:
        conn.close()

    props = ", ".join(f"{k}={v!r}" for k, v in vertex.properties.items())
    typer.echo(f"[{vertex.label}] {vertex.id}  {{{props}}}")
    typer.echo(f"  LIKES out  : {degrees[Direction.OUTGOING]}")
    typer.echo(f"  LIKES in   : {degrees[Direction.INCOMING]}")
    typer.echo(f"  LIKES both : {degrees[Direction.BOTH]}")
