"""Operations on the ``edges`` table."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Iterator, Optional

from graphbench.db.connection import require_transaction
from graphbench.db.migrations import list_constraints
from graphbench.db.models import ITEM, LIKES, PERSON, Direction, Edge, GraphStats
from graphbench.db.vertices import count_vertices, vertex_exists
from graphbench.errors import UnknownEdge, UnknownVertex

_EDGE_COLUMNS = "id, edge_type, source_id, target_id, properties"

_INCIDENCE = {
    Direction.OUTGOING: ("source_id = ?", 1),
    Direction.INCOMING: ("target_id = ?", 1),
    Direction.BOTH: ("(source_id = ? OR target_id = ?)", 2),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_edge(row: sqlite3.Row) -> Edge:
    return Edge(
        id=row["id"],
        edge_type=row["edge_type"],
        source_id=row["source_id"],
        target_id=row["target_id"],
        raw_properties=row["properties"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_edge(
    conn: sqlite3.Connection,
    edge_type: str,
    source_id: int,
    target_id: int,
    properties: Optional[dict[str, Any]] = None,
) -> int:
    """Create a directed edge from *source* to *target* and return its id.

    Parallel edges are allowed: calling this twice with the same triple
    creates two edges.

    Raises:
        UnknownVertex: If either endpoint does not exist.  The enclosing
            transaction is expected to roll back.
    """
    require_transaction(conn)
    try:
        cursor = conn.execute(
            "INSERT INTO edges (edge_type, source_id, target_id, properties) VALUES (?, ?, ?, ?)",
            (edge_type, source_id, target_id, json.dumps(properties or {})),
        )
    except sqlite3.IntegrityError as exc:
        missing = [v for v in (source_id, target_id) if not vertex_exists(conn, v)]
        raise UnknownVertex(
            f"Cannot create {edge_type} edge {source_id} -> {target_id}: "
            f"unknown vertex {', '.join(map(str, missing)) or '?'}"
        ) from exc
    return cursor.lastrowid  # type: ignore[return-value]


def set_edge_property(
    conn: sqlite3.Connection, edge_id: int, name: str, value: Any
) -> None:
    """Attach or overwrite property *name* on an edge.

    Raises:
        UnknownEdge: If ``edge_id`` does not exist.
    """
    require_transaction(conn)
    cursor = conn.execute(
        "UPDATE edges SET properties = json_set(properties, ?, json(?)) WHERE id = ?",
        (f'$."{name}"', json.dumps(value), edge_id),
    )
    if cursor.rowcount == 0:
        raise UnknownEdge(f"Edge not found: {edge_id}")


def iter_edges(
    conn: sqlite3.Connection,
    vertex_id: int,
    direction: Direction = Direction.OUTGOING,
    edge_type: Optional[str] = None,
) -> Iterator[Edge]:
    """Lazily yield the edges incident to *vertex_id*.

    Rows are pulled from the cursor one at a time, so a vertex with a huge
    fan-out is never materialised as a list.  Each call starts a fresh scan;
    the order is whatever SQLite returns and callers must not rely on it.
    """
    predicate, arity = _INCIDENCE[direction]
    params: list[Any] = [vertex_id] * arity
    if edge_type is not None:
        predicate += " AND edge_type = ?"
        params.append(edge_type)

    cursor = conn.execute(
        f"SELECT {_EDGE_COLUMNS} FROM edges WHERE {predicate}", params  # noqa: S608
    )
    try:
        for row in cursor:
            yield _row_to_edge(row)
    finally:
        cursor.close()


def count_edges(conn: sqlite3.Connection, edge_type: Optional[str] = None) -> int:
    """Count edges, optionally only those of *edge_type*."""
    if edge_type:
        row = conn.execute(
            "SELECT COUNT(*) FROM edges WHERE edge_type = ?", (edge_type,)
        ).fetchone()
    else:
        row = conn.execute("SELECT COUNT(*) FROM edges").fetchone()
    return row[0]


def degree(
    conn: sqlite3.Connection,
    vertex_id: int,
    direction: Direction = Direction.OUTGOING,
    edge_type: Optional[str] = None,
) -> int:
    """Number of incident edges, computed in SQL rather than by iteration."""
    predicate, arity = _INCIDENCE[direction]
    params: list[Any] = [vertex_id] * arity
    if edge_type is not None:
        predicate += " AND edge_type = ?"
        params.append(edge_type)
    row = conn.execute(
        f"SELECT COUNT(*) FROM edges WHERE {predicate}", params  # noqa: S608
    ).fetchone()
    return row[0]


def graph_stats(conn: sqlite3.Connection) -> GraphStats:
    """Return vertex/edge totals and declared constraints - intended for reporting."""
    return GraphStats(
        persons=count_vertices(conn, PERSON),
        items=count_vertices(conn, ITEM),
        likes=count_edges(conn, LIKES),
        constraints=list_constraints(conn),
    )
