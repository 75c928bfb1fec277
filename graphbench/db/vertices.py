"""Operations on the ``vertices`` table."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

from graphbench.db.connection import require_transaction
from graphbench.db.migrations import check_identifier, property_expression
from graphbench.db.models import Vertex
from graphbench.errors import ConstraintViolation, UnknownVertex


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_vertex(row: sqlite3.Row) -> Vertex:
    return Vertex(
        id=row["id"],
        label=row["label"],
        properties=json.loads(row["properties"] or "{}"),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_vertex(
    conn: sqlite3.Connection,
    label: str,
    properties: Optional[dict[str, Any]] = None,
) -> int:
    """Insert a new vertex and return its engine-assigned id.

    Must be called inside a transaction.

    Raises:
        TransactionRequired: No transaction is open on *conn*.
        ConstraintViolation: A declared uniqueness constraint rejected it.
    """
    require_transaction(conn)
    try:
        cursor = conn.execute(
            "INSERT INTO vertices (label, properties) VALUES (?, ?)",
            (label, json.dumps(properties or {})),
        )
    except sqlite3.IntegrityError as exc:
        raise ConstraintViolation(f"{label} vertex {properties!r} rejected: {exc}") from exc
    return cursor.lastrowid  # type: ignore[return-value]


def set_vertex_property(
    conn: sqlite3.Connection, vertex_id: int, name: str, value: Any
) -> None:
    """Attach or overwrite property *name* on a vertex.

    Raises:
        UnknownVertex: If ``vertex_id`` does not exist.
    """
    require_transaction(conn)
    try:
        cursor = conn.execute(
            "UPDATE vertices SET properties = json_set(properties, ?, json(?)) WHERE id = ?",
            (f'$."{name}"', json.dumps(value), vertex_id),
        )
    except sqlite3.IntegrityError as exc:
        raise ConstraintViolation(
            f"Setting {name}={value!r} on vertex {vertex_id} rejected: {exc}"
        ) from exc
    if cursor.rowcount == 0:
        raise UnknownVertex(f"Vertex not found: {vertex_id}")


def get_vertex(conn: sqlite3.Connection, vertex_id: int) -> Optional[Vertex]:
    """Fetch a single vertex by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT id, label, properties FROM vertices WHERE id = ?", (vertex_id,)
    ).fetchone()
    return _row_to_vertex(row) if row else None


def vertex_exists(conn: sqlite3.Connection, vertex_id: int) -> bool:
    row = conn.execute("SELECT 1 FROM vertices WHERE id = ?", (vertex_id,)).fetchone()
    return row is not None


def vertex_by_label_and_property(
    conn: sqlite3.Connection, label: str, name: str, value: Any
) -> Optional[Vertex]:
    """Look a vertex up by a (uniqueness-constrained) property value.

    The query repeats the constraint's index expression and label predicate
    verbatim so SQLite can answer it from the partial unique index.
    """
    expression = property_expression(name)
    row = conn.execute(
        f"SELECT id, label, properties FROM vertices "  # noqa: S608
        f"WHERE label = '{check_identifier(label)}' AND {expression} = ? LIMIT 1",
        (value,),
    ).fetchone()
    return _row_to_vertex(row) if row else None


def count_vertices(conn: sqlite3.Connection, label: Optional[str] = None) -> int:
    """Count vertices, optionally only those carrying *label*."""
    if label:
        row = conn.execute(
            "SELECT COUNT(*) FROM vertices WHERE label = ?", (label,)
        ).fetchone()
    else:
        row = conn.execute("SELECT COUNT(*) FROM vertices").fetchone()
    return row[0]


def list_vertex_ids(conn: sqlite3.Connection, label: str) -> list[int]:
    """Return the ids of every *label* vertex in creation order."""
    rows = conn.execute(
        "SELECT id FROM vertices WHERE label = ? ORDER BY id", (label,)
    ).fetchall()
    return [r["id"] for r in rows]
