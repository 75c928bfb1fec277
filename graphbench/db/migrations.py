"""Database initialisation and constraint helpers.

``init_db(conn)`` is idempotent - safe to call on an existing database.
``declare_unique_constraint(conn, label, name)`` is idempotent as well.
"""

from __future__ import annotations

import logging
import re
import sqlite3

from graphbench.config import settings
from graphbench.db.connection import transaction
from graphbench.errors import ConstraintViolation

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_schema() -> str:
    """Load schema.sql."""
    return settings.schema_path.read_text(encoding="utf-8")


def check_identifier(value: str) -> str:
    # Labels and property names end up inside DDL, which cannot be bound.
    if not _IDENTIFIER.match(value):
        raise ValueError(f"Not a valid identifier: {value!r}")
    return value


def property_expression(name: str) -> str:
    """SQL expression extracting vertex property *name*.

    Lookups must use this exact text for SQLite to pick the constraint index.
    """
    return f"json_extract(properties, '$.{check_identifier(name)}')"


def constraint_index_name(label: str, name: str) -> str:
    return f"uq_{check_identifier(label).lower()}_{check_identifier(name)}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and incidence indexes.

    This function is **idempotent**: every DDL statement uses ``IF NOT EXISTS``
    so calling it multiple times on the same database is safe.

    Args:
        conn: An open connection from :func:`~graphbench.db.connection.get_connection`.
    """
    conn.executescript(_read_schema())


def declare_unique_constraint(conn: sqlite3.Connection, label: str, name: str) -> bool:
    """Make property *name* unique among vertices labelled *label*.

    Backed by a partial unique index on the JSON property.  Vertices that lack
    the property are not constrained (SQLite treats NULLs as distinct).

    Returns:
        ``True`` if the constraint was created, ``False`` if it already existed.

    Raises:
        ConstraintViolation: Existing vertices already share a value.
    """
    index_name = constraint_index_name(label, name)
    exists = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'index' AND name = ?",
        (index_name,),
    ).fetchone()
    if exists:
        logger.debug("Constraint %s already declared; skipping", index_name)
        return False

    try:
        with transaction(conn):
            conn.execute(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {index_name} "  # noqa: S608
                f"ON vertices({property_expression(name)}) WHERE label = '{label}'"
            )
            conn.execute(
                "INSERT OR IGNORE INTO constraints (label, property, index_name) VALUES (?, ?, ?)",
                (label, name, index_name),
            )
    except sqlite3.IntegrityError as e:
        raise ConstraintViolation(
            f"Cannot make {label}.{name} unique, stored values collide: {e}"
        ) from e
    logger.info("Declared unique constraint on %s.%s", label, name)
    return True


def list_constraints(conn: sqlite3.Connection) -> list[tuple[str, str]]:
    """Return every declared ``(label, property)`` constraint."""
    rows = conn.execute(
        "SELECT label, property FROM constraints ORDER BY label, property"
    ).fetchall()
    return [(r["label"], r["property"]) for r in rows]
