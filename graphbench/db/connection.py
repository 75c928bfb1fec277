"""SQLite connection factory and transaction scopes.

Usage::

    from graphbench.db.connection import get_connection, transaction

    conn = get_connection()
    with transaction(conn):
        conn.execute("INSERT ...")

Connections are opened in autocommit mode (``isolation_level=None``) so that
transaction boundaries are always explicit: every mutation in the store layer
must run inside :func:`transaction`, and every traversal inside
:func:`read_transaction`.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from graphbench.config import settings
from graphbench.errors import TransactionAborted, TransactionRequired

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


def memory_uri(name: Optional[str] = None) -> str:
    """Return a named shared-cache in-memory database URI.

    Every connection opened on the same URI sees the same database, which
    lives for as long as at least one of those connections stays open.
    """
    return f"file:graphbench-{name or uuid.uuid4().hex}?mode=memory&cache=shared"


def get_connection(db_path: Optional[Union[Path, str]] = None) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    Steps performed on every new connection:
    1. Enable ``PRAGMA foreign_keys = ON`` (edges must reference vertices).
    2. Switch file databases to WAL journal mode for concurrent readers.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.
            Accepts ``":memory:"`` and ``file:`` URIs (see :func:`memory_uri`).

    Returns:
        A configured :class:`sqlite3.Connection` in autocommit mode with
        ``row_factory`` set to :class:`sqlite3.Row`.
    """
    path = db_path or settings.db_path
    target = str(path)
    is_uri = target.startswith("file:")

    # Create parent directory if needed (no-op for in-memory databases)
    if target != MEMORY and not is_uri:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        target, uri=is_uri, check_same_thread=False, isolation_level=None
    )
    conn.row_factory = sqlite3.Row

    # PRAGMAs
    conn.execute("PRAGMA foreign_keys = ON")
    if target != MEMORY and "mode=memory" not in target:
        conn.execute("PRAGMA journal_mode = WAL")

    return conn


def require_transaction(conn: sqlite3.Connection) -> None:
    """Raise :class:`TransactionRequired` unless *conn* has an open transaction."""
    if not conn.in_transaction:
        raise TransactionRequired("Graph mutations must run inside a transaction")


class Transaction:
    """An explicit write transaction that can be committed in batches.

    ``checkpoint()`` commits everything written so far and immediately opens
    the next batch, which is how the generator bounds transaction size.
    Leaving the ``with`` block commits; an exception rolls back the current
    batch only, earlier checkpoints stay committed.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.batches = 0

    def begin(self) -> None:
        try:
            self.conn.execute("BEGIN IMMEDIATE")
        except sqlite3.OperationalError as exc:
            raise TransactionAborted(f"Cannot open batch {self.batches}: {exc}") from exc

    def commit(self) -> None:
        try:
            self.conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if self.conn.in_transaction:
                self.conn.rollback()
            raise TransactionAborted(f"Commit of batch {self.batches} failed: {exc}") from exc
        self.batches += 1

    def rollback(self) -> None:
        if self.conn.in_transaction:
            self.conn.rollback()

    def checkpoint(self) -> None:
        """Commit the current batch and start a new one."""
        self.commit()
        self.begin()

    def __enter__(self) -> Transaction:
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            logger.debug("Rolling back batch %d after %s", self.batches, exc_type.__name__)
            self.rollback()
            return
        self.commit()


def transaction(conn: sqlite3.Connection) -> Transaction:
    """Return a write transaction scope for *conn*."""
    return Transaction(conn)


@contextmanager
def read_transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Open a read transaction on *conn* and release it on every exit path.

    The transaction is always rolled back: traversals never write, so there is
    nothing to commit.
    """
    conn.execute("BEGIN DEFERRED")
    try:
        yield conn
    finally:
        if conn.in_transaction:
            conn.rollback()
