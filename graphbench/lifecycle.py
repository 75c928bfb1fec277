"""Prepare / shutdown hooks around one benchmark graph.

``open_graph(config)`` builds (or reattaches to) a store and returns a
:class:`BenchmarkGraph`, the explicit context every traversal receives.
``close_graph(graph)`` releases it.  Nothing here is a module-level
singleton: two graphs can be open side by side.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union

from graphbench.config import GraphConfig
from graphbench.db.connection import MEMORY, get_connection, memory_uri, read_transaction
from graphbench.db.migrations import init_db
from graphbench.db.models import ITEM, PERSON
from graphbench.db.vertices import count_vertices, list_vertex_ids
from graphbench.errors import GraphBenchError
from graphbench.generator import GeneratedGraph, generate
from graphbench.sampling import Sampler

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkGraph:
    """A populated store plus the entry pools traversals start from.

    ``conn`` is the writer connection used during generation.  It stays open
    until :func:`close_graph` because it keeps in-memory stores alive;
    traversals never use it and read through :meth:`reader` instead.
    """

    config: GraphConfig
    db_path: str
    conn: sqlite3.Connection
    people: list[int]
    items: list[int]
    closed: bool = False
    _sampler: Sampler = field(init=False, repr=False)
    _sampler_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._sampler = Sampler(self.config.seed)

    def new_sampler(self) -> Sampler:
        """Hand out an independent sampler (deterministic when seeded)."""
        with self._sampler_lock:
            return self._sampler.spawn()

    @contextmanager
    def reader(self) -> Iterator[sqlite3.Connection]:
        """Yield a private connection holding an open read transaction.

        Both the transaction and the connection are released on every exit
        path, so concurrent traversals never share a cursor or a snapshot.
        """
        if self.closed:
            raise GraphBenchError("Benchmark graph is closed")
        conn = get_connection(self.db_path)
        try:
            with read_transaction(conn):
                yield conn
        finally:
            conn.close()

    def __enter__(self) -> BenchmarkGraph:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        close_graph(self)


def load_pools(conn: sqlite3.Connection) -> GeneratedGraph:
    """Rebuild the entry pools from an already populated store."""
    return GeneratedGraph(
        people=list_vertex_ids(conn, PERSON),
        items=list_vertex_ids(conn, ITEM),
    )


def open_graph(
    config: GraphConfig,
    *,
    db_path: Optional[Union[Path, str]] = None,
    sampler: Optional[Sampler] = None,
    reuse: bool = False,
) -> BenchmarkGraph:
    """Create the store, run the generator and return the benchmark context.

    Args:
        config: Dataset shape.
        db_path: SQLite file to use.  Defaults to a private in-memory store.
        sampler: Randomness for generation; defaults to ``Sampler(config.seed)``.
        reuse: If the store already holds vertices, reattach to them instead
            of generating (the bulk load only ever runs against an empty store).
    """
    if db_path is None or str(db_path) == MEMORY:
        path = memory_uri()
    else:
        path = str(db_path)

    conn = get_connection(path)
    try:
        init_db(conn)
        if reuse and count_vertices(conn):
            pools = load_pools(conn)
            logger.info(
                "Reusing graph at %s (%d people, %d items)", path, len(pools.people), len(pools.items)
            )
        else:
            pools = generate(conn, config, sampler=sampler)
            logger.info(
                "Generated graph at %s (%d people, %d items)", path, len(pools.people), len(pools.items)
            )
    except BaseException:
        conn.close()
        raise

    return BenchmarkGraph(
        config=config, db_path=path, conn=conn, people=pools.people, items=pools.items
    )


def close_graph(graph: BenchmarkGraph) -> None:
    """Release the store.  Calling it twice is a no-op."""
    if graph.closed:
        return
    graph.conn.close()
    graph.closed = True
    logger.info("Closed graph at %s", graph.db_path)
