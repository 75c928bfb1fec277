"""Graph store tests.

All tests use an in-memory SQLite database so they are:
- Fast (no disk I/O)
- Isolated (each fixture gets a fresh DB)
- Side-effect free (nothing written to ~/.graphbench_data)
"""

from __future__ import annotations

import sqlite3
from types import GeneratorType
from typing import Generator

import pytest

from graphbench.db.connection import (
    get_connection,
    memory_uri,
    read_transaction,
    transaction,
)
from graphbench.db.edges import (
    count_edges,
    create_edge,
    degree,
    graph_stats,
    iter_edges,
    set_edge_property,
)
from graphbench.db.migrations import (
    declare_unique_constraint,
    init_db,
    list_constraints,
)
from graphbench.db.models import ITEM, LIKES, PERSON, WEIGHT, Direction, Edge
from graphbench.db.vertices import (
    count_vertices,
    create_vertex,
    get_vertex,
    list_vertex_ids,
    set_vertex_property,
    vertex_by_label_and_property,
)
from graphbench.errors import (
    ConstraintViolation,
    MissingProperty,
    TransactionAborted,
    TransactionRequired,
    UnknownEdge,
    UnknownVertex,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def pair(conn: sqlite3.Connection) -> tuple[int, int]:
    """One committed Person and one committed Item."""
    with transaction(conn):
        person = create_vertex(conn, PERSON, {"person": 0})
        item = create_vertex(conn, ITEM, {"id": 0, "itemname": "itemname0", "item": 0})
    return person, item


def _edge(conn: sqlite3.Connection, edge_id: int) -> Edge:
    source_id = conn.execute("SELECT source_id FROM edges WHERE id = ?", (edge_id,)).fetchone()[0]
    return next(e for e in iter_edges(conn, source_id) if e.id == edge_id)


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_wal_mode(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA journal_mode").fetchone()
        # In-memory DBs always return 'memory', on-disk returns 'wal'
        assert row[0] in ("wal", "memory")

    def test_autocommit_mode(self, conn: sqlite3.Connection) -> None:
        assert conn.isolation_level is None
        assert not conn.in_transaction

    def test_file_database_creates_parent(self, tmp_path) -> None:
        path = tmp_path / "nested" / "graph.db"
        connection = get_connection(path)
        connection.close()
        assert path.exists()

    def test_memory_uri_is_shared(self) -> None:
        uri = memory_uri()
        writer = get_connection(uri)
        init_db(writer)
        with transaction(writer):
            create_vertex(writer, ITEM, {"id": 1})
        reader = get_connection(uri)
        try:
            assert count_vertices(reader) == 1
        finally:
            reader.close()
            writer.close()


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        }
        assert {"vertices", "edges", "constraints"} <= tables

    def test_incidence_indexes_exist(self, conn: sqlite3.Connection) -> None:
        indexes = {
            r[0]
            for r in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'index'"
            ).fetchall()
        }
        assert "idx_edges_outgoing" in indexes
        assert "idx_edges_incoming" in indexes

    def test_init_db_is_idempotent(self, conn: sqlite3.Connection) -> None:
        # Calling init_db a second time must not raise
        init_db(conn)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

class TestConstraints:
    def test_declare_is_idempotent(self, conn: sqlite3.Connection) -> None:
        assert declare_unique_constraint(conn, ITEM, "id") is True
        assert declare_unique_constraint(conn, ITEM, "id") is False
        assert list_constraints(conn) == [(ITEM, "id")]

    def test_duplicate_value_rejected(self, conn: sqlite3.Connection) -> None:
        declare_unique_constraint(conn, ITEM, "id")
        with pytest.raises(ConstraintViolation):
            with transaction(conn):
                create_vertex(conn, ITEM, {"id": 7})
                create_vertex(conn, ITEM, {"id": 7})
        assert count_vertices(conn, ITEM) == 0

    def test_constraint_scoped_to_label(self, conn: sqlite3.Connection) -> None:
        declare_unique_constraint(conn, ITEM, "id")
        with transaction(conn):
            create_vertex(conn, ITEM, {"id": 7})
            create_vertex(conn, PERSON, {"id": 7})
        assert count_vertices(conn) == 2

    def test_vertices_without_property_unconstrained(self, conn: sqlite3.Connection) -> None:
        declare_unique_constraint(conn, PERSON, "id")
        with transaction(conn):
            create_vertex(conn, PERSON, {"person": 0})
            create_vertex(conn, PERSON, {"person": 1})
        assert count_vertices(conn, PERSON) == 2

    def test_existing_duplicates_rejected(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            create_vertex(conn, ITEM, {"id": 1})
            create_vertex(conn, ITEM, {"id": 1})
        with pytest.raises(ConstraintViolation, match="Item.id"):
            declare_unique_constraint(conn, ITEM, "id")
        assert list_constraints(conn) == []
        assert not conn.in_transaction

    def test_invalid_identifier_rejected(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Not a valid identifier"):
            declare_unique_constraint(conn, "Item'; DROP TABLE vertices; --", "id")


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class TestTransactions:
    def test_mutation_outside_transaction_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(TransactionRequired):
            create_vertex(conn, PERSON, {"person": 0})

    def test_commit_on_exit(self, conn: sqlite3.Connection) -> None:
        with transaction(conn) as tx:
            create_vertex(conn, PERSON, {"person": 0})
        assert tx.batches == 1
        assert not conn.in_transaction
        assert count_vertices(conn) == 1

    def test_rollback_on_error(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(RuntimeError):
            with transaction(conn):
                create_vertex(conn, PERSON, {"person": 0})
                raise RuntimeError("boom")
        assert not conn.in_transaction
        assert count_vertices(conn) == 0

    def test_checkpoint_keeps_earlier_batches(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(RuntimeError):
            with transaction(conn) as tx:
                create_vertex(conn, PERSON, {"person": 0})
                tx.checkpoint()
                create_vertex(conn, PERSON, {"person": 1})
                raise RuntimeError("boom")
        assert count_vertices(conn) == 1

    def test_failed_commit_raises_transaction_aborted(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(TransactionAborted):
            with transaction(conn):
                # Deferred foreign keys are only checked at COMMIT.
                conn.execute("PRAGMA defer_foreign_keys = ON")
                create_edge(conn, LIKES, 1000, 2000)
        assert not conn.in_transaction
        assert count_edges(conn) == 0

    def test_read_transaction_released_on_error(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(RuntimeError):
            with read_transaction(conn):
                assert conn.in_transaction
                raise RuntimeError("boom")
        assert not conn.in_transaction


# ---------------------------------------------------------------------------
# Vertices
# ---------------------------------------------------------------------------

class TestVertices:
    def test_create_returns_distinct_ids(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            ids = [create_vertex(conn, PERSON, {"person": i}) for i in range(5)]
        assert len(set(ids)) == 5

    def test_get_vertex(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        _, item = pair
        vertex = get_vertex(conn, item)
        assert vertex is not None
        assert vertex.label == ITEM
        assert vertex.properties == {"id": 0, "itemname": "itemname0", "item": 0}

    def test_get_vertex_not_found(self, conn: sqlite3.Connection) -> None:
        assert get_vertex(conn, 424242) is None

    def test_set_vertex_property(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, _ = pair
        with transaction(conn):
            set_vertex_property(conn, person, "nickname", "ann")
            set_vertex_property(conn, person, "person", 5)
        vertex = get_vertex(conn, person)
        assert vertex.properties == {"person": 5, "nickname": "ann"}

    def test_set_property_unknown_vertex(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(UnknownVertex):
            with transaction(conn):
                set_vertex_property(conn, 424242, "x", 1)

    def test_lookup_by_label_and_property(self, conn: sqlite3.Connection) -> None:
        declare_unique_constraint(conn, ITEM, "id")
        with transaction(conn):
            ids = [create_vertex(conn, ITEM, {"id": i}) for i in range(3)]
        found = vertex_by_label_and_property(conn, ITEM, "id", 2)
        assert found is not None
        assert found.id == ids[2]
        assert vertex_by_label_and_property(conn, PERSON, "id", 2) is None

    def test_count_and_list(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        assert count_vertices(conn) == 2
        assert count_vertices(conn, PERSON) == 1
        assert list_vertex_ids(conn, ITEM) == [item]


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

class TestEdges:
    def test_create_edge(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        with transaction(conn):
            edge_id = create_edge(conn, LIKES, person, item, {WEIGHT: 2.5})
        edge = _edge(conn, edge_id)
        assert edge.source_id == person
        assert edge.target_id == item
        assert edge.edge_type == LIKES
        assert edge.weight == 2.5

    def test_unknown_endpoint_aborts_transaction(
        self, conn: sqlite3.Connection, pair: tuple[int, int]
    ) -> None:
        person, _ = pair
        with pytest.raises(UnknownVertex, match="424242"):
            with transaction(conn):
                create_vertex(conn, PERSON, {"person": 1})
                create_edge(conn, LIKES, person, 424242)
        assert count_vertices(conn, PERSON) == 1
        assert count_edges(conn) == 0

    def test_parallel_edges_allowed(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        with transaction(conn):
            create_edge(conn, LIKES, person, item)
            create_edge(conn, LIKES, person, item)
        assert degree(conn, person, Direction.OUTGOING, LIKES) == 2

    def test_iter_edges_is_lazy(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, _ = pair
        assert isinstance(iter_edges(conn, person), GeneratorType)

    def test_iter_edges_directions(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        with transaction(conn):
            create_edge(conn, LIKES, person, item)
            create_edge(conn, "VIEWED", person, item)
        assert len(list(iter_edges(conn, person, Direction.OUTGOING, LIKES))) == 1
        assert len(list(iter_edges(conn, person, Direction.OUTGOING))) == 2
        assert list(iter_edges(conn, person, Direction.INCOMING, LIKES)) == []
        assert len(list(iter_edges(conn, item, Direction.INCOMING, LIKES))) == 1
        assert len(list(iter_edges(conn, item, Direction.BOTH))) == 2

    def test_iter_edges_restartable(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        with transaction(conn):
            create_edge(conn, LIKES, person, item)
        first = [e.id for e in iter_edges(conn, person)]
        second = [e.id for e in iter_edges(conn, person)]
        assert first == second

    def test_set_edge_property(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        with transaction(conn):
            edge_id = create_edge(conn, LIKES, person, item)
            set_edge_property(conn, edge_id, WEIGHT, 9.75)
        assert _edge(conn, edge_id).weight == 9.75

    def test_set_property_unknown_edge(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(UnknownEdge):
            with transaction(conn):
                set_edge_property(conn, 424242, WEIGHT, 1.0)

    def test_missing_weight(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        with transaction(conn):
            edge_id = create_edge(conn, LIKES, person, item)
        with pytest.raises(MissingProperty):
            _edge(conn, edge_id).weight

    def test_graph_stats(self, conn: sqlite3.Connection, pair: tuple[int, int]) -> None:
        person, item = pair
        declare_unique_constraint(conn, ITEM, "id")
        with transaction(conn):
            create_edge(conn, LIKES, person, item, {WEIGHT: 1.0})
        stats = graph_stats(conn)
        assert (stats.persons, stats.items, stats.likes) == (1, 1, 1)
        assert stats.constraints == [(ITEM, "id")]
