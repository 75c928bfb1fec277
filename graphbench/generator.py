"""Bulk loader for the synthetic Person -LIKES-> Item graph.

The load runs as a single writer in two phases:

1. **items** - ``item_count`` Item vertices, committed in batches of at most
   ``max_batch_size`` (one batch when unset).
2. **people** - ``person_count`` Person vertices, each with exactly
   ``likes_count`` outgoing LIKES edges to uniformly chosen items, weighted
   uniformly in ``[0, 10)``.  The transaction is rotated at random
   (``commit_probability``) or when ``max_batch_size`` persons are pending,
   which only bounds transaction size.

A failure aborts the batch in flight; batches committed before it stay.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Optional

from graphbench.config import GraphConfig
from graphbench.db.connection import transaction
from graphbench.db.edges import create_edge
from graphbench.db.migrations import declare_unique_constraint
from graphbench.db.models import ITEM, LIKES, PERSON, WEIGHT
from graphbench.db.vertices import create_vertex
from graphbench.errors import EmptyDomain, GraphBenchError
from graphbench.sampling import Sampler

logger = logging.getLogger(__name__)

# Person vertices never carry an ``id`` property, so their counter is the
# ``person`` property.
UNIQUE_CONSTRAINTS: tuple[tuple[str, str], ...] = ((ITEM, "id"), (PERSON, "person"))

MAX_WEIGHT = 10.0


@dataclass
class GeneratedGraph:
    """Entry pools handed from the generator to the traversal engine."""

    people: list[int] = field(default_factory=list)
    items: list[int] = field(default_factory=list)


def declare_constraints(conn: sqlite3.Connection) -> int:
    """Declare the uniqueness constraints; return how many were new."""
    return sum(
        declare_unique_constraint(conn, label, name) for label, name in UNIQUE_CONSTRAINTS
    )


def generate(
    conn: sqlite3.Connection,
    config: GraphConfig,
    *,
    sampler: Optional[Sampler] = None,
) -> GeneratedGraph:
    """Populate the store described by *config* and return the entry pools.

    Args:
        conn: Writer connection with the schema initialised.
        config: Dataset shape and batching knobs.
        sampler: Source of randomness; defaults to ``Sampler(config.seed)``.

    Raises:
        EmptyDomain: Persons need likes but there are no items.  Raised
            before any transaction is opened.
        GraphBenchError: Any store failure, annotated with phase and index.
    """
    if config.item_count == 0 and config.person_count and config.likes_count:
        raise EmptyDomain(
            f"Cannot pick {config.likes_count} liked items per person from 0 items",
            phase="people",
        )

    sampler = sampler or Sampler(config.seed)
    # The commit coin gets its own stream so batching never changes the graph.
    coin = sampler.spawn()

    try:
        declare_constraints(conn)
    except GraphBenchError as exc:
        raise exc.with_context("constraints")

    graph = GeneratedGraph()
    _load_items(conn, config, graph)
    _load_people(conn, config, graph, sampler, coin)
    return graph


def _load_items(conn: sqlite3.Connection, config: GraphConfig, graph: GeneratedGraph) -> None:
    index: Optional[int] = None
    try:
        with transaction(conn) as tx:
            for index in range(config.item_count):
                properties = {"id": index, "itemname": f"itemname{index}", "item": index}
                graph.items.append(create_vertex(conn, ITEM, properties))
                if config.max_batch_size and (index + 1) % config.max_batch_size == 0:
                    tx.checkpoint()
                    logger.debug("Committed items up to %d", index)
    except GraphBenchError as exc:
        raise exc.with_context("items", index)
    logger.info("Created %d Item vertices in %d batch(es)", len(graph.items), tx.batches)


def _load_people(
    conn: sqlite3.Connection,
    config: GraphConfig,
    graph: GeneratedGraph,
    sampler: Sampler,
    coin: Sampler,
) -> None:
    index: Optional[int] = None
    pending = 0
    try:
        with transaction(conn) as tx:
            for index in range(config.person_count):
                person_id = create_vertex(conn, PERSON, {"person": index})
                graph.people.append(person_id)
                pending += 1

                rotate = bool(config.commit_probability) and coin.random() < config.commit_probability
                if rotate or (config.max_batch_size and pending >= config.max_batch_size):
                    tx.checkpoint()
                    logger.debug("Committed batch %d at person %d", tx.batches, index)
                    pending = 0

                for _ in range(config.likes_count):
                    item_id = sampler.pick(graph.items)
                    create_edge(
                        conn, LIKES, person_id, item_id, {WEIGHT: sampler.random() * MAX_WEIGHT}
                    )
    except GraphBenchError as exc:
        raise exc.with_context("people", index)
    logger.info(
        "Created %d Person vertices with %d LIKES each in %d batch(es)",
        len(graph.people),
        config.likes_count,
        tx.batches,
    )
