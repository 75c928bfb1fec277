"""The benchmark traversals over the Person -LIKES-> Item graph.

Every ``measure_*`` function runs inside exactly one read transaction on a
private connection, keeps its counter local and returns the number of edges
it stepped across.  They never write, so any number of them may run at once
against the same :class:`~graphbench.lifecycle.BenchmarkGraph`.

Edge order is never relied upon: every count is a sum over incident edges.
"""

from __future__ import annotations

import sqlite3
from typing import Optional, Sequence

from graphbench.db.edges import iter_edges
from graphbench.db.models import LIKES, Direction
from graphbench.lifecycle import BenchmarkGraph
from graphbench.sampling import Sampler

ORDERED_REPEAT = 500_000
UNORDERED_REPEAT = 10_000


# ---------------------------------------------------------------------------
# Building blocks (operate on an open connection)
# ---------------------------------------------------------------------------

def count_fan_out(
    conn: sqlite3.Connection,
    vertex_id: int,
    direction: Direction,
    *,
    threshold: Optional[float] = None,
) -> int:
    """Count LIKES edges incident to *vertex_id* in *direction*.

    With a *threshold*, only edges whose weight exceeds it are counted.
    """
    count = 0
    for edge in iter_edges(conn, vertex_id, direction, LIKES):
        if threshold is None or edge.weight > threshold:
            count += 1
    return count


def count_recommendations(
    conn: sqlite3.Connection,
    person_id: int,
    *,
    threshold: Optional[float] = None,
) -> int:
    """Three-hop expansion person -> item <- person -> item.

    For every item the person likes, for every person liking that item (the
    start person included), count that person's likes.  The result is the
    product of fan-outs along each path, so one popular item can dominate it.
    With a *threshold*, each of the three edges is filtered independently
    before descending.
    """
    count = 0
    for liked in iter_edges(conn, person_id, Direction.OUTGOING, LIKES):
        if threshold is not None and not liked.weight > threshold:
            continue
        for co_liked in iter_edges(conn, liked.target_id, Direction.INCOMING, LIKES):
            if threshold is not None and not co_liked.weight > threshold:
                continue
            count += count_fan_out(
                conn, co_liked.source_id, Direction.OUTGOING, threshold=threshold
            )
    return count


# ---------------------------------------------------------------------------
# Benchmarks
# ---------------------------------------------------------------------------

def measure_ordered_traversal(
    graph: BenchmarkGraph,
    repeat: int = ORDERED_REPEAT,
    *,
    sampler: Optional[Sampler] = None,
    pool: Optional[Sequence[int]] = None,
) -> int:
    """Repeatedly pick a random Person and count its outgoing LIKES."""
    sampler = sampler or graph.new_sampler()
    pool = graph.people if pool is None else pool
    count = 0
    with graph.reader() as conn:
        for _ in range(repeat):
            count += count_fan_out(conn, sampler.pick(pool), Direction.OUTGOING)
    return count


def measure_unordered_traversal(
    graph: BenchmarkGraph,
    repeat: int = UNORDERED_REPEAT,
    *,
    sampler: Optional[Sampler] = None,
    pool: Optional[Sequence[int]] = None,
) -> int:
    """Repeatedly pick a random Item and count its incoming LIKES."""
    sampler = sampler or graph.new_sampler()
    pool = graph.items if pool is None else pool
    count = 0
    with graph.reader() as conn:
        for _ in range(repeat):
            count += count_fan_out(conn, sampler.pick(pool), Direction.INCOMING)
    return count


def measure_recommendation_traversal(
    graph: BenchmarkGraph,
    *,
    sampler: Optional[Sampler] = None,
    person: Optional[int] = None,
) -> int:
    """Unfiltered recommendation walk from *person* (random when omitted)."""
    if person is None:
        person = (sampler or graph.new_sampler()).pick(graph.people)
    with graph.reader() as conn:
        return count_recommendations(conn, person)


def measure_recommendation_traversal_with_relationship_properties(
    graph: BenchmarkGraph,
    *,
    threshold: Optional[float] = None,
    sampler: Optional[Sampler] = None,
    person: Optional[int] = None,
) -> int:
    """Recommendation walk reading and comparing ``weight`` on every edge.

    *threshold* defaults to ``graph.config.threshold`` (``-1.0``), which
    keeps every edge generated in ``[0, 10)``.
    """
    if threshold is None:
        threshold = graph.config.threshold
    if person is None:
        person = (sampler or graph.new_sampler()).pick(graph.people)
    with graph.reader() as conn:
        return count_recommendations(conn, person, threshold=threshold)
