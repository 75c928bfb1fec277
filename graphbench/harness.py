"""Thin measurement loop around the traversal benchmarks.

Each benchmark runs ``warmup`` untimed calls followed by ``iterations``
timed ones and reports the average wall time per call.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from graphbench import traversal
from graphbench.lifecycle import BenchmarkGraph

logger = logging.getLogger(__name__)

BenchmarkFn = Callable[..., int]

BENCHMARKS: dict[str, BenchmarkFn] = {
    "ordered": traversal.measure_ordered_traversal,
    "unordered": traversal.measure_unordered_traversal,
    "recommendation": traversal.measure_recommendation_traversal,
    "recommendation-weighted": (
        traversal.measure_recommendation_traversal_with_relationship_properties
    ),
}

# Benchmarks that accept a ``repeat`` count of random picks per call.
REPEATED = {"ordered", "unordered"}


@dataclass
class BenchmarkResult:
    name: str
    warmup: int
    timings_ms: list[float] = field(default_factory=list)
    counts: list[int] = field(default_factory=list)

    @property
    def iterations(self) -> int:
        return len(self.timings_ms)

    @property
    def mean_ms(self) -> float:
        return sum(self.timings_ms) / len(self.timings_ms) if self.timings_ms else 0.0

    @property
    def min_ms(self) -> float:
        return min(self.timings_ms, default=0.0)

    @property
    def max_ms(self) -> float:
        return max(self.timings_ms, default=0.0)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "warmup": self.warmup,
            "iterations": self.iterations,
            "mean_ms": round(self.mean_ms, 3),
            "min_ms": round(self.min_ms, 3),
            "max_ms": round(self.max_ms, 3),
            "last_count": self.counts[-1] if self.counts else None,
        }


def run_benchmark(
    name: str,
    graph: BenchmarkGraph,
    *,
    warmup: int,
    iterations: int,
    **kwargs: Any,
) -> BenchmarkResult:
    """Run benchmark *name* against *graph*.

    Extra keyword arguments are passed through to the benchmark function.

    Raises:
        KeyError: If *name* is not in :data:`BENCHMARKS`.
    """
    if name not in BENCHMARKS:
        raise KeyError(f"Unknown benchmark {name!r}; choose from {', '.join(BENCHMARKS)}")
    fn = BENCHMARKS[name]
    result = BenchmarkResult(name=name, warmup=warmup)

    for _ in range(warmup):
        fn(graph, **kwargs)

    for _ in range(iterations):
        t0 = time.perf_counter()
        count = fn(graph, **kwargs)
        result.timings_ms.append((time.perf_counter() - t0) * 1000)
        result.counts.append(count)

    logger.info("%s: %.3f ms/op over %d iterations", name, result.mean_ms, iterations)
    return result
