"""Seeded uniform-random choice of traversal entry points."""

from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

from graphbench.errors import EmptyPool

T = TypeVar("T")


class Sampler:
    """Uniform picks over an ordered pool, reproducible for a given seed.

    Each logical actor (generator, one traversal thread, ...) should own its
    own sampler; use :meth:`spawn` to derive independent children.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def pick(self, pool: Sequence[T]) -> T:
        """Return ``pool[i]`` for ``i`` drawn uniformly from ``[0, len(pool))``.

        Raises:
            EmptyPool: If *pool* is empty.
        """
        if not pool:
            raise EmptyPool("Cannot pick from an empty pool")
        return pool[self._random.randrange(len(pool))]

    def random(self) -> float:
        """Uniform float in ``[0.0, 1.0)``."""
        return self._random.random()

    def spawn(self) -> Sampler:
        """Derive a child sampler seeded from this one."""
        return Sampler(self._random.getrandbits(64))
