"""Exception hierarchy for graphbench.

Every error carries optional ``phase`` / ``index`` context so a failed bulk
load can be pinned to the batch and row that broke it.
"""

from __future__ import annotations

from typing import Optional


class GraphBenchError(Exception):
    """Base class for all graphbench errors."""

    def __init__(
        self,
        message: str,
        *,
        phase: Optional[str] = None,
        index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.index = index

    def with_context(self, phase: str, index: Optional[int] = None) -> GraphBenchError:
        """Attach phase/index unless an inner layer already did."""
        if self.phase is None:
            self.phase = phase
            self.index = index
        return self

    def __str__(self) -> str:
        if self.phase is None:
            return self.message
        where = self.phase if self.index is None else f"{self.phase}[{self.index}]"
        return f"{self.message} (during {where})"


class UnknownVertex(GraphBenchError):
    """An edge or property referenced a vertex that does not exist."""


class UnknownEdge(GraphBenchError):
    """A property was set on an edge that does not exist."""


class EmptyDomain(GraphBenchError):
    """The generator was asked to sample items from an empty item set."""


class EmptyPool(GraphBenchError):
    """The sampler was asked to pick from an empty entry pool."""


class TransactionAborted(GraphBenchError):
    """SQLite failed to commit a batch."""


class TransactionRequired(GraphBenchError):
    """A mutation was attempted outside a transaction."""


class ConstraintViolation(GraphBenchError):
    """A uniqueness constraint rejected a vertex."""


class MissingProperty(GraphBenchError):
    """An edge lacks a property a traversal filter reads."""
