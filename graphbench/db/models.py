"""Dataclass models representing DB rows.

These are plain Python objects - not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any

from graphbench.errors import MissingProperty

PERSON = "Person"
ITEM = "Item"
LIKES = "LIKES"
WEIGHT = "weight"


class Direction(Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"
    BOTH = "both"


@dataclass
class Vertex:
    id: int
    label: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class Edge:
    id: int
    edge_type: str
    source_id: int
    target_id: int
    raw_properties: str = "{}"

    @cached_property
    def properties(self) -> dict[str, Any]:
        """Decoded properties; parsed on first access only."""
        return json.loads(self.raw_properties or "{}")

    @property
    def weight(self) -> float:
        try:
            return float(self.properties[WEIGHT])
        except KeyError:
            raise MissingProperty(f"Edge {self.id} has no {WEIGHT!r} property") from None


@dataclass
class GraphStats:
    persons: int = 0
    items: int = 0
    likes: int = 0
    constraints: list[tuple[str, str]] = field(default_factory=list)
