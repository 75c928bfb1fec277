"""Centralised settings for graphbench.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

The core modules never read ``settings`` for graph sizes: the CLI resolves
defaults here and hands an explicit :class:`GraphConfig` to the core.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("GRAPHBENCH_WORKSPACE", Path.home() / ".graphbench_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "graph.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Dataset shape
    # ------------------------------------------------------------------
    person_count: int = field(
        default_factory=lambda: int(os.environ.get("GRAPHBENCH_PERSON_COUNT", "100000"))
    )
    item_count: int = field(
        default_factory=lambda: int(os.environ.get("GRAPHBENCH_ITEM_COUNT", "2000"))
    )
    likes_count: int = field(
        default_factory=lambda: int(os.environ.get("GRAPHBENCH_LIKES_COUNT", "100"))
    )
    commit_probability: float = field(
        default_factory=lambda: float(
            os.environ.get("GRAPHBENCH_COMMIT_PROBABILITY", "0.01")
        )
    )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    weight_threshold: float = field(
        default_factory=lambda: float(
            os.environ.get("GRAPHBENCH_WEIGHT_THRESHOLD", "-1.0")
        )
    )

    # ------------------------------------------------------------------
    # Harness
    # ------------------------------------------------------------------
    warmup_iterations: int = field(
        default_factory=lambda: int(os.environ.get("GRAPHBENCH_WARMUP_ITERATIONS", "10"))
    )
    measurement_iterations: int = field(
        default_factory=lambda: int(
            os.environ.get("GRAPHBENCH_MEASUREMENT_ITERATIONS", "10")
        )
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("GRAPHBENCH_LOG_LEVEL", "WARNING")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class GraphConfig:
    """Shape of one synthetic dataset plus the knobs of its bulk load.

    ``commit_probability`` and ``max_batch_size`` only bound transaction size;
    neither changes the generated graph.
    """

    person_count: int
    item_count: int
    likes_count: int
    commit_probability: float = 0.01
    max_batch_size: Optional[int] = None
    threshold: float = -1.0
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("person_count", "item_count", "likes_count"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0.0 <= self.commit_probability <= 1.0:
            raise ValueError(
                f"commit_probability must be within [0, 1], got {self.commit_probability}"
            )
        if self.max_batch_size is not None and self.max_batch_size < 1:
            raise ValueError(f"max_batch_size must be >= 1, got {self.max_batch_size}")

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None, **overrides) -> GraphConfig:
        """Build a config from ``settings``; ``None`` overrides are ignored."""
        source = source or settings
        values = {
            "person_count": source.person_count,
            "item_count": source.item_count,
            "likes_count": source.likes_count,
            "commit_probability": source.commit_probability,
            "threshold": source.weight_threshold,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# Module-level singleton - import this everywhere:
#   from graphbench.config import settings
settings = Settings()
