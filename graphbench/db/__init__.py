"""Graph store package.

Public re-exports so callers can write::

    from graphbench.db import get_connection, init_db, transaction
"""

from graphbench.db.connection import get_connection, read_transaction, transaction
from graphbench.db.migrations import init_db

__all__ = ["get_connection", "init_db", "read_transaction", "transaction"]
