"""graphbench: bulk-load a Person -LIKES-> Item graph and time traversals over it.

    from graphbench import GraphConfig, open_graph
    from graphbench.traversal import measure_recommendation_traversal

    with open_graph(GraphConfig(person_count=1000, item_count=50, likes_count=10)) as graph:
        steps = measure_recommendation_traversal(graph)
"""

from graphbench.config import GraphConfig, settings
from graphbench.lifecycle import BenchmarkGraph, close_graph, open_graph

__all__ = ["BenchmarkGraph", "GraphConfig", "close_graph", "open_graph", "settings"]

__version__ = "0.1.0"
