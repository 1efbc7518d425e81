"""NetworkX-backed topology graph."""

from infraflow.infrastructure.graph.engine import TopologyGraph

__all__ = ["TopologyGraph"]
