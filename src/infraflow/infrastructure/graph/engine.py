"""TopologyGraph — lazy-built NetworkX graph over nodes and connections.

Built per call site, never cached across specifications. Connections
whose endpoints are not among the nodes are left out.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

if TYPE_CHECKING:
    from infraflow.domain.spec import Specification

# Parallel edges are kept so duplicate connections count toward degree.
_Graph: TypeAlias = nx.MultiDiGraph


class TopologyGraph:
    """Lazy-loading graph view over node ids and directed (source, target) pairs."""

    def __init__(self, node_ids: Sequence[str], edges: Iterable[tuple[str, str]]) -> None:
        self._node_ids = list(node_ids)
        self._edges = list(edges)
        self._graph: _Graph | None = None

    @classmethod
    def from_spec(cls, spec: Specification) -> TopologyGraph:
        return cls([node.id for node in spec.nodes], (c.pair for c in spec.connections))

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> _Graph:
        """Add every node first so isolated nodes are visible, then edges."""
        g: _Graph = nx.MultiDiGraph()
        g.add_nodes_from(self._node_ids)
        for source, target in self._edges:
            if source in g and target in g:
                g.add_edge(source, target)
        return g

    def degree(self, node_id: str) -> int:
        """Incoming plus outgoing connections; 0 for unknown ids."""
        if node_id not in self.graph:
            return 0
        return int(self.graph.degree(node_id))

    def degrees(self) -> dict[str, int]:
        return {node_id: int(d) for node_id, d in self.graph.degree()}

    def isolated_nodes(self) -> list[str]:
        """Node ids with no connections, in input order."""
        isolated = set(nx.isolates(self.graph))
        return [node_id for node_id in self._node_ids if node_id in isolated]

    def neighbors(self, node_id: str) -> list[str]:
        """Ids adjacent in either direction, sorted."""
        if node_id not in self.graph:
            return []
        adjacent = set(self.graph.successors(node_id)) | set(self.graph.predecessors(node_id))
        return sorted(adjacent)

    def component_count(self) -> int:
        """Number of weakly connected components."""
        if self.graph.number_of_nodes() == 0:
            return 0
        return nx.number_weakly_connected_components(self.graph)
