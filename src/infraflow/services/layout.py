"""Tiered layout — deterministic 2-D positions for a specification.

Nodes are placed in four columns, ``external | dmz | internal | data``.
Within a column the most connected nodes come first (stable on ties),
and every column is centered vertically against the tallest one.

INVARIANT: For nodes in tiers ordered ``external < dmz < internal < data``
the earlier tier always has the smaller x.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeAlias

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from infraflow.config.models import LayoutConfig
from infraflow.domain.catalog import get_category_for_type
from infraflow.domain.spec import Connection, Node, Specification
from infraflow.domain.tiers import resolve_tier
from infraflow.domain.types import TIER_ORDER, FlowType, NodeCategory, NodeType, Tier
from infraflow.infrastructure.graph import TopologyGraph
from infraflow.services.base import BaseService
from infraflow.services.result import ServiceResult

if TYPE_CHECKING:
    from infraflow.config.settings import InfraSettings

_MODEL_CONFIG: dict[str, Any] = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}


class Position(BaseModel):
    model_config = _MODEL_CONFIG

    x: float
    y: float


class PositionedNode(BaseModel):
    """A node with a resolved tier and canvas position."""

    model_config = _MODEL_CONFIG

    id: str
    type: NodeType
    label: str
    description: str | None = None
    tier: Tier
    zone: str | None = None
    category: NodeCategory
    position: Position
    width: float
    height: float


class RenderEdge(BaseModel):
    """One renderable edge per connection."""

    model_config = _MODEL_CONFIG

    id: str
    source: str
    target: str
    flow_type: FlowType | None = None
    label: str | None = None
    animated: bool = True


class FlowGraph(BaseModel):
    """Render-ready output of :meth:`LayoutEngine.spec_to_flow`."""

    model_config = _MODEL_CONFIG

    nodes: list[PositionedNode]
    edges: list[RenderEdge]

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


LayoutOverrides: TypeAlias = LayoutConfig | Mapping[str, float] | None


class LayoutEngine:
    """Assign positions to nodes by tier.

    Args:
        config: Base layout constants; per-call overrides are merged on top.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def _effective(self, overrides: LayoutOverrides) -> LayoutConfig:
        if overrides is None:
            return self._config
        if isinstance(overrides, LayoutConfig):
            return self._config.merged(overrides.model_dump(exclude_unset=True))
        return self._config.merged(dict(overrides))

    def spec_to_flow(self, spec: Specification, config: LayoutOverrides = None) -> FlowGraph:
        """Position every node of *spec* and emit one edge per connection.

        Nodes are returned in specification order.
        """
        cfg = self._effective(config)
        tiers = {node.id: resolve_tier(node.type, node.tier, node.zone) for node in spec.nodes}
        degrees = TopologyGraph.from_spec(spec).degrees()
        positions = _place([(node.id, tiers[node.id]) for node in spec.nodes], degrees, cfg)

        nodes = [
            PositionedNode(
                id=node.id,
                type=node.type,
                label=node.label,
                description=node.description,
                tier=tiers[node.id],
                zone=node.zone,
                category=get_category_for_type(node.type),
                position=positions[node.id],
                width=cfg.node_width,
                height=cfg.node_height,
            )
            for node in spec.nodes
        ]
        edges = [
            RenderEdge(
                id=f"e-{conn.source}-{conn.target}-{index}",
                source=conn.source,
                target=conn.target,
                flow_type=conn.flow_type,
                label=conn.label,
            )
            for index, conn in enumerate(spec.connections)
        ]
        return FlowGraph(nodes=nodes, edges=edges)

    def relayout_nodes(
        self,
        nodes: Sequence[PositionedNode],
        edges: Sequence[RenderEdge],
        config: LayoutOverrides = None,
    ) -> list[PositionedNode]:
        """Recompute positions for already-laid-out nodes.

        Uses each node's current tier. Only ``position`` changes.
        """
        cfg = self._effective(config)
        graph = TopologyGraph([n.id for n in nodes], ((e.source, e.target) for e in edges))
        positions = _place([(n.id, n.tier) for n in nodes], graph.degrees(), cfg)
        return [n.model_copy(update={"position": positions[n.id]}) for n in nodes]

    def flow_to_spec(
        self,
        nodes: Sequence[PositionedNode],
        edges: Sequence[RenderEdge],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Specification:
        """Convert a rendered graph back into a specification.

        Resolved tiers become explicit tiers; positions are dropped.
        """
        return Specification(
            name=name,
            description=description,
            nodes=[
                Node(
                    id=n.id,
                    type=n.type,
                    label=n.label,
                    description=n.description,
                    tier=n.tier,
                    zone=n.zone,
                )
                for n in nodes
            ],
            connections=[
                Connection(source=e.source, target=e.target, flow_type=e.flow_type, label=e.label)
                for e in edges
            ],
        )


def _place(
    entries: Sequence[tuple[str, Tier]],
    degrees: Mapping[str, int],
    config: LayoutConfig,
) -> dict[str, Position]:
    """Compute positions for ``(node_id, tier)`` entries."""
    columns: dict[Tier, list[str]] = {tier: [] for tier in TIER_ORDER}
    for node_id, tier in entries:
        columns[Tier(tier)].append(node_id)
    for members in columns.values():
        # list.sort is stable, so ties keep input order
        members.sort(key=lambda node_id: -degrees.get(node_id, 0))

    tallest = max((len(m) for m in columns.values()), default=0)
    gap = config.vertical_gap
    center_y = config.start_y + (tallest - 1) * gap / 2 if tallest else config.start_y

    positions: dict[str, Position] = {}
    for tier_index, tier in enumerate(TIER_ORDER):
        members = columns[tier]
        x = config.start_x + tier_index * config.column_gap
        top = center_y - (len(members) - 1) * gap / 2
        for row, node_id in enumerate(members):
            positions[node_id] = Position(x=x, y=top + row * gap)
    return positions


def spec_to_flow(spec: Specification, config: LayoutOverrides = None) -> FlowGraph:
    """Lay out *spec* with default constants plus *config* overrides."""
    return LayoutEngine().spec_to_flow(spec, config)


def relayout_nodes(
    nodes: Sequence[PositionedNode],
    edges: Sequence[RenderEdge],
    config: LayoutOverrides = None,
) -> list[PositionedNode]:
    return LayoutEngine().relayout_nodes(nodes, edges, config)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------


class LayoutService(BaseService):
    """Layout operations for the CLI."""

    def __init__(self, settings: InfraSettings | None = None) -> None:
        super().__init__(settings)
        self._engine = LayoutEngine(self._settings.layout)

    @property
    def engine(self) -> LayoutEngine:
        return self._engine

    def layout(self, spec: Specification, overrides: LayoutOverrides = None) -> ServiceResult:
        """Position *spec* for rendering."""
        flow = self._engine.spec_to_flow(spec, overrides)
        per_tier = Counter(n.tier.value for n in flow.nodes)
        warnings = [
            f"Connection {c.source} -> {c.target} references a missing node"
            for c in spec.dangling_connections()
        ]
        return ServiceResult(
            ok=True,
            op="layout",
            data=flow.to_json_dict(),
            warnings=warnings,
            meta={"tiers": {tier.value: per_tier.get(tier.value, 0) for tier in TIER_ORDER}},
        )
