"""Specification models — the graph of typed components and connections.

Models map 1:1 to the Specification JSON used for persistence and for
the reasoning-service payload. JSON keys are camelCase (``flowType``);
Python attributes are snake_case. Both spellings are accepted on input.

INVARIANT: Node ids are unique within a specification.
Dangling connections (endpoints not in the node list) are tolerated on
input and reported by :func:`validate_specification`; the diff engine
never creates new ones.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from infraflow.domain.types import FlowType, NodeType, Tier

_MODEL_CONFIG: dict[str, Any] = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}


class Node(BaseModel):
    """One infrastructure component."""

    model_config = _MODEL_CONFIG

    id: str
    type: NodeType
    label: str
    description: str | None = None
    tier: Tier | None = None
    zone: str | None = None


class Connection(BaseModel):
    """Directed edge between two nodes, identified by its (source, target) pair."""

    model_config = _MODEL_CONFIG

    source: str
    target: str
    flow_type: FlowType | None = None
    label: str | None = None

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


class Specification(BaseModel):
    """Root value: ordered nodes plus connections and optional metadata."""

    model_config = _MODEL_CONFIG

    name: str | None = None
    description: str | None = None
    nodes: list[Node] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_node_ids(self) -> Specification:
        counts = Counter(node.id for node in self.nodes)
        duplicates = sorted(node_id for node_id, n in counts.items() if n > 1)
        if duplicates:
            msg = f"Duplicate node ids: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def get_node(self, node_id: str) -> Node | None:
        return next((node for node in self.nodes if node.id == node_id), None)

    def has_connection(self, source: str, target: str) -> bool:
        """True if any connection joins *source* to *target*, regardless of flow type."""
        return any(c.source == source and c.target == target for c in self.connections)

    def dangling_connections(self) -> list[Connection]:
        """Connections whose source or target is not a node in this spec."""
        ids = self.node_ids()
        return [c for c in self.connections if c.source not in ids or c.target not in ids]

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase Specification JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Validation report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpecIssue:
    """A non-fatal structural finding about a specification."""

    code: str  # DANGLING_CONNECTION, DUPLICATE_CONNECTION, SELF_LOOP, ISOLATED_NODE
    message: str
    ref: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message, "ref": self.ref}


def validate_specification(spec: Specification) -> list[SpecIssue]:
    """Report structural issues without rejecting the specification.

    Issues are ordered: dangling connections, duplicate pairs,
    self-loops, then isolated nodes (nodes with no connection at all).
    """
    issues: list[SpecIssue] = []
    ids = spec.node_ids()

    for conn in spec.connections:
        missing = [end for end in (conn.source, conn.target) if end not in ids]
        if missing:
            issues.append(
                SpecIssue(
                    code="DANGLING_CONNECTION",
                    message=f"Connection {conn.source} -> {conn.target} references "
                    f"missing node(s): {', '.join(missing)}",
                    ref=f"{conn.source}->{conn.target}",
                )
            )

    pair_counts = Counter(c.pair for c in spec.connections)
    for (source, target), count in pair_counts.items():
        if count > 1:
            issues.append(
                SpecIssue(
                    code="DUPLICATE_CONNECTION",
                    message=f"{count} connections between {source} and {target}",
                    ref=f"{source}->{target}",
                )
            )

    for conn in spec.connections:
        if conn.source == conn.target:
            issues.append(
                SpecIssue(
                    code="SELF_LOOP",
                    message=f"Node {conn.source} connects to itself",
                    ref=f"{conn.source}->{conn.target}",
                )
            )

    touched = {end for c in spec.connections for end in c.pair}
    for node in spec.nodes:
        if node.id not in touched:
            issues.append(
                SpecIssue(
                    code="ISOLATED_NODE",
                    message=f"Node {node.id} has no connections",
                    ref=node.id,
                )
            )
    return issues
