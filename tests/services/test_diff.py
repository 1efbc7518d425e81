"""Tests for the diff application engine and DiffService."""

from __future__ import annotations

from typing import Any

import pytest

from infraflow.config.settings import InfraSettings
from infraflow.domain.ids import SequentialIdGenerator
from infraflow.domain.operations import (
    AddOperation,
    ConnectOperation,
    OperationErrorCode,
    RemoveOperation,
    ReplaceOperation,
)
from infraflow.domain.spec import Connection, Node, Specification
from infraflow.domain.types import FlowType, NodeType, Tier
from infraflow.services.diff import DiffEngine, DiffService, apply_operations
from tests.conftest import pairs


def _replace(target: str, new_type: str, **data: Any) -> dict[str, Any]:
    return {"type": "replace", "target": target, "data": {"newType": new_type, **data}}


def _connect(source: str, target: str, **data: Any) -> dict[str, Any]:
    return {"type": "connect", "data": {"source": source, "target": target, **data}}


class TestBatchSemantics:
    def test_empty_batch_is_identity(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [])
        assert result.success
        assert result.applied_ops == 0
        assert result.new_spec == base_spec
        assert result.node_id_mappings == {}

    def test_input_never_mutated(self, engine: DiffEngine, base_spec: Specification) -> None:
        before = base_spec.model_dump()
        engine.apply_operations(
            base_spec,
            [
                _replace("firewall-1", "waf"),
                {"type": "remove", "target": "db-server-1"},
                {"type": "modify", "target": "web-server-1", "data": {"label": "Edge"}},
            ],
        )
        assert base_spec.model_dump() == before

    def test_failure_does_not_abort(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec,
            [
                {"type": "remove", "target": "ghost"},
                {"type": "remove", "target": "db-server-1"},
            ],
        )
        assert not result.success
        assert result.applied_ops == 1
        assert result.errors == ["Node not found: ghost"]
        assert base_spec.get_node("db-server-1") is not None
        assert result.new_spec.get_node("db-server-1") is None

    def test_later_ops_see_earlier_state(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec,
            [
                {"type": "remove", "target": "db-server-1"},
                {"type": "modify", "target": "db-server-1", "data": {"label": "x"}},
            ],
        )
        assert result.applied_ops == 1
        assert result.failures[0].index == 1
        assert result.failures[0].code is OperationErrorCode.NODE_NOT_FOUND

    def test_typed_operations_accepted(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [RemoveOperation(target="firewall-1")])
        assert result.success
        assert len(result.new_spec.nodes) == 2

    def test_malformed_raw_operation(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec,
            [{"type": "explode", "target": "x"}, {"type": "remove", "target": "firewall-1"}],
        )
        assert result.applied_ops == 1
        failure = result.failures[0]
        assert failure.code is OperationErrorCode.INVALID_OPERATION
        assert failure.op_type == "explode"
        assert result.errors[0].startswith("Invalid operation at index 0")

    @pytest.mark.parametrize("raw", [None, "remove", 42, ["remove", "firewall-1"]])
    def test_non_object_entry_is_invalid_operation(
        self, engine: DiffEngine, base_spec: Specification, raw: Any
    ) -> None:
        result = engine.apply_operations(base_spec, [raw, {"type": "remove", "target": "firewall-1"}])
        assert not result.success
        assert result.applied_ops == 1
        failure = result.failures[0]
        assert failure.index == 0
        assert failure.code is OperationErrorCode.INVALID_OPERATION
        assert failure.op_type == "unknown"
        assert result.errors[0].startswith("Invalid operation at index 0")

    def test_module_function(self, base_spec: Specification) -> None:
        result = apply_operations(
            base_spec, [_replace("firewall-1", "waf")], id_generator=SequentialIdGenerator()
        )
        assert result.node_id_mappings == {"firewall-1": "waf-1"}


class TestNodeResolution:
    def test_exact_id(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "remove", "target": "web-server-1"}])
        assert [n.id for n in result.new_spec.nodes] == ["firewall-1", "db-server-1"]

    def test_by_type(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "remove", "target": "db-server"}])
        assert result.new_spec.get_node("db-server-1") is None

    def test_by_id_substring(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "remove", "target": "web"}])
        assert result.new_spec.get_node("web-server-1") is None

    def test_id_beats_type(self, engine: DiffEngine) -> None:
        spec = Specification(
            nodes=[
                Node(id="cache-a", type=NodeType.CACHE, label="A"),
                Node(id="cache", type=NodeType.DNS, label="tricky"),
            ]
        )
        result = engine.apply_operations(spec, [{"type": "remove", "target": "cache"}])
        assert [n.id for n in result.new_spec.nodes] == ["cache-a"]

    def test_empty_target_not_resolved(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "remove", "target": ""}])
        assert not result.success
        assert len(result.new_spec.nodes) == 3


class TestReplace:
    def test_scenario_firewall_to_waf(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_replace("firewall-1", "waf")])
        assert result.success
        new_id = result.node_id_mappings["firewall-1"]
        assert new_id == "waf-100"
        spec = result.new_spec
        assert spec.get_node("firewall-1") is None
        new_node = spec.get_node(new_id)
        assert new_node is not None and new_node.type is NodeType.WAF
        assert spec.has_connection(new_id, "web-server-1")

    def test_old_id_gone_everywhere(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_replace("web-server-1", "app-server")])
        spec = result.new_spec
        assert all(n.id != "web-server-1" for n in spec.nodes)
        assert all(not c.touches("web-server-1") for c in spec.connections)
        assert len(spec.connections) == len(base_spec.connections)
        new_id = result.node_id_mappings["web-server-1"]
        assert pairs(spec) == [("firewall-1", new_id), (new_id, "db-server-1")]

    def test_keeps_position_and_flow(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_replace("web-server-1", "app-server")])
        assert [n.type for n in result.new_spec.nodes] == [
            NodeType.FIREWALL,
            NodeType.APP_SERVER,
            NodeType.DB_SERVER,
        ]
        assert all(c.flow_type is FlowType.REQUEST for c in result.new_spec.connections)

    def test_label_and_tier(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec, [_replace("firewall-1", "waf", label="Edge WAF", description="L7")]
        )
        node = result.new_spec.nodes[0]
        assert node.label == "Edge WAF"
        assert node.description == "L7"
        assert node.tier is Tier.DMZ

    def test_default_label_from_catalog(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_replace("firewall-1", "waf")])
        assert result.new_spec.nodes[0].label == "WAF"

    def test_drop_connections(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec, [_replace("web-server-1", "app-server", preserveConnections=False)]
        )
        assert result.new_spec.connections == []

    def test_unknown_type(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_replace("firewall-1", "teleporter")])
        assert result.failures[0].code is OperationErrorCode.INVALID_NODE_TYPE
        assert result.new_spec == base_spec

    def test_unresolved_target(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_replace("ghost", "waf")])
        assert result.errors == ["Node not found: ghost"]
        assert result.node_id_mappings == {}

    def test_generated_id_collision_retried(self, base_spec: Specification) -> None:
        spec = base_spec.model_copy(
            update={"nodes": [*base_spec.nodes, Node(id="waf-1", type="waf", label="W")]}
        )
        result = DiffEngine(SequentialIdGenerator()).apply_operations(
            spec, [_replace("firewall-1", "waf")]
        )
        assert result.node_id_mappings == {"firewall-1": "waf-2"}

    def test_mappings_accumulate(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec,
            [_replace("firewall-1", "waf"), _replace("db-server-1", "cache")],
        )
        assert result.node_id_mappings == {"firewall-1": "waf-100", "db-server-1": "cache-100"}


class TestAdd:
    def test_scenario_between_nodes(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec,
            [{"type": "add", "target": "waf", "data": {"betweenNodes": ["firewall-1", "web-server-1"]}}],
        )
        spec = result.new_spec
        assert result.success
        assert not spec.has_connection("firewall-1", "web-server-1")
        assert spec.has_connection("firewall-1", "waf-100")
        assert spec.has_connection("waf-100", "web-server-1")

    def test_between_reuses_flow_type(self, engine: DiffEngine) -> None:
        spec = Specification(
            nodes=[
                Node(id="a", type="router", label="A"),
                Node(id="b", type="router", label="B"),
            ],
            connections=[Connection(source="a", target="b", flow_type=FlowType.WAN_LINK)],
        )
        op = {"type": "add", "target": "pe-router", "data": {"betweenNodes": ["a", "b"]}}
        result = engine.apply_operations(spec, [op])
        assert {c.flow_type for c in result.new_spec.connections} == {FlowType.WAN_LINK}

    def test_tier_defaults_to_type(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "add", "target": "cache"}])
        node = result.new_spec.nodes[-1]
        assert node.id == "cache-100"
        assert node.tier is Tier.DATA
        assert node.label == "Cache"
        assert result.new_spec.connections == base_spec.connections

    def test_explicit_tier(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = AddOperation(target="cache", data={"tier": "internal", "label": "Session cache"})
        node = engine.apply_operations(base_spec, [op]).new_spec.nodes[-1]
        assert node.tier is Tier.INTERNAL
        assert node.label == "Session cache"

    def test_after_node_inherits_flow(self, engine: DiffEngine) -> None:
        spec = Specification(
            nodes=[
                Node(id="vpn", type="vpn-gateway", label="VPN"),
                Node(id="user", type="user", label="U"),
            ],
            connections=[Connection(source="user", target="vpn", flow_type=FlowType.ENCRYPTED)],
        )
        result = engine.apply_operations(
            spec, [{"type": "add", "target": "firewall", "data": {"afterNode": "vpn"}}]
        )
        added = [c for c in result.new_spec.connections if c.target == "firewall-100"]
        assert [(c.source, c.flow_type) for c in added] == [("vpn", FlowType.ENCRYPTED)]

    def test_after_node_default_flow(self, engine: DiffEngine) -> None:
        spec = Specification(nodes=[Node(id="a", type="user", label="A")])
        result = engine.apply_operations(
            spec, [{"type": "add", "target": "dns", "data": {"afterNode": "a"}}]
        )
        assert result.new_spec.connections == [
            Connection(source="a", target="dns-100", flow_type=FlowType.REQUEST)
        ]

    def test_before_node(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec, [{"type": "add", "target": "cache", "data": {"beforeNode": "db-server-1"}}]
        )
        assert result.new_spec.has_connection("cache-100", "db-server-1")

    def test_hooks_combine(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = {
            "type": "add",
            "target": "load-balancer",
            "data": {"afterNode": "firewall-1", "beforeNode": "web-server-1"},
        }
        spec = engine.apply_operations(base_spec, [op]).new_spec
        assert spec.has_connection("firewall-1", "load-balancer-100")
        assert spec.has_connection("load-balancer-100", "web-server-1")
        # Direct edge survives; only betweenNodes removes it.
        assert spec.has_connection("firewall-1", "web-server-1")

    def test_unresolved_hook_skipped(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec, [{"type": "add", "target": "waf", "data": {"afterNode": "ghost"}}]
        )
        assert result.success
        assert result.new_spec.get_node("waf-100") is not None
        assert result.new_spec.dangling_connections() == []
        assert len(result.new_spec.connections) == 2

    def test_constant_id_generator_does_not_hang(self, base_spec: Specification) -> None:
        engine = DiffEngine(lambda t: f"{t}-test1234")
        add = {"type": "add", "target": "waf"}
        result = engine.apply_operations(base_spec, [add, add])
        assert result.success
        assert [n.id for n in result.new_spec.nodes[-2:]] == ["waf-test1234", "waf-test1234-2"]

    def test_unknown_type(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "add", "target": "teleporter"}])
        assert result.errors == ["Unknown node type: teleporter"]
        assert result.new_spec == base_spec


class TestRemove:
    def test_cascades_connections(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [{"type": "remove", "target": "web-server-1"}])
        assert all(not c.touches("web-server-1") for c in result.new_spec.connections)
        assert result.new_spec.connections == []


class TestModify:
    def test_patches_only_given_fields(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = {"type": "modify", "target": "web-server-1", "data": {"description": "nginx"}}
        node = engine.apply_operations(base_spec, [op]).new_spec.get_node("web-server-1")
        assert node is not None
        assert node.description == "nginx"
        assert node.label == "Web Server"
        assert node.tier is Tier.INTERNAL

    def test_empty_values_keep_existing_fields(
        self, engine: DiffEngine, base_spec: Specification
    ) -> None:
        op = {"type": "modify", "target": "web-server-1", "data": {"label": "", "description": "nginx"}}
        node = engine.apply_operations(base_spec, [op]).new_spec.get_node("web-server-1")
        assert node is not None
        assert node.label == "Web Server"
        assert node.description == "nginx"

    def test_tier_change_keeps_connections(
        self, engine: DiffEngine, base_spec: Specification
    ) -> None:
        op = {"type": "modify", "target": "firewall-1", "data": {"tier": "external"}}
        result = engine.apply_operations(base_spec, [op])
        assert result.new_spec.nodes[0].tier is Tier.EXTERNAL
        assert result.new_spec.connections == base_spec.connections


class TestConnect:
    def test_adds_with_default_flow(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_connect("firewall-1", "db-server-1")])
        assert result.new_spec.connections[-1] == Connection(
            source="firewall-1", target="db-server-1", flow_type=FlowType.REQUEST
        )

    def test_idempotent(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = _connect("firewall-1", "db-server-1", flowType="sync")
        result = engine.apply_operations(base_spec, [op, op])
        assert result.success
        assert result.applied_ops == 2
        assert pairs(result.new_spec).count(("firewall-1", "db-server-1")) == 1

    def test_existing_pair_any_flow_type(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(
            base_spec, [_connect("firewall-1", "web-server-1", flowType="blocked")]
        )
        assert result.success
        assert result.new_spec.connections == base_spec.connections

    def test_source_not_found(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_connect("ghost", "db-server-1")])
        assert result.errors == ["Source node not found: ghost"]
        assert result.failures[0].code is OperationErrorCode.SOURCE_NOT_FOUND

    def test_target_not_found(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = engine.apply_operations(base_spec, [_connect("firewall-1", "ghost")])
        assert result.errors == ["Target node not found: ghost"]
        assert result.failures[0].code is OperationErrorCode.TARGET_NOT_FOUND

    def test_typed_with_label(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = ConnectOperation(data={"source": "web-server-1", "target": "firewall-1", "label": "reply"})
        conn = engine.apply_operations(base_spec, [op]).new_spec.connections[-1]
        assert conn.label == "reply"


class TestDisconnect:
    def test_removes_pair(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = {"type": "disconnect", "data": {"source": "firewall-1", "target": "web-server-1"}}
        result = engine.apply_operations(base_spec, [op])
        assert pairs(result.new_spec) == [("web-server-1", "db-server-1")]

    def test_removes_every_matching_connection(self, engine: DiffEngine) -> None:
        spec = Specification(
            nodes=[Node(id="a", type="user", label="A"), Node(id="b", type="waf", label="B")],
            connections=[
                Connection(source="a", target="b", flow_type=FlowType.REQUEST),
                Connection(source="a", target="b", flow_type=FlowType.SYNC),
                Connection(source="b", target="a"),
            ],
        )
        op = {"type": "disconnect", "data": {"source": "a", "target": "b"}}
        assert pairs(engine.apply_operations(spec, [op]).new_spec) == [("b", "a")]

    def test_scenario_stale_connection(self, engine: DiffEngine) -> None:
        spec = Specification(connections=[Connection(source="firewall-1", target="web-server-1")])
        op = {"type": "disconnect", "data": {"source": "firewall-1", "target": "web-server-1"}}
        result = engine.apply_operations(spec, [op])
        assert result.success
        assert result.new_spec.connections == []

    def test_resolves_by_type(self, engine: DiffEngine, base_spec: Specification) -> None:
        op = {"type": "disconnect", "data": {"source": "firewall", "target": "web-server"}}
        result = engine.apply_operations(base_spec, [op])
        assert not result.new_spec.has_connection("firewall-1", "web-server-1")


class TestEngineFromConfig:
    def test_sequential_strategy(self, base_spec: Specification) -> None:
        settings = InfraSettings(diff={"id_strategy": "sequential"})
        engine = DiffEngine.from_config(settings.diff)
        result = engine.apply_operations(base_spec, [{"type": "add", "target": "waf"}])
        assert result.new_spec.nodes[-1].id == "waf-1"

    @pytest.mark.parametrize("length", [4, 12])
    def test_random_suffix_length(self, base_spec: Specification, length: int) -> None:
        settings = InfraSettings(diff={"id_suffix_length": length})
        engine = DiffEngine.from_config(settings.diff)
        result = engine.apply_operations(base_spec, [{"type": "add", "target": "waf"}])
        assert len(result.new_spec.nodes[-1].id) == len("waf-") + length


class TestDiffService:
    def test_success(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = DiffService(InfraSettings(), engine=engine).apply(
            base_spec, [_replace("firewall-1", "waf")]
        )
        assert result.ok
        assert result.op == "apply_operations"
        assert result.data["nodeIdMappings"] == {"firewall-1": "waf-100"}
        assert result.meta == {"total": 1, "applied": 1}

    def test_partial_failure(self, engine: DiffEngine, base_spec: Specification) -> None:
        result = DiffService(InfraSettings(), engine=engine).apply(
            base_spec,
            [{"type": "remove", "target": "ghost"}, ReplaceOperation(target="firewall-1", data={"new_type": "waf"})],
        )
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "OPERATIONS_FAILED"
        assert result.error.detail["failures"][0]["code"] == "NODE_NOT_FOUND"
        assert result.data["appliedOps"] == 1
        assert len(result.data["newSpec"]["nodes"]) == 3
