"""Diff application — apply an ordered batch of operations to a specification.

INVARIANT: The input specification is never mutated. Operations run
strictly in order against the state produced so far; a failed operation
is recorded and skipped, never raised, and never rolled back.

INVARIANT: The engine never introduces a dangling connection. Dangling
connections already present in the input are carried through untouched
(and can be removed with ``disconnect``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, assert_never

from pydantic import BaseModel, ValidationError

from infraflow.domain.catalog import get_label_for_type, get_tier_for_type, is_known_type
from infraflow.domain.ids import (
    IdGenerator,
    SequentialIdGenerator,
    make_random_generator,
    random_node_id,
    unique_id,
)
from infraflow.domain.operations import (
    AddOperation,
    ApplyResult,
    ConnectOperation,
    DisconnectOperation,
    ModifyOperation,
    Operation,
    OperationError,
    OperationErrorCode,
    OperationFailure,
    RemoveOperation,
    ReplaceOperation,
    parse_operation,
)
from infraflow.domain.spec import Connection, Node, Specification
from infraflow.domain.types import FlowType, NodeType
from infraflow.services.base import BaseService
from infraflow.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from infraflow.config.models import DiffConfig
    from infraflow.config.settings import InfraSettings

logger = logging.getLogger(__name__)


@dataclass
class _WorkingSpec:
    """Mutable scratch copy of the node and connection lists.

    The lists are fresh; the Node and Connection values in them are the
    caller's frozen instances and are replaced, never edited.
    """

    nodes: list[Node]
    connections: list[Connection]
    node_id_mappings: dict[str, str] = field(default_factory=dict)

    def ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def find(self, target: str) -> Node | None:
        """Resolve by exact id, then exact type, then id substring."""
        if not target:
            return None
        for node in self.nodes:
            if node.id == target:
                return node
        for node in self.nodes:
            if node.type == target:
                return node
        for node in self.nodes:
            if target in node.id:
                return node
        return None

    def resolve(self, target: str) -> Node:
        node = self.find(target)
        if node is None:
            raise OperationError.node_not_found(target)
        return node

    def index_of(self, node_id: str) -> int:
        return next(i for i, node in enumerate(self.nodes) if node.id == node_id)

    def has_pair(self, source: str, target: str) -> bool:
        return any(c.source == source and c.target == target for c in self.connections)

    def add_connection(self, source: str, target: str, flow_type: FlowType, label: str | None = None) -> None:
        if not self.has_pair(source, target):
            self.connections.append(
                Connection(source=source, target=target, flow_type=flow_type, label=label)
            )

    def flow_touching(self, node_id: str) -> FlowType | None:
        """Flow type of the first connection touching *node_id* that has one."""
        for conn in self.connections:
            if conn.touches(node_id) and conn.flow_type is not None:
                return conn.flow_type
        return None


class DiffEngine:
    """Apply operation batches to specifications.

    Args:
        id_generator: Mints ids for nodes created by ``add`` and
            ``replace``. Called again on collision with an existing id.
    """

    def __init__(self, id_generator: IdGenerator | None = None) -> None:
        self._generate: IdGenerator = id_generator or random_node_id

    @classmethod
    def from_config(cls, config: DiffConfig) -> DiffEngine:
        if config.id_strategy == "sequential":
            return cls(SequentialIdGenerator())
        return cls(make_random_generator(config.id_suffix_length))

    def apply_operations(
        self,
        spec: Specification,
        operations: Iterable[Operation | Mapping[str, Any]],
    ) -> ApplyResult:
        """Apply *operations* in order and return the new specification.

        Raw entries are coerced into typed operations first; an entry
        that is not a well-formed operation (including non-objects such
        as ``None`` or a bare string) is recorded as an
        ``INVALID_OPERATION`` failure.
        """
        state = _WorkingSpec(nodes=list(spec.nodes), connections=list(spec.connections))
        applied = 0
        errors: list[str] = []
        failures: list[OperationFailure] = []

        for index, raw in enumerate(operations):
            op_type = _raw_type(raw)
            try:
                op = raw if isinstance(raw, BaseModel) else parse_operation(raw)
                self._apply(op, state)
            except ValidationError as exc:
                message = f"Invalid operation at index {index}: {_first_error(exc)}"
                failure = OperationFailure(
                    index=index,
                    op_type=op_type,
                    code=OperationErrorCode.INVALID_OPERATION,
                    message=message,
                )
            except OperationError as exc:
                failure = OperationFailure(
                    index=index, op_type=op_type, code=exc.code, message=exc.message
                )
            else:
                applied += 1
                continue
            logger.debug("Operation %d (%s) failed: %s", index, op_type, failure.message)
            errors.append(failure.message)
            failures.append(failure)

        new_spec = spec.model_copy(update={"nodes": state.nodes, "connections": state.connections})
        return ApplyResult(
            success=not errors,
            new_spec=new_spec,
            applied_ops=applied,
            errors=errors,
            node_id_mappings=state.node_id_mappings,
            failures=failures,
        )

    def _apply(self, op: Operation, state: _WorkingSpec) -> None:
        match op:
            case ReplaceOperation():
                self._replace(op, state)
            case AddOperation():
                self._add(op, state)
            case RemoveOperation():
                self._remove(op, state)
            case ModifyOperation():
                self._modify(op, state)
            case ConnectOperation():
                self._connect(op, state)
            case DisconnectOperation():
                self._disconnect(op, state)
            case _:
                assert_never(op)

    def _new_id(self, node_type: str, state: _WorkingSpec) -> str:
        return unique_id(self._generate, node_type, state.ids())

    # --- Variants ---

    def _replace(self, op: ReplaceOperation, state: _WorkingSpec) -> None:
        old = state.resolve(op.target)
        data = op.data
        if not is_known_type(data.new_type):
            raise OperationError.invalid_node_type(data.new_type)

        new_type = NodeType(data.new_type)
        new_id = self._new_id(new_type.value, state)
        new_node = Node(
            id=new_id,
            type=new_type,
            label=data.label or get_label_for_type(new_type),
            description=data.description or old.description,
            tier=old.tier or get_tier_for_type(new_type),
            zone=old.zone,
        )
        state.nodes[state.index_of(old.id)] = new_node

        if data.preserve_connections:
            state.connections = [_rewire(c, old.id, new_id) for c in state.connections]
        else:
            state.connections = [c for c in state.connections if not c.touches(old.id)]

        state.node_id_mappings[old.id] = new_id
        logger.debug("Replaced %s with %s", old.id, new_id)

    def _add(self, op: AddOperation, state: _WorkingSpec) -> None:
        if not is_known_type(op.target):
            raise OperationError.invalid_node_type(op.target)

        node_type = NodeType(op.target)
        data = op.data
        new_id = self._new_id(node_type.value, state)
        state.nodes.append(
            Node(
                id=new_id,
                type=node_type,
                label=data.label or get_label_for_type(node_type),
                description=data.description,
                tier=data.tier or get_tier_for_type(node_type),
            )
        )

        if data.after_node:
            anchor = state.find(data.after_node)
            if anchor is None:
                logger.debug("add %s: afterNode %s not found, skipped", new_id, data.after_node)
            else:
                flow = state.flow_touching(anchor.id) or FlowType.REQUEST
                state.add_connection(anchor.id, new_id, flow)

        if data.before_node:
            anchor = state.find(data.before_node)
            if anchor is None:
                logger.debug("add %s: beforeNode %s not found, skipped", new_id, data.before_node)
            else:
                state.add_connection(new_id, anchor.id, FlowType.REQUEST)

        if data.between_nodes:
            first, second = (state.find(ref) for ref in data.between_nodes)
            if first is None or second is None:
                logger.debug("add %s: betweenNodes %s not resolved, skipped", new_id, data.between_nodes)
            else:
                removed = [c for c in state.connections if c.pair == (first.id, second.id)]
                state.connections = [c for c in state.connections if c.pair != (first.id, second.id)]
                flow = next((c.flow_type for c in removed if c.flow_type), FlowType.REQUEST)
                state.add_connection(first.id, new_id, flow)
                state.add_connection(new_id, second.id, flow)

    def _remove(self, op: RemoveOperation, state: _WorkingSpec) -> None:
        node = state.resolve(op.target)
        state.nodes = [n for n in state.nodes if n.id != node.id]
        state.connections = [c for c in state.connections if not c.touches(node.id)]

    def _modify(self, op: ModifyOperation, state: _WorkingSpec) -> None:
        node = state.resolve(op.target)
        updates = {key: value for key, value in op.data.model_dump().items() if value}
        if updates:
            state.nodes[state.index_of(node.id)] = node.model_copy(update=updates)

    def _connect(self, op: ConnectOperation, state: _WorkingSpec) -> None:
        data = op.data
        source = state.find(data.source)
        if source is None:
            raise OperationError.source_not_found(data.source)
        target = state.find(data.target)
        if target is None:
            raise OperationError.target_not_found(data.target)
        if state.has_pair(source.id, target.id):
            logger.debug("connect %s -> %s already present", source.id, target.id)
            return
        state.add_connection(source.id, target.id, data.flow_type or FlowType.REQUEST, data.label)

    def _disconnect(self, op: DisconnectOperation, state: _WorkingSpec) -> None:
        data = op.data
        pairs = {(data.source, data.target)}
        source, target = state.find(data.source), state.find(data.target)
        if source is not None and target is not None:
            pairs.add((source.id, target.id))
        state.connections = [c for c in state.connections if c.pair not in pairs]


def _rewire(conn: Connection, old_id: str, new_id: str) -> Connection:
    if not conn.touches(old_id):
        return conn
    return conn.model_copy(
        update={
            "source": new_id if conn.source == old_id else conn.source,
            "target": new_id if conn.target == old_id else conn.target,
        }
    )


def _raw_type(raw: object) -> str:
    if isinstance(raw, Mapping):
        value = raw.get("type")
        return value if isinstance(value, str) else "unknown"
    return str(getattr(raw, "type", "unknown"))


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err["loc"])
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def apply_operations(
    spec: Specification,
    operations: Iterable[Operation | Mapping[str, Any]],
    *,
    id_generator: IdGenerator | None = None,
) -> ApplyResult:
    """Apply *operations* with a one-off engine."""
    return DiffEngine(id_generator).apply_operations(spec, operations)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------


class DiffService(BaseService):
    """Operation batches for the CLI."""

    def __init__(
        self,
        settings: InfraSettings | None = None,
        *,
        engine: DiffEngine | None = None,
    ) -> None:
        super().__init__(settings)
        self._engine = engine or DiffEngine.from_config(self._settings.diff)

    def apply(
        self,
        spec: Specification,
        operations: Iterable[Operation | Mapping[str, Any]],
    ) -> ServiceResult:
        """Apply a batch; partial results are returned even when some fail."""
        op = "apply_operations"
        ops = list(operations)
        result = self._engine.apply_operations(spec, ops)
        data = result.to_json_dict()
        meta = {"total": len(ops), "applied": result.applied_ops}

        if not result.success:
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                meta=meta,
                error=_batch_error(result),
            )
        return ServiceResult(ok=True, op=op, data=data, meta=meta)


def _batch_error(result: ApplyResult) -> ServiceError:
    failed = len(result.failures)
    return ServiceError(
        code="OPERATIONS_FAILED",
        message=f"{failed} operation(s) failed",
        detail={"failures": [f.model_dump(mode="json", by_alias=True) for f in result.failures]},
    )
