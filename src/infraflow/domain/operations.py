"""Operation vocabulary: six edit instructions plus the batch result.

Operations arrive as untrusted JSON from a reasoning service or are
synthesized by direct canvas actions. They are a discriminated union on
``type``; each variant carries a typed ``data`` payload.

Structural validation happens here (pydantic); semantic resolution
against a specification happens in the diff engine.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from infraflow.domain.spec import Specification
from infraflow.domain.types import FlowType, Tier

_MODEL_CONFIG: dict[str, Any] = {
    "frozen": True,
    "populate_by_name": True,
    "alias_generator": to_camel,
}


# --- Payloads ---


class ReplaceData(BaseModel):
    model_config = _MODEL_CONFIG

    new_type: str
    label: str | None = None
    description: str | None = None
    preserve_connections: bool = True


class AddData(BaseModel):
    model_config = _MODEL_CONFIG

    label: str | None = None
    description: str | None = None
    tier: Tier | None = None
    after_node: str | None = None
    before_node: str | None = None
    between_nodes: tuple[str, str] | None = None


class ModifyData(BaseModel):
    model_config = _MODEL_CONFIG

    label: str | None = None
    description: str | None = None
    tier: Tier | None = None


class ConnectData(BaseModel):
    model_config = _MODEL_CONFIG

    source: str
    target: str
    flow_type: FlowType | None = None
    label: str | None = None


class DisconnectData(BaseModel):
    model_config = _MODEL_CONFIG

    source: str
    target: str


# --- Variants ---


class ReplaceOperation(BaseModel):
    """Swap a node for a new node of another type."""

    model_config = _MODEL_CONFIG

    type: Literal["replace"] = "replace"
    target: str
    data: ReplaceData


class AddOperation(BaseModel):
    """Add a node; ``target`` is the component type to create."""

    model_config = _MODEL_CONFIG

    type: Literal["add"] = "add"
    target: str
    data: AddData = Field(default_factory=AddData)


class RemoveOperation(BaseModel):
    """Delete a node and every connection touching it."""

    model_config = _MODEL_CONFIG

    type: Literal["remove"] = "remove"
    target: str


class ModifyOperation(BaseModel):
    """Patch label, description or tier of a node."""

    model_config = _MODEL_CONFIG

    type: Literal["modify"] = "modify"
    target: str
    data: ModifyData = Field(default_factory=ModifyData)


class ConnectOperation(BaseModel):
    """Add a connection unless the (source, target) pair already exists."""

    model_config = _MODEL_CONFIG

    type: Literal["connect"] = "connect"
    target: str | None = None
    data: ConnectData


class DisconnectOperation(BaseModel):
    """Remove connections matching (source, target)."""

    model_config = _MODEL_CONFIG

    type: Literal["disconnect"] = "disconnect"
    target: str | None = None
    data: DisconnectData


Operation = Annotated[
    ReplaceOperation
    | AddOperation
    | RemoveOperation
    | ModifyOperation
    | ConnectOperation
    | DisconnectOperation,
    Field(discriminator="type"),
]

_OPERATION_ADAPTER: TypeAdapter[Operation] = TypeAdapter(Operation)
_OPERATION_LIST_ADAPTER: TypeAdapter[list[Operation]] = TypeAdapter(list[Operation])


def parse_operation(raw: Any) -> Operation:
    """Coerce a raw JSON object into a typed operation.

    Raises:
        pydantic.ValidationError: If *raw* is not a well-formed operation.
    """
    return _OPERATION_ADAPTER.validate_python(raw)


def parse_operations(raw: Iterable[Any]) -> list[Operation]:
    """Coerce a list of raw JSON objects, failing on the first malformed one."""
    return _OPERATION_LIST_ADAPTER.validate_python(list(raw))


def dump_operation(op: Operation) -> dict[str, Any]:
    """Serialize an operation back to its camelCase JSON shape."""
    return op.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Failures and batch result ---


class OperationErrorCode(StrEnum):
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    SOURCE_NOT_FOUND = "SOURCE_NOT_FOUND"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    INVALID_NODE_TYPE = "INVALID_NODE_TYPE"
    INVALID_OPERATION = "INVALID_OPERATION"


class OperationError(Exception):
    """Semantic failure of a single operation.

    Raised by the per-variant appliers and always caught by the batch
    loop; it never escapes ``apply_operations``.
    """

    def __init__(self, code: OperationErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @classmethod
    def node_not_found(cls, target: str) -> OperationError:
        return cls(OperationErrorCode.NODE_NOT_FOUND, f"Node not found: {target}")

    @classmethod
    def source_not_found(cls, source: str) -> OperationError:
        return cls(OperationErrorCode.SOURCE_NOT_FOUND, f"Source node not found: {source}")

    @classmethod
    def target_not_found(cls, target: str) -> OperationError:
        return cls(OperationErrorCode.TARGET_NOT_FOUND, f"Target node not found: {target}")

    @classmethod
    def invalid_node_type(cls, node_type: str) -> OperationError:
        return cls(OperationErrorCode.INVALID_NODE_TYPE, f"Unknown node type: {node_type}")


class OperationFailure(BaseModel):
    """Bookkeeping for one failed operation in a batch."""

    model_config = _MODEL_CONFIG

    index: int
    op_type: str
    code: OperationErrorCode
    message: str


class ApplyResult(BaseModel):
    """Outcome of applying a batch of operations.

    Attributes:
        success: False if any operation failed.
        new_spec: Specification after every successful operation.
        applied_ops: Number of operations that succeeded.
        errors: Human-readable message per failed operation.
        node_id_mappings: Every ``old id -> new id`` substitution made by
            ``replace`` across the whole batch.
        failures: Structured form of ``errors`` (index, type, code).
    """

    model_config = _MODEL_CONFIG

    success: bool
    new_spec: Specification
    applied_ops: int
    errors: list[str] = Field(default_factory=list)
    node_id_mappings: dict[str, str] = Field(default_factory=dict)
    failures: list[OperationFailure] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
