"""Structural validation of specifications for the CLI."""

from __future__ import annotations

from infraflow.domain.spec import Specification, validate_specification
from infraflow.infrastructure.graph import TopologyGraph
from infraflow.services.base import BaseService
from infraflow.services.result import ServiceResult

# Codes that make a specification unusable for diffing and layout.
BLOCKING_CODES = frozenset({"DANGLING_CONNECTION"})


class ValidationService(BaseService):
    """Report structural issues in a specification."""

    def validate(self, spec: Specification) -> ServiceResult:
        """Fail on dangling connections; everything else is a warning."""
        op = "validate_spec"
        issues = validate_specification(spec)
        graph = TopologyGraph.from_spec(spec)
        data = {
            "valid": not any(i.code in BLOCKING_CODES for i in issues),
            "issues": [i.to_dict() for i in issues],
            "node_count": len(spec.nodes),
            "connection_count": len(spec.connections),
            "components": graph.component_count(),
        }
        blocking = [i for i in issues if i.code in BLOCKING_CODES]
        if blocking:
            return ServiceResult.failure(
                op,
                "INVALID_SPEC",
                f"{len(blocking)} blocking issue(s) found",
                detail={"issues": [i.to_dict() for i in blocking]},
                data=data,
            )
        return ServiceResult(
            ok=True,
            op=op,
            data=data,
            warnings=[i.message for i in issues],
        )
