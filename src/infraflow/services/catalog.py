"""Component catalog listing for the CLI."""

from __future__ import annotations

from infraflow.domain.catalog import COMPONENT_CATALOG, entries_by_category
from infraflow.domain.types import NodeCategory
from infraflow.services.base import BaseService
from infraflow.services.result import ServiceResult


class CatalogService(BaseService):
    """Read-only access to the component catalog."""

    def list_components(self, category: str | None = None) -> ServiceResult:
        op = "catalog"
        if category is None:
            entries = list(COMPONENT_CATALOG)
        else:
            try:
                entries = entries_by_category(NodeCategory(category))
            except ValueError:
                valid = ", ".join(c.value for c in NodeCategory)
                return ServiceResult.failure(
                    op,
                    "UNKNOWN_CATEGORY",
                    f"Unknown category: {category}",
                    detail={"valid": valid},
                )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "items": [
                    {
                        "type": e.type.value,
                        "label": e.label,
                        "label_ko": e.label_ko,
                        "category": e.category.value,
                        "tier": e.tier.value,
                        "keywords": list(e.keywords),
                    }
                    for e in entries
                ]
            },
            meta={"count": len(entries)},
        )
