"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, infraflow.toml only contains
overrides. Every section may be omitted.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, PositiveInt
from pydantic.alias_generators import to_camel

# --- Layout constants ---

DEFAULT_NODE_WIDTH = 180
DEFAULT_NODE_HEIGHT = 90
DEFAULT_HORIZONTAL_GAP = 260
DEFAULT_VERTICAL_GAP = 140
DEFAULT_TIER_GAP = 260
DEFAULT_START_X = 100
DEFAULT_START_Y = 100


# --- infraflow.toml sections ---


class LayoutConfig(BaseModel):
    """[layout] section, also the per-call layout options object.

    Accepts ``startX`` style keys (JSON) and ``start_x`` style keys (TOML).
    """

    model_config = {"frozen": True, "populate_by_name": True, "alias_generator": to_camel}

    start_x: float = DEFAULT_START_X
    start_y: float = DEFAULT_START_Y
    horizontal_gap: float = DEFAULT_HORIZONTAL_GAP
    vertical_gap: float = DEFAULT_VERTICAL_GAP
    tier_gap: float = DEFAULT_TIER_GAP
    node_width: float = DEFAULT_NODE_WIDTH
    node_height: float = DEFAULT_NODE_HEIGHT

    @property
    def column_gap(self) -> float:
        """Distance between tier columns.

        ``tier_gap`` wins; ``horizontal_gap`` applies only when it alone
        was overridden.
        """
        fields_set = self.model_fields_set
        if "horizontal_gap" in fields_set and "tier_gap" not in fields_set:
            return self.horizontal_gap
        return self.tier_gap

    def merged(self, overrides: dict[str, float] | None) -> LayoutConfig:
        """Return a copy with *overrides* applied on top of this config."""
        if not overrides:
            return self
        explicit = {name: getattr(self, name) for name in self.model_fields_set}
        return LayoutConfig.model_validate({**explicit, **overrides})


class DetectionConfig(BaseModel):
    """[detection] section."""

    model_config = {"frozen": True}

    cache_enabled: bool = True
    cache_max_size: PositiveInt = 100


class DiffConfig(BaseModel):
    """[diff] section."""

    model_config = {"frozen": True}

    id_strategy: Literal["random", "sequential"] = "random"
    id_suffix_length: PositiveInt = 8

