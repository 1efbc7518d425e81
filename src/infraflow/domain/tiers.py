"""Tier resolution: explicit tier, then zone keyword, then type default.

Resolution always terminates in one of the four tiers.
"""

from __future__ import annotations

from infraflow.domain.catalog import get_tier_for_type
from infraflow.domain.types import Tier

# Substring match on the lower-cased zone, first hit wins.
# "transport" must be tested before "ran" (it contains it).
ZONE_TIER_KEYWORDS: tuple[tuple[str, Tier], ...] = (
    ("external", Tier.EXTERNAL),
    ("internet", Tier.EXTERNAL),
    ("dmz", Tier.DMZ),
    ("gateway", Tier.DMZ),
    ("security", Tier.DMZ),
    ("access", Tier.DMZ),
    ("edge", Tier.DMZ),
    ("internal", Tier.INTERNAL),
    ("app", Tier.INTERNAL),
    ("web", Tier.INTERNAL),
    ("services", Tier.INTERNAL),
    ("vdi", Tier.INTERNAL),
    ("processing", Tier.INTERNAL),
    ("workload", Tier.INTERNAL),
    ("data", Tier.DATA),
    ("db", Tier.DATA),
    ("storage", Tier.DATA),
    # Telecom
    ("aggregation", Tier.DMZ),
    ("backbone", Tier.INTERNAL),
    ("core-dc", Tier.INTERNAL),
    ("transport", Tier.DMZ),
    ("ran", Tier.EXTERNAL),
    # Korean
    ("외부", Tier.EXTERNAL),
    ("내부", Tier.INTERNAL),
    ("데이터", Tier.DATA),
    ("국사", Tier.DMZ),
    ("백본", Tier.INTERNAL),
    ("기지국", Tier.EXTERNAL),
)


def zone_to_tier(zone: str | None) -> Tier | None:
    """Map a free-text zone hint to a tier, or None if no keyword matches."""
    if not zone:
        return None
    lowered = zone.lower()
    for keyword, tier in ZONE_TIER_KEYWORDS:
        if keyword in lowered:
            return tier
    return None


def resolve_tier(node_type: str, tier: Tier | str | None = None, zone: str | None = None) -> Tier:
    """Resolve the placement tier of a node.

    Args:
        node_type: Component type; its catalog default is the last resort.
        tier: Explicit override, wins when present.
        zone: Zone hint, consulted when no explicit tier is given.
    """
    if tier:
        return Tier(tier)
    from_zone = zone_to_tier(zone)
    if from_zone is not None:
        return from_zone
    return get_tier_for_type(node_type)
