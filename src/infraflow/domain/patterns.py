"""Pattern registry — keyword patterns and command intent patterns.

Patterns are generated once from the component catalog and are
immutable at runtime. Matching is plain case-insensitive substring
search over NFKC-normalized, lower-cased text.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Iterator

from pydantic import BaseModel

from infraflow.domain.catalog import COMPONENT_CATALOG, ComponentEntry
from infraflow.domain.types import CommandType, NodeCategory, NodeType, Tier


class Pattern(BaseModel):
    """Keyword pattern for one component type."""

    model_config = {"frozen": True}

    type: NodeType
    keywords: tuple[str, ...]
    category: NodeCategory
    default_tier: Tier
    label: str
    label_ko: str

    @classmethod
    def from_entry(cls, entry: ComponentEntry) -> Pattern:
        return cls(
            type=entry.type,
            keywords=entry.keywords,
            category=entry.category,
            default_tier=entry.tier,
            label=entry.label,
            label_ko=entry.label_ko,
        )

    def first_occurrence(self, normalized: str) -> int:
        """Index of the earliest keyword hit in *normalized*, or -1."""
        hits = [i for i in (normalized.find(k) for k in self.keywords) if i >= 0]
        return min(hits) if hits else -1

    def matches(self, normalized: str) -> bool:
        return any(k in normalized for k in self.keywords)


def normalize_text(text: str) -> str:
    """NFKC-normalize and lower-case *text* for matching and cache keys."""
    return unicodedata.normalize("NFKC", text).lower()


def build_marker_set(keywords: Iterable[str]) -> frozenset[str]:
    """Build a minimal keyword cover used as a cheap pre-filter.

    Every keyword contains at least one marker, so text that contains
    no marker cannot match any keyword. Shorter keywords are considered
    first; a keyword already covered by a shorter marker is skipped.
    """
    markers: list[str] = []
    for keyword in sorted(set(keywords), key=lambda k: (len(k), k)):
        if not any(marker in keyword for marker in markers):
            markers.append(keyword)
    return frozenset(markers)


class PatternRegistry:
    """Ordered, immutable collection of component patterns.

    Registry order is catalog order; ``detect_node_type`` returns the
    first pattern in this order that matches.
    """

    def __init__(self, patterns: Iterable[Pattern]) -> None:
        self._patterns: tuple[Pattern, ...] = tuple(patterns)
        self._by_type: dict[str, Pattern] = {p.type.value: p for p in self._patterns}
        self._markers = build_marker_set(k for p in self._patterns for k in p.keywords)

    @classmethod
    def from_catalog(cls, entries: Iterable[ComponentEntry] = COMPONENT_CATALOG) -> PatternRegistry:
        return cls(Pattern.from_entry(entry) for entry in entries)

    @property
    def patterns(self) -> tuple[Pattern, ...]:
        return self._patterns

    @property
    def markers(self) -> frozenset[str]:
        return self._markers

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def find_by_type(self, node_type: str) -> Pattern | None:
        return self._by_type.get(node_type)

    def has_marker(self, normalized: str) -> bool:
        """Return True if *normalized* contains at least one marker substring."""
        return any(marker in normalized for marker in self._markers)


# --- Command intent -----------------------------------------------------

# Order matters: first match wins. Disconnect precedes connect because
# every disconnect phrasing also contains a connect keyword.
COMMAND_PATTERNS: tuple[tuple[re.Pattern[str], CommandType], ...] = (
    (re.compile(r"^(추가|붙여|넣어|더해|add|insert)"), CommandType.ADD),
    (re.compile(r"(추가해줘|추가해|붙여줘|넣어줘|더해줘)$"), CommandType.ADD),
    (re.compile(r"앞에|뒤에|사이에|위에|아래에"), CommandType.ADD),
    (re.compile(r"^(삭제|제거|없애|빼|remove|delete)"), CommandType.REMOVE),
    (re.compile(r"(삭제해줘|삭제해|제거해줘|제거해|없애줘|빼줘)$"), CommandType.REMOVE),
    (re.compile(r"^(수정|변경|바꿔|modify|change|update)"), CommandType.MODIFY),
    (re.compile(r"(수정해|변경해|바꿔줘)$"), CommandType.MODIFY),
    (re.compile(r"연결\s*해제|끊어|disconnect|unlink"), CommandType.DISCONNECT),
    (re.compile(r"연결|connect|link"), CommandType.CONNECT),
    (re.compile(r"\?$|뭐야|뭔가요|알려줘|설명해"), CommandType.QUERY),
)

DEFAULT_REGISTRY = PatternRegistry.from_catalog()
