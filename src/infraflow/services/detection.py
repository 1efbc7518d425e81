"""Pattern detection — free text to component types and command intent.

``PatternDetector`` is the engine: component types, command intent,
template lookup, and edit planning (text to diff operations).
``DetectionService`` wraps it in ServiceResult for the CLI.

INVARIANT: Cached and uncached detection return identical results for
the same normalized input. The cache is never a source of answers the
uncached scan would not give.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel

from infraflow.domain.catalog import get_label_for_type
from infraflow.domain.operations import (
    AddData,
    AddOperation,
    ConnectData,
    ConnectOperation,
    DisconnectData,
    DisconnectOperation,
    ModifyData,
    ModifyOperation,
    Operation,
    RemoveOperation,
    ReplaceData,
    ReplaceOperation,
    dump_operation,
)
from infraflow.domain.patterns import (
    COMMAND_PATTERNS,
    DEFAULT_REGISTRY,
    Pattern,
    PatternRegistry,
    normalize_text,
)
from infraflow.domain.spec import Connection, Node, Specification
from infraflow.domain.templates import get_template, match_template
from infraflow.domain.types import CommandType, FlowType, NodeType
from infraflow.services.base import BaseService
from infraflow.services.result import ServiceResult

if TYPE_CHECKING:
    from infraflow.config.settings import InfraSettings

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 100

# Confidence reported by parse_text for each way of building a specification.
TEMPLATE_CONFIDENCE = 0.8
DETECTION_CONFIDENCE = 0.5


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class CacheStats(BaseModel):
    """Snapshot of cache counters."""

    model_config = {"frozen": True}

    hits: int
    misses: int
    size: int
    max_size: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class PatternCache:
    """Bounded LRU cache of detection results keyed by normalized text.

    Safe for concurrent use; every access holds an internal lock.
    """

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        if max_size < 1:
            msg = f"max_size must be positive, got {max_size}"
            raise ValueError(msg)
        self._max_size = max_size
        self._entries: OrderedDict[str, tuple[Pattern, ...]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str) -> tuple[Pattern, ...] | None:
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return value

    def put(self, key: str, value: tuple[Pattern, ...]) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                max_size=self._max_size,
            )

    def clear(self) -> None:
        """Drop every entry and reset the hit/miss counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


# ---------------------------------------------------------------------------
# Insertion point
# ---------------------------------------------------------------------------


class InsertionPoint(BaseModel):
    """Where a new component should be wired relative to an existing node."""

    model_config = {"frozen": True}

    position: Literal["after", "before"]
    node_id: str | None = None
    # True when the text named the anchor; False for the last-node fallback.
    explicit: bool = False


_AFTER_PATTERNS = (
    re.compile(r"(\S+?)\s*(?:뒤에|다음에)"),
    re.compile(r"\bafter\s+(?:the\s+)?(\S+)"),
)
_BEFORE_PATTERNS = (
    re.compile(r"(\S+?)\s*(?:앞에|이전에)"),
    re.compile(r"\bbefore\s+(?:the\s+)?(\S+)"),
)


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------


class PatternDetector:
    """Map free text to component patterns and a command intent.

    Args:
        registry: Pattern registry; defaults to the catalog-built registry.
        cache: Cache used by :meth:`detect_all_node_types_cached`. A fresh
            private cache is created when omitted.
        cache_enabled: When False the cached variant always rescans.
    """

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        cache: PatternCache | None = None,
        *,
        cache_enabled: bool = True,
    ) -> None:
        self._registry = registry or DEFAULT_REGISTRY
        self._cache = cache if cache is not None else PatternCache()
        self._cache_enabled = cache_enabled

    @classmethod
    def from_settings(cls, settings: InfraSettings, cache: PatternCache | None = None) -> PatternDetector:
        detection = settings.detection
        if cache is None:
            cache = PatternCache(detection.cache_max_size)
        return cls(cache=cache, cache_enabled=detection.cache_enabled)

    @property
    def registry(self) -> PatternRegistry:
        return self._registry

    @property
    def cache(self) -> PatternCache:
        return self._cache

    def detect_node_type(self, text: str) -> Pattern | None:
        """First pattern in registry order with a keyword in *text*."""
        normalized = normalize_text(text)
        if not self._registry.has_marker(normalized):
            return None
        return next((p for p in self._registry if p.matches(normalized)), None)

    def detect_all_node_types(self, text: str) -> list[Pattern]:
        """Every matching pattern, ordered by first keyword occurrence in *text*.

        Ties (two types whose keywords start at the same offset) keep
        registry order.
        """
        return list(self._scan(normalize_text(text)))

    def detect_all_node_types_cached(self, text: str) -> list[Pattern]:
        """Same answer as :meth:`detect_all_node_types`, memoized."""
        normalized = normalize_text(text)
        if not self._cache_enabled:
            return list(self._scan(normalized))
        cached = self._cache.get(normalized)
        if cached is not None:
            return list(cached)
        result = self._scan(normalized)
        self._cache.put(normalized, result)
        return list(result)

    def _scan(self, normalized: str) -> tuple[Pattern, ...]:
        if not self._registry.has_marker(normalized):
            return ()
        hits: list[tuple[int, int, Pattern]] = []
        for index, pattern in enumerate(self._registry):
            offset = pattern.first_occurrence(normalized)
            if offset >= 0:
                hits.append((offset, index, pattern))
        hits.sort(key=lambda hit: (hit[0], hit[1]))
        return tuple(pattern for _, _, pattern in hits)

    def detect_command_type(self, text: str) -> CommandType:
        """Classify the intent of *text*; ``create`` when nothing matches."""
        normalized = normalize_text(text).strip()
        for regex, command in COMMAND_PATTERNS:
            if regex.search(normalized):
                return command
        return CommandType.CREATE

    def detect_template(self, text: str) -> str | None:
        """Id of the architecture template *text* asks for, if any."""
        return match_template(normalize_text(text))

    def text_to_spec(self, text: str, *, name: str | None = None) -> Specification | None:
        """Build a linear specification from the components named in *text*.

        Components appear in mention order, preceded by a ``user`` node
        when none was mentioned, and are chained with ``request``
        connections. Returns None when no component is detected.
        """
        patterns = self.detect_all_node_types_cached(text)
        if not patterns:
            logger.debug("No components detected in %r", text)
            return None

        types = [p.type for p in patterns]
        if NodeType.USER not in types:
            types.insert(0, NodeType.USER)

        nodes = [
            Node(id=f"{node_type}-1", type=node_type, label=get_label_for_type(node_type))
            for node_type in types
        ]
        connections = [
            Connection(source=a.id, target=b.id, flow_type=FlowType.REQUEST)
            for a, b in zip(nodes, nodes[1:], strict=False)
        ]
        return Specification(
            name=name,
            description=text.strip() or None,
            nodes=nodes,
            connections=connections,
        )

    def find_insertion_point(self, text: str, spec: Specification) -> InsertionPoint:
        """Locate the node a new component should follow or precede.

        Recognizes ``X 뒤에`` / ``X 다음에`` / ``after X`` and ``X 앞에`` /
        ``X 이전에`` / ``before X``. Falls back to after the last node.
        """
        normalized = normalize_text(text)
        for position, patterns in (("after", _AFTER_PATTERNS), ("before", _BEFORE_PATTERNS)):
            for regex in patterns:
                match = regex.search(normalized)
                if match is None:
                    continue
                node_id = self._resolve_reference(match.group(1), spec)
                if node_id is not None:
                    return InsertionPoint(position=position, node_id=node_id, explicit=True)
                logger.debug("Insertion reference %r not found in spec", match.group(1))

        last = spec.nodes[-1].id if spec.nodes else None
        return InsertionPoint(position="after", node_id=last)

    def _resolve_reference(self, token: str, spec: Specification) -> str | None:
        """Resolve a word from the text to a node id: by id, type keyword, then label."""
        token = token.strip(".,!?")
        if not token:
            return None
        node = spec.get_node(token)
        if node is not None:
            return node.id
        pattern = self.detect_node_type(token)
        if pattern is not None:
            for node in spec.nodes:
                if node.type == pattern.type:
                    return node.id
        for node in spec.nodes:
            if token in node.label.lower() or token in node.id:
                return node.id
        return None

    def text_to_operations(self, text: str, spec: Specification) -> list[Operation]:
        """Derive diff operations from an edit request against *spec*.

        The command intent picks the edit:

        - add: each mentioned type becomes a new node wired after (or
          before) the insertion point; the type of a node named as the
          anchor is not added again.
        - remove: every node whose type is mentioned.
        - modify: ``A -> B`` mentions replace the first A node with a B;
          a single mention resets the node label to the catalog label.
        - connect / disconnect: first nodes of the first two mentioned
          types; disconnect covers both directions.

        ``create`` and ``query`` never produce operations. An empty list
        means nothing in *spec* matched the request.
        """
        command = self.detect_command_type(text)
        types = [p.type for p in self.detect_all_node_types_cached(text)]
        if not types:
            return []

        match command:
            case CommandType.ADD:
                return self._plan_add(text, spec, types)
            case CommandType.REMOVE:
                return [RemoveOperation(target=node.id) for node in spec.nodes if node.type in types]
            case CommandType.MODIFY:
                return _plan_modify(spec, types)
            case CommandType.CONNECT | CommandType.DISCONNECT:
                return _plan_link(command, spec, types)
            case _:
                return []

    def _plan_add(self, text: str, spec: Specification, types: list[NodeType]) -> list[Operation]:
        point = self.find_insertion_point(text, spec)
        anchor = spec.get_node(point.node_id) if point.explicit and point.node_id else None
        new_types = [t for t in types if anchor is None or t != anchor.type] or types

        ops: list[Operation] = []
        for node_type in new_types:
            if point.node_id is None:
                data = AddData()
            elif point.position == "after":
                data = AddData(after_node=point.node_id)
            else:
                data = AddData(before_node=point.node_id)
            ops.append(AddOperation(target=node_type.value, data=data))
        return ops


def _first_of_type(spec: Specification, node_type: NodeType) -> Node | None:
    return next((node for node in spec.nodes if node.type == node_type), None)


def _plan_modify(spec: Specification, types: list[NodeType]) -> list[Operation]:
    if len(types) >= 2:
        old = _first_of_type(spec, types[0])
        if old is not None:
            return [ReplaceOperation(target=old.id, data=ReplaceData(new_type=types[1].value))]
    ops: list[Operation] = []
    for node_type in types:
        node = _first_of_type(spec, node_type)
        if node is not None:
            label = get_label_for_type(node_type)
            ops.append(ModifyOperation(target=node.id, data=ModifyData(label=label)))
    return ops


def _plan_link(command: CommandType, spec: Specification, types: list[NodeType]) -> list[Operation]:
    if len(types) < 2:
        return []
    source, target = _first_of_type(spec, types[0]), _first_of_type(spec, types[1])
    if source is None or target is None:
        return []
    if command is CommandType.CONNECT:
        return [ConnectOperation(data=ConnectData(source=source.id, target=target.id))]
    return [
        DisconnectOperation(data=DisconnectData(source=source.id, target=target.id)),
        DisconnectOperation(data=DisconnectData(source=target.id, target=source.id)),
    ]


# --- Module-level convenience bound to a default detector ---

_default_detector = PatternDetector()


def get_default_detector() -> PatternDetector:
    return _default_detector


def detect_node_type(text: str) -> Pattern | None:
    return _default_detector.detect_node_type(text)


def detect_all_node_types(text: str) -> list[Pattern]:
    return _default_detector.detect_all_node_types(text)


def detect_all_node_types_cached(text: str) -> list[Pattern]:
    return _default_detector.detect_all_node_types_cached(text)


def detect_command_type(text: str) -> CommandType:
    return _default_detector.detect_command_type(text)


def clear_pattern_cache() -> None:
    _default_detector.cache.clear()


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------


def _pattern_dict(pattern: Pattern) -> dict[str, str]:
    return {
        "type": pattern.type.value,
        "label": pattern.label,
        "label_ko": pattern.label_ko,
        "category": pattern.category.value,
        "tier": pattern.default_tier.value,
    }


class DetectionService(BaseService):
    """Detection operations for the CLI."""

    def __init__(
        self,
        settings: InfraSettings | None = None,
        *,
        detector: PatternDetector | None = None,
    ) -> None:
        super().__init__(settings)
        self._detector = detector or PatternDetector.from_settings(self._settings)

    @property
    def detector(self) -> PatternDetector:
        return self._detector

    def detect(self, text: str) -> ServiceResult:
        """Detect components and intent in *text*."""
        op = "detect"
        if not text.strip():
            return ServiceResult.failure(op, "INVALID_INPUT", "Text is empty")

        matches = self._detector.detect_all_node_types_cached(text)
        command = self._detector.detect_command_type(text)
        warnings: list[str] = []
        if not matches:
            warnings.append("No known components mentioned")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "command": command.value,
                "primary": matches[0].type.value if matches else None,
                "matches": [_pattern_dict(p) for p in matches],
            },
            warnings=warnings,
            meta={"cache": self._detector.cache.stats().model_dump()},
        )

    def parse_text(
        self,
        text: str,
        *,
        name: str | None = None,
        template: str | None = None,
        use_templates: bool = True,
    ) -> ServiceResult:
        """Turn *text* into an initial specification.

        An explicit *template* wins; otherwise a template keyword in the
        text selects one (unless *use_templates* is False), and component
        detection builds a chain as the last resort.
        """
        op = "parse_text"
        if template is None and not text.strip():
            return ServiceResult.failure(op, "INVALID_INPUT", "Text is empty")

        if template is None and use_templates:
            template = self._detector.detect_template(text)

        if template is not None:
            spec = get_template(template)
            if spec is None:
                return ServiceResult.failure(
                    op,
                    "UNKNOWN_TEMPLATE",
                    f"Unknown template: {template}",
                    detail={"template": template},
                )
            if name is not None:
                spec = spec.model_copy(update={"name": name})
            confidence = TEMPLATE_CONFIDENCE
            logger.debug("Template %s selected", template)
        else:
            confidence = DETECTION_CONFIDENCE
            spec = self._detector.text_to_spec(text, name=name)
            if spec is None:
                return ServiceResult.failure(
                    op,
                    "NO_COMPONENTS",
                    "No known components found in text",
                    detail={"text": text},
                )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "command": self._detector.detect_command_type(text).value,
                "template": template,
                "confidence": confidence,
                "spec": spec.to_json_dict(),
            },
            meta={"node_count": len(spec.nodes), "connection_count": len(spec.connections)},
        )

    def plan_edits(self, text: str, spec: Specification) -> ServiceResult:
        """Derive diff operations for an edit request against *spec*."""
        op = "plan_edits"
        if not text.strip():
            return ServiceResult.failure(op, "INVALID_INPUT", "Text is empty")

        command = self._detector.detect_command_type(text)
        operations = self._detector.text_to_operations(text, spec)
        data = {
            "command": command.value,
            "operations": [dump_operation(o) for o in operations],
        }
        if not operations:
            return ServiceResult.failure(
                op,
                "NO_OPERATIONS",
                f"No {command.value} edit could be derived from text",
                detail={"text": text},
                data=data,
            )
        return ServiceResult(ok=True, op=op, data=data, meta={"count": len(operations)})
