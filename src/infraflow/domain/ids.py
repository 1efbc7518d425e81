"""Node ID patterns and generation strategies.

Two strategies:
- Random (default): ``{type}-{8 lowercase alphanumerics}`` for nodes
  created by the diff engine.
- Sequential: ``{type}-{n}`` for deterministic runs and tests.

INVARIANT: An id is never reassigned within a specification. Generators
may collide; callers retry against the ids already in use, and after
MAX_ID_ATTEMPTS draws the last candidate gets a ``-{n}`` suffix.
"""

from __future__ import annotations

import re
import secrets
import string
from collections.abc import Callable

IdGenerator = Callable[[str], str]

_ALPHABET = string.ascii_lowercase + string.digits
DEFAULT_SUFFIX_LENGTH = 8
MAX_ID_ATTEMPTS = 16

GENERATED_ID_PATTERN = re.compile(r"^[a-z0-9-]+-[a-z0-9]{8}$")


def random_node_id(node_type: str, *, length: int = DEFAULT_SUFFIX_LENGTH) -> str:
    """Return ``{node_type}-{random suffix}``."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    return f"{node_type}-{suffix}"


def make_random_generator(length: int = DEFAULT_SUFFIX_LENGTH) -> IdGenerator:
    """Bind a suffix length into an :data:`IdGenerator`."""

    def _generate(node_type: str) -> str:
        return random_node_id(node_type, length=length)

    return _generate


class SequentialIdGenerator:
    """Deterministic generator: ``firewall-1``, ``firewall-2``, ...

    Counters are kept per type.
    """

    def __init__(self, start: int = 1) -> None:
        self._start = start
        self._counters: dict[str, int] = {}

    def __call__(self, node_type: str) -> str:
        n = self._counters.get(node_type, self._start)
        self._counters[node_type] = n + 1
        return f"{node_type}-{n}"


def is_generated_id(node_id: str) -> bool:
    """Check whether *node_id* looks like a default random id."""
    return GENERATED_ID_PATTERN.match(node_id) is not None


def unique_id(generate: IdGenerator, node_type: str, taken: set[str]) -> str:
    """Draw ids from *generate* until one is not in *taken*.

    A generator that keeps colliding (a constant one, say) is given
    MAX_ID_ATTEMPTS draws; the last candidate is then disambiguated as
    ``{candidate}-2``, ``{candidate}-3``, ... until free.
    """
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = generate(node_type)
        if candidate not in taken:
            return candidate

    n = 2
    while f"{candidate}-{n}" in taken:
        n += 1
    return f"{candidate}-{n}"
