"""Shared pytest fixtures and test helpers for infraflow tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from infraflow.domain.ids import SequentialIdGenerator
from infraflow.domain.spec import Specification
from infraflow.services.detection import PatternCache, PatternDetector
from infraflow.services.diff import DiffEngine

BASE_SPEC: dict[str, Any] = {
    "name": "three-tier",
    "nodes": [
        {"id": "firewall-1", "type": "firewall", "label": "Firewall", "tier": "dmz"},
        {"id": "web-server-1", "type": "web-server", "label": "Web Server", "tier": "internal"},
        {"id": "db-server-1", "type": "db-server", "label": "DB Server", "tier": "data"},
    ],
    "connections": [
        {"source": "firewall-1", "target": "web-server-1", "flowType": "request"},
        {"source": "web-server-1", "target": "db-server-1", "flowType": "request"},
    ],
}


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests independent of the developer's env vars and config files."""
    monkeypatch.delenv("INFRAFLOW_CONFIG", raising=False)
    for var in ("INFRAFLOW_JSON_OUTPUT", "INFRAFLOW_QUIET", "INFRAFLOW_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def base_spec() -> Specification:
    """firewall-1[dmz] -> web-server-1[internal] -> db-server-1[data]."""
    return Specification.model_validate(BASE_SPEC)


@pytest.fixture
def id_generator() -> SequentialIdGenerator:
    return SequentialIdGenerator(start=100)


@pytest.fixture
def engine(id_generator: SequentialIdGenerator) -> DiffEngine:
    """Diff engine with deterministic ids (``waf-100``, ``waf-101``, ...)."""
    return DiffEngine(id_generator)


@pytest.fixture
def pattern_cache() -> PatternCache:
    """Isolated cache so hit/miss counters start at zero."""
    return PatternCache(max_size=8)


@pytest.fixture
def detector(pattern_cache: PatternCache) -> PatternDetector:
    return PatternDetector(cache=pattern_cache)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_json(path: Path, payload: Any) -> Path:
    """Write *payload* as UTF-8 JSON, returning *path*."""
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def pairs(spec: Specification) -> list[tuple[str, str]]:
    """Connection (source, target) pairs in order."""
    return [c.pair for c in spec.connections]
