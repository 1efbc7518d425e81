"""Config file discovery.

Walk-up finder locates infraflow.toml, similar to how git finds .git/.
Supports the INFRAFLOW_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "infraflow.toml"
CONFIG_ENV_VAR = "INFRAFLOW_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for infraflow.toml.

    Checks INFRAFLOW_CONFIG first; a set but missing path yields None
    rather than falling back to the walk-up.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent

