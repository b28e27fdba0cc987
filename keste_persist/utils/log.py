"""
RESPONSIBILITIES
- Hand persistence modules a child of the core keste logger.
- Point the core logger at <root>/logs without building the rest of the scaffold.
PROCESS OVERVIEW
1. Callers request get_logger(name, root).
2. The logs directory is derived from the root; unreadable settings leave it unset.
3. The core logger creates the directory on first use, or stays console-only.
"""

from __future__ import annotations

import logging
from pathlib import Path

from keste.core.errors import ConfigError
from keste.core.logger import get_logger as core_get_logger

from .paths import resolve_root


def get_logger(name: str, root: Path | None = None) -> logging.Logger:
    """Return a namespaced logger for persistence modules.

    Import and export paths only log; autosave/ and tmp/ are created by
    ensure_structure() callers such as health checks and autosave_path().
    """

    try:
        log_dir: Path | None = resolve_root(root) / "logs"
    except ConfigError:
        log_dir = None
    return core_get_logger(log_dir).getChild(name)
