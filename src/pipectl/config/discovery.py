"""Locate the ``pipectl.toml`` that applies to a directory.

The nearest file wins, searching the start directory and then its parents,
so commands run from inside ``backend/`` or ``frontend/`` use the project's
config. ``PIPECTL_CONFIG`` and ``--config`` replace the search.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "pipectl.toml"
CONFIG_ENV_VAR = "PIPECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """The config in effect for *start* (default: the CWD), or None.

    When ``PIPECTL_CONFIG`` is set it is the only candidate.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config(explicit: str | None = None, start: Path | None = None) -> Path | None:
    """The file named by ``--config``, or the discovered one.

    Raises:
        FileNotFoundError: *explicit* does not name an existing file.
    """
    if explicit is None:
        return find_config(start)
    path = Path(explicit).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {explicit}")
    return path
