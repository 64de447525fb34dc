"""Shared Jinja2 template loading with per-workspace override support."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
)


def build_template_environment(group: str, *, workspace_root: Path | None = None) -> Environment:
    """Build a Jinja2 environment with user overrides before packaged defaults.

    User overrides are loaded from ``.pipectl/templates/`` inside the
    workspace, either namespaced by *group* or flat.
    """

    loaders: list[BaseLoader] = []
    if workspace_root is not None:
        template_root = workspace_root / ".pipectl" / "templates"
        loaders.append(FileSystemLoader([str(template_root / group), str(template_root)]))

    loaders.append(PackageLoader("pipectl", f"templates/{group}"))
    return Environment(loader=ChoiceLoader(loaders), keep_trailing_newline=True)


_inline_env = Environment(undefined=StrictUndefined, autoescape=False)


def render_inline(template: str, **context: Any) -> str:
    """Render a one-line template string (image names, tags).

    Unknown variables raise ``jinja2.UndefinedError``.

    Examples:
        >>> render_inline("{{ project }}-{{ tier }}", project="shop", tier="api")
        'shop-api'
    """
    return _inline_env.from_string(template).render(**context).strip()
