"""Tests for template loading and inline rendering."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from pipectl.infrastructure.templates import build_template_environment, render_inline


class TestRenderInline:
    def test_renders_variables(self) -> None:
        assert render_inline("{{ project }}-{{ tier }}", project="shop", tier="api") == "shop-api"

    def test_strict_undefined(self) -> None:
        with pytest.raises(UndefinedError):
            render_inline("{{ nope }}")

    def test_strips_whitespace(self) -> None:
        assert render_inline("  {{ n }} ", n=3) == "3"


class TestTemplateEnvironment:
    def test_packaged_config_template(self) -> None:
        env = build_template_environment("config")
        text = env.get_template("pipectl.toml.j2").render(
            name="shop",
            backend_dir="api",
            frontend_dir="web",
            repository=None,
            branch="main",
        )
        assert 'name = "shop"' in text
        assert 'directory = "api"' in text
        assert "{{ project }}-{{ tier }}" in text

    def test_workspace_override_wins(self, tmp_path: Path) -> None:
        override = tmp_path / ".pipectl" / "templates" / "config"
        override.mkdir(parents=True)
        (override / "pipectl.toml.j2").write_text('[project]\nname = "{{ name }}-custom"\n')
        env = build_template_environment("config", workspace_root=tmp_path)
        text = env.get_template("pipectl.toml.j2").render(name="shop")
        assert text == '[project]\nname = "shop-custom"\n'
