"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``PIPECTL_*`` prefix
  3. TOML file    — ``pipectl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from
:mod:`pipectl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from pipectl.config.discovery import resolve_config
from pipectl.config.models import (
    AnalysisConfig,
    BackendConfig,
    ContainerConfig,
    FrontendConfig,
    PipelineConfig,
    PluginsConfig,
    ProjectConfig,
    SourceConfig,
    StageConfig,
)
from pipectl.domain.stages import DEFAULT_POLICIES, OPTIONAL_STAGES, StageName, StagePolicy


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``pipectl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class PipeSettings(BaseSettings):
    """Unified settings for the entire pipectl CLI.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.  Stored in
    ``click.Context.obj`` at the CLI root level.

    Attributes:
        workspace_root: Resolved workspace directory (parent of
            ``pipectl.toml``, or CWD if no config found).
        config_path: The config file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "PIPECTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (derived from the config location, not read from TOML) ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    frontend: FrontendConfig = Field(default_factory=FrontendConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    stages: dict[StageName, StageConfig] = Field(default_factory=dict)
    environment: dict[str, str] = Field(default_factory=dict)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> PipeSettings:
        """Construct settings from CLI invocation.

        Discovers ``pipectl.toml`` via walk-up (or explicit *config_path*),
        resolves *workspace_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        try:
            toml_path = resolve_config(config_path, workspace_root)
        except FileNotFoundError as exc:
            import click

            raise click.ClickException(str(exc)) from exc

        resolved_root = workspace_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                workspace_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        except ValidationError as exc:
            import click

            source = toml_path or "environment"
            msg = f"Invalid configuration ({source}):\n{exc}"
            raise click.ClickException(msg) from exc
        finally:
            _tls.toml_path = None

    # ------------------------------------------------------------------
    # Stage overrides
    # ------------------------------------------------------------------

    def stage_policy(self, stage: StageName) -> StagePolicy:
        """Effective failure policy for *stage* (override or default)."""
        override = self.stages.get(stage)
        if override is not None and override.policy is not None:
            return override.policy
        return DEFAULT_POLICIES[stage]

    def stage_enabled(self, stage: StageName) -> bool:
        """Whether *stage* is switched on by configuration alone."""
        override = self.stages.get(stage)
        if override is not None and override.enabled is not None:
            return override.enabled
        if stage is StageName.ANALYSIS:
            return self.analysis.enabled
        if stage is StageName.CONTAINER:
            return self.container.enabled
        return stage not in OPTIONAL_STAGES
