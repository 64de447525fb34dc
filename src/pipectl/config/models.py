"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, pipectl.toml only contains overrides.
A fresh project needs only [project] name; the default layout expects
``backend/pom.xml`` and ``frontend/package.json`` under the workspace root.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr

from pipectl.domain.stages import StagePolicy

# --- pipectl.toml sections ---


class ProjectConfig(BaseModel):
    """[project] section."""

    model_config = {"frozen": True}

    name: str = "app"


class SourceConfig(BaseModel):
    """[source] section.

    With no ``repository`` the existing sources in ``directory`` are used
    as-is (the checkout stage only records the commit).
    """

    model_config = {"frozen": True}

    repository: str | None = None
    branch: str = "main"
    directory: str = "."


class BackendConfig(BaseModel):
    """[backend] section."""

    model_config = {"frozen": True}

    directory: str = "backend"
    descriptor: str = "pom.xml"
    tool: str = "mvn"
    use_wrapper: bool = True
    build_args: list[str] = Field(default_factory=lambda: ["clean", "package", "-DskipTests"])
    test_args: list[str] = Field(default_factory=lambda: ["test"])
    report_dir: str = "target/surefire-reports"
    artifacts: list[str] = Field(default_factory=lambda: ["target/*.jar"])


class FrontendConfig(BaseModel):
    """[frontend] section."""

    model_config = {"frozen": True}

    directory: str = "frontend"
    manifest: str = "package.json"
    tool: str = "npm"
    install: str = "auto"
    build_script: str = "build"
    output_dirs: list[str] = Field(default_factory=lambda: ["dist", "build"])


class AnalysisConfig(BaseModel):
    """[analysis] section — static analysis via the build tool's sonar plugin."""

    model_config = {"frozen": True}

    enabled: bool = False
    host_url: str | None = None
    project_key: str | None = None
    token: SecretStr | None = None


class ContainerConfig(BaseModel):
    """[container] section."""

    model_config = {"frozen": True}

    enabled: bool = False
    engine: str = "docker"
    registry: str | None = None
    image: str = "{{ project }}-{{ tier }}"
    tag: str = "{{ build_number }}"
    tag_latest: bool = True
    dockerfile: str = "Dockerfile"
    push: bool = False
    username: str | None = None
    password: SecretStr | None = None


class PipelineConfig(BaseModel):
    """[pipeline] section."""

    model_config = {"frozen": True}

    timeout_minutes: float = 30.0
    artifacts_dir: str = ".pipectl/artifacts"
    keep_runs: int = 10


class StageConfig(BaseModel):
    """[stages.<name>] section: per-stage overrides."""

    model_config = {"frozen": True}

    policy: StagePolicy | None = None
    enabled: bool | None = None


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    retention: dict[str, Any] = Field(default_factory=lambda: {"enabled": True})

