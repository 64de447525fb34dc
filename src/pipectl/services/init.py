"""InitService — scaffold a ``pipectl.toml`` and the ``.pipectl/`` state dir."""

from __future__ import annotations

from pathlib import Path

from pipectl.config.discovery import CONFIG_FILENAME
from pipectl.infrastructure.database.engine import STATE_DIRNAME, init_database
from pipectl.infrastructure.templates import build_template_environment
from pipectl.services.result import ErrorCode, ServiceResult

_GITIGNORE_LINE = f"{STATE_DIRNAME}/"
CLONE_DIRNAME = "src"


class InitService:
    """Creates a workspace. Static: there is no workspace yet to inject."""

    @staticmethod
    def init_workspace(
        path: Path,
        *,
        name: str,
        backend_dir: str = "backend",
        frontend_dir: str = "frontend",
        repository: str | None = None,
        branch: str = "main",
        source_dir: str | None = None,
        force: bool = False,
    ) -> ServiceResult:
        """Render ``pipectl.toml`` into *path* and initialize run history.

        With a *repository*, sources are cloned into *source_dir* (default
        ``src``), which must not be the workspace root holding the config.
        """
        config_path = path / CONFIG_FILENAME
        if config_path.exists() and not force:
            return ServiceResult.failure(
                "init",
                ErrorCode.CONFIG_EXISTS,
                f"{config_path} already exists (use --force to overwrite)",
                path=str(config_path),
            )

        if repository:
            source_dir = source_dir or CLONE_DIRNAME
            if (path / source_dir).resolve() == path.resolve():
                return ServiceResult.failure(
                    "init",
                    ErrorCode.INVALID_SOURCE_DIR,
                    "The clone directory must be a subdirectory of the workspace",
                    source_dir=source_dir,
                )

        path.mkdir(parents=True, exist_ok=True)
        env = build_template_environment("config", workspace_root=path)
        rendered = env.get_template("pipectl.toml.j2").render(
            name=name,
            backend_dir=backend_dir,
            frontend_dir=frontend_dir,
            repository=repository,
            branch=branch,
            source_dir=source_dir,
        )
        config_path.write_text(rendered, encoding="utf-8")

        engine = init_database(path)
        engine.dispose()

        warnings: list[str] = []
        if repository is None and not (path / backend_dir).is_dir():
            warnings.append(f"Backend directory {backend_dir}/ does not exist yet")
        if repository is None and not (path / frontend_dir).is_dir():
            warnings.append(f"Frontend directory {frontend_dir}/ does not exist yet")
        gitignore_updated = _ensure_gitignored(path)

        return ServiceResult(
            ok=True,
            op="init",
            data={
                "path": str(path),
                "config": str(config_path),
                "project": name,
                "gitignore_updated": gitignore_updated,
            },
            warnings=warnings,
        )


def _ensure_gitignored(path: Path) -> bool:
    """Append the state directory to ``.gitignore`` when the file exists."""
    gitignore = path / ".gitignore"
    if not gitignore.is_file():
        return False
    content = gitignore.read_text(encoding="utf-8")
    lines = content.splitlines()
    if _GITIGNORE_LINE in lines or STATE_DIRNAME in lines:
        return False
    prefix = "" if not content or content.endswith("\n") else "\n"
    with gitignore.open("a", encoding="utf-8") as fh:
        fh.write(f"{prefix}{_GITIGNORE_LINE}\n")
    return True
