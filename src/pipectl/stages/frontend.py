"""Frontend build with the JavaScript package manager."""

from __future__ import annotations

from pipectl.domain.stages import StageName
from pipectl.stages.base import Stage, StageContext, StageError, StageOutcome

LOCKFILE = "package-lock.json"


def install_command(install: str, *, has_lockfile: bool) -> str:
    """Resolve ``auto`` to ``ci`` (lockfile present) or ``install``.

    Examples:
        >>> install_command("auto", has_lockfile=True)
        'ci'
        >>> install_command("auto", has_lockfile=False)
        'install'
        >>> install_command("install", has_lockfile=True)
        'install'
    """
    if install == "auto":
        return "ci" if has_lockfile else "install"
    return install


class FrontendBuildStage(Stage):
    name = StageName.FRONTEND_BUILD
    description = "Install dependencies and build the frontend bundle"

    def run(self, ctx: StageContext) -> StageOutcome:
        frontend = ctx.settings.frontend
        directory = ctx.workspace.frontend_dir
        if not directory.is_dir():
            raise StageError(f"Frontend directory missing: {directory}")

        install = install_command(frontend.install, has_lockfile=(directory / LOCKFILE).is_file())
        ctx.sh([frontend.tool, install], cwd=directory)
        ctx.sh([frontend.tool, "run", frontend.build_script], cwd=directory)

        output = next(
            (directory / name for name in frontend.output_dirs if (directory / name).is_dir()),
            None,
        )
        ctx.state.frontend_output = output
        if output is None:
            return StageOutcome(
                message="Frontend built",
                warnings=[
                    "No frontend build output found (looked for: "
                    + ", ".join(frontend.output_dirs)
                    + ")"
                ],
            )
        return StageOutcome(
            message=f"Frontend built into {output.name}/",
            data={"install": install, "output": str(output)},
        )
